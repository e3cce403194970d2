"""Utilities for normalizing logo imagery into a consistent analysis format."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from PIL import Image, ImageChops, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..errors import DecodeError
from ..io.models import RGB, BBox

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NormalizedLogo:
    """Analysis-resolution image plus what the first trim removed."""

    image: Image.Image
    border_color: RGB | None
    original_size: tuple[int, int]


def load_image(source: str | Path | bytes) -> Image.Image:
    """Decode *source* (a path or raw bytes) into an RGBA Pillow image."""
    label = "<bytes>" if isinstance(source, (bytes, bytearray)) else str(source)
    if isinstance(source, (bytes, bytearray)) and not source:
        raise DecodeError("Empty image payload cannot be decoded", source=label)
    try:
        handle = (
            Image.open(BytesIO(source))
            if isinstance(source, (bytes, bytearray))
            else Image.open(source)
        )
        with handle as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, DecompressionBombError, OSError) as exc:
        raise DecodeError(f"Cannot decode {label}: {exc}", source=label) from exc


def find_trim_box(
    img: Image.Image,
    threshold: int = 10,
    background: Sequence[int] | None = None,
) -> BBox | None:
    """Return the box of pixels differing from the border colour by > *threshold*.

    The border colour is the top-left pixel unless *background* is given. A
    fully transparent border is matched on alpha only, so the RGB values hidden
    under transparency never keep padding alive. Returns ``None`` when every
    pixel matches the border.
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    if background is None:
        border = img.getpixel((0, 0))
        if border[3] == 0:
            return _alpha_bbox(img, threshold)
    else:
        border = tuple(background) if len(background) == 4 else (*background, 255)
    return _color_bbox(img, border, threshold)


def trim_border(img: Image.Image, threshold: int = 10) -> tuple[Image.Image, RGB | None]:
    """Crop uniform padding from *img*.

    Returns the cropped image and the opaque border colour that was removed,
    or ``None`` when nothing was stripped or the padding was transparent.
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    box = find_trim_box(img, threshold)
    if box is None or box == (0, 0, img.width, img.height):
        return img.copy(), None
    border = img.getpixel((0, 0))
    stripped = None if border[3] == 0 else (border[0], border[1], border[2])
    logger.debug("Trimmed %s to %s (border %s)", img.size, box, stripped)
    return img.crop(box), stripped


def fit_inside(img: Image.Image, size: int = 800, allow_upscale: bool = False) -> Image.Image:
    """Resize *img* so both sides fit in *size*, preserving aspect ratio."""
    if size <= 0:
        raise ValueError("Size must be a positive integer")
    width, height = img.size
    if width == 0 or height == 0:
        return img.copy()
    factor = min(size / width, size / height)
    if factor >= 1.0 and not allow_upscale:
        return img.copy()
    target = (max(1, round(width * factor)), max(1, round(height * factor)))
    if target == img.size:
        return img.copy()
    return img.resize(target, Image.Resampling.LANCZOS)


def normalize_logo(
    source: str | Path | bytes | Image.Image, settings: "ConversionSettings"
) -> NormalizedLogo:
    """Full normalization: decode, strip uniform padding, fit to analysis size."""
    img = source.convert("RGBA") if isinstance(source, Image.Image) else load_image(source)
    original_size = img.size
    trimmed, border = trim_border(img, settings.trim_threshold)
    analysis = fit_inside(trimmed, settings.analysis_size, settings.allow_upscale)
    return NormalizedLogo(image=analysis, border_color=border, original_size=original_size)


def _alpha_bbox(img: Image.Image, threshold: int) -> BBox | None:
    alpha = img.getchannel("A")
    return alpha.point(lambda value: 255 if value > threshold else 0).getbbox()


def _color_bbox(img: Image.Image, border: Sequence[int], threshold: int) -> BBox | None:
    reference = Image.new(img.mode, img.size, tuple(border))
    diff = ImageChops.difference(img, reference)
    spread = reduce(ImageChops.lighter, diff.split())
    return spread.point(lambda value: 255 if value > threshold else 0).getbbox()
