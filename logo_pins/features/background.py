"""Decide which region of a logo image is background.

Three outcomes are possible:

* ``TRANSPARENT`` when a meaningful share of the frame is keyed out by alpha;
  the reference colour is the mean of the solid pixels.
* ``OPAQUE_CENTER`` for "box" logos whose centre colour fills most of the
  frame and differs clearly from the corner.
* ``OPAQUE_CORNER`` otherwise, with the corner colour as background.

The decision is deterministic and never fails; a poor choice only degrades
the resulting icon.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np
from PIL import Image

from ..io.models import RGB, BackgroundKind, BackgroundModel, ColorSample, SampleSource
from .contrast import hex_to_rgb

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)


def rgba_array(img: Image.Image) -> np.ndarray:
    """Return the pixels of *img* as an ``(H, W, 4)`` uint8 array."""
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return np.asarray(img, dtype=np.uint8)


def color_distance(rgb: np.ndarray, color: Sequence[float]) -> np.ndarray:
    """Euclidean RGB distance between each pixel of *rgb* and *color*."""
    diff = rgb[..., :3].astype(np.float32) - np.asarray(color[:3], dtype=np.float32)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def rgb_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.sqrt(sum((float(x) - float(y)) ** 2 for x, y in zip(a[:3], b[:3]))))


def transparent_fraction(img: Image.Image, alpha_cutoff: int = 50) -> float:
    """Share of pixels whose alpha is below *alpha_cutoff*."""
    pixels = rgba_array(img)
    total = pixels.shape[0] * pixels.shape[1]
    if total == 0:
        return 0.0
    return float(np.count_nonzero(pixels[..., 3] < alpha_cutoff)) / total


def mean_opaque_color(pixels: np.ndarray, alpha_cutoff: int) -> RGB | None:
    """Mean RGB of pixels whose alpha exceeds *alpha_cutoff*."""
    solid = pixels[..., 3] > alpha_cutoff
    if not solid.any():
        return None
    mean = pixels[..., :3][solid].astype(np.float64).mean(axis=0)
    return _round_rgb(mean)


def classify_background(
    img: Image.Image,
    settings: "ConversionSettings",
    border_color: RGB | None = None,
) -> BackgroundModel:
    """Select the background model for *img*.

    *border_color* is the uniform padding stripped by the first trim, if any.
    It replaces the corner sample when the trimmed content is a single flat
    colour that differs from that padding.
    """
    pixels = rgba_array(img)
    height, width = pixels.shape[:2]
    total = height * width
    if total == 0:
        raise ValueError("Cannot classify an empty image")

    fraction = float(np.count_nonzero(pixels[..., 3] < settings.keying_alpha)) / total
    if fraction > settings.transparent_fraction:
        mean = mean_opaque_color(pixels, settings.opaque_alpha)
        if mean is None:
            sample = ColorSample(hex_to_rgb(settings.neutral_contrast), SampleSource.DEFAULT)
        else:
            sample = ColorSample(mean, SampleSource.AVERAGED)
        logger.debug("Transparent model (%.1f%% keyed), mean %s", fraction * 100, sample.hex)
        return BackgroundModel(
            kind=BackgroundKind.TRANSPARENT,
            color=sample,
            transparent_fraction=fraction,
        )

    corner = _pixel_rgb(pixels, 0, 0)
    center = _pixel_rgb(pixels, height // 2, width // 2)
    corner_share = _share_within(pixels, corner, settings.color_distance)
    center_share = _share_within(pixels, center, settings.color_distance)

    if (
        border_color is not None
        and corner_share >= settings.uniform_share
        and rgb_distance(border_color, corner) > settings.color_distance
    ):
        logger.debug(
            "Uniform content %s after trim; using stripped border %s",
            corner,
            border_color,
        )
        return BackgroundModel(
            kind=BackgroundKind.OPAQUE_CORNER,
            color=ColorSample(tuple(int(c) for c in border_color), SampleSource.BORDER),
            transparent_fraction=fraction,
            corner_share=_share_within(pixels, border_color, settings.color_distance),
            center_share=center_share,
        )

    separation = rgb_distance(corner, center)
    if center_share > settings.center_dominance and separation > settings.corner_center_separation:
        kind = BackgroundKind.OPAQUE_CENTER
        sample = ColorSample(center, SampleSource.CENTER)
    else:
        kind = BackgroundKind.OPAQUE_CORNER
        sample = ColorSample(corner, SampleSource.CORNER)
    logger.debug(
        "%s: corner %s (%.2f) center %s (%.2f) separation %.1f",
        kind.value,
        corner,
        corner_share,
        center,
        center_share,
        separation,
    )
    return BackgroundModel(
        kind=kind,
        color=sample,
        transparent_fraction=fraction,
        corner_share=corner_share,
        center_share=center_share,
    )


def _pixel_rgb(pixels: np.ndarray, row: int, col: int) -> RGB:
    r, g, b = (int(v) for v in pixels[row, col, :3])
    return (r, g, b)


def _share_within(pixels: np.ndarray, color: Sequence[int], threshold: float) -> float:
    near = color_distance(pixels, color) <= threshold
    return float(np.count_nonzero(near)) / near.size


def _round_rgb(values: np.ndarray) -> RGB:
    r, g, b = (int(np.floor(v + 0.5)) for v in values[:3])
    return (r, g, b)
