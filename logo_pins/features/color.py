"""Dominant foreground colour extraction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from ..io.models import PaletteEntry
from .background import rgba_array

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)

DEFAULT_FILL = PaletteEntry(rgb=(0, 0, 0), count=0)


def mean_color(img: Image.Image, mask: np.ndarray) -> PaletteEntry | None:
    """Return the mean RGB of the pixels selected by *mask*."""
    pixels = rgba_array(img)
    if mask.shape != pixels.shape[:2]:
        raise ValueError("mask must match the image dimensions")
    selected = pixels[..., :3][mask]
    if selected.size == 0:
        return None
    mean = selected.astype(np.float64).mean(axis=0)
    rgb = tuple(int(np.floor(v + 0.5)) for v in mean)
    return PaletteEntry(rgb=rgb, count=int(selected.shape[0]))


def dominant_colors(
    img: Image.Image,
    mask: np.ndarray,
    k: int = 3,
    quantize: int = 16,
    alpha_cutoff: int = 128,
) -> list[PaletteEntry]:
    """Return the *k* most frequent quantised colours under *mask*.

    Pixels are bucketed by ``channel // quantize``; each returned entry is
    coloured by the mean of its bucket's members, so anti-aliased edges do not
    split a strong colour into many near-identical hex values.
    """
    if k <= 0:
        return []
    pixels = rgba_array(img)
    if mask.shape != pixels.shape[:2]:
        raise ValueError("mask must match the image dimensions")
    selected = mask & (pixels[..., 3] >= alpha_cutoff)
    rgb = pixels[..., :3][selected].astype(np.int64)
    if rgb.size == 0:
        return []

    buckets = rgb // max(1, quantize)
    keys = (buckets[:, 0] << 16) | (buckets[:, 1] << 8) | buckets[:, 2]
    unique, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    # most frequent first, ties broken by bucket key for determinism
    order = np.lexsort((unique, -counts))[:k]

    palette: list[PaletteEntry] = []
    for index in order:
        members = rgb[inverse == index]
        mean = members.astype(np.float64).mean(axis=0)
        palette.append(
            PaletteEntry(
                rgb=tuple(int(np.floor(v + 0.5)) for v in mean),
                count=int(counts[index]),
            )
        )
    return palette


def extract_palette(
    img: Image.Image, mask: np.ndarray, settings: "ConversionSettings"
) -> tuple[list[PaletteEntry], bool]:
    """Return the foreground palette and whether it is a low-confidence fallback.

    A palette size of one uses the running mean of every foreground pixel;
    larger sizes use the quantised frequency histogram.
    """
    if not mask.any():
        logger.warning("No foreground pixels; falling back to %s", DEFAULT_FILL.hex)
        return [DEFAULT_FILL], True

    if settings.palette_size > 1:
        palette = dominant_colors(
            img,
            mask,
            k=settings.palette_size,
            quantize=settings.palette_quantize,
            alpha_cutoff=settings.palette_alpha,
        )
        if palette:
            return palette, False
        logger.debug("Histogram empty above alpha %d; using mean colour", settings.palette_alpha)

    entry = mean_color(img, mask)
    if entry is None:  # pragma: no cover - mask.any() guarantees members
        return [DEFAULT_FILL], True
    return [entry], False
