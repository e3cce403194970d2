"""Binary logo/background masks derived from a background model."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import cv2
import numpy as np
from PIL import Image

from ..errors import EmptyForegroundError
from ..io.models import BackgroundKind, BackgroundModel, Extraction, PaletteEntry
from .background import color_distance, rgba_array
from .color import extract_palette

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)


def build_mask(
    img: Image.Image, model: BackgroundModel, settings: "ConversionSettings"
) -> np.ndarray:
    """Return a boolean mask, ``True`` where a pixel is logo content.

    Pixels below ``mask_alpha`` are never foreground. Solid pixels are
    foreground when farther than ``color_distance`` from the model colour.
    """
    pixels = rgba_array(img)
    solid = pixels[..., 3] >= settings.mask_alpha
    mask = solid & (color_distance(pixels, model.color.rgb) > settings.color_distance)

    if model.kind is BackgroundKind.TRANSPARENT and not mask.any():
        # single-colour cut-out: the alpha channel alone carries the shape
        logger.debug("Distance split empty for transparent image; keying on alpha")
        mask = solid.copy()
    elif model.kind is BackgroundKind.OPAQUE_CENTER and settings.exclude_exterior:
        mask &= ~exterior_region(pixels, settings.color_distance)
    return mask


def exterior_region(pixels: np.ndarray, threshold: float) -> np.ndarray:
    """Pixels matching the corner colour that are connected to the image edge."""
    corner = pixels[0, 0, :3]
    near = (color_distance(pixels, corner) <= threshold).astype(np.uint8)
    if not near.any():
        return near.astype(bool)
    _, labels = cv2.connectedComponents(near, connectivity=4)
    edge_labels = np.unique(
        np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]))
    )
    edge_labels = edge_labels[edge_labels != 0]
    return np.isin(labels, edge_labels) & near.astype(bool)


def split_layers(
    img: Image.Image, mask: np.ndarray, palette: Sequence[PaletteEntry]
) -> list[np.ndarray]:
    """Assign every foreground pixel to its nearest palette colour."""
    if len(palette) <= 1:
        return [mask.copy()]
    pixels = rgba_array(img)
    distances = np.stack([color_distance(pixels, entry.rgb) for entry in palette])
    nearest = np.argmin(distances, axis=0)
    return [mask & (nearest == index) for index in range(len(palette))]


def extract_foreground(
    img: Image.Image,
    model: BackgroundModel,
    settings: "ConversionSettings",
    strict: bool = False,
) -> Extraction:
    """Build the mask, palette and colour layers for *img* in one pass.

    With *strict* an empty foreground raises :class:`EmptyForegroundError`
    instead of falling back to the default fill.
    """
    mask = build_mask(img, model, settings)
    if strict and not mask.any():
        raise EmptyForegroundError("Classification left no foreground pixels")
    palette, low_confidence = extract_palette(img, mask, settings)
    layers = split_layers(img, mask, palette)
    return Extraction(mask=mask, palette=palette, layers=layers, low_confidence=low_confidence)
