"""Second-stage trimming of the extracted mask."""

from __future__ import annotations

from dataclasses import replace

import numpy as np
from PIL import Image

from ..io.models import BBox, Extraction
from .normalize import find_trim_box

_WHITE = (255, 255, 255, 255)


def mask_to_image(mask: np.ndarray) -> Image.Image:
    """Render *mask* as a greyscale image: foreground black, background white."""
    return Image.fromarray(np.where(mask, 0, 255).astype(np.uint8))


def tight_bbox(mask: np.ndarray, threshold: int = 10) -> BBox | None:
    """Bounding box of the foreground, using the same trim routine as the input.

    Returns ``None`` for an empty mask.
    """
    if mask.size == 0:
        return None
    return find_trim_box(mask_to_image(mask), threshold, background=_WHITE)


def crop_mask(mask: np.ndarray, box: BBox | None) -> np.ndarray:
    if box is None:
        return mask.copy()
    left, top, right, bottom = box
    return mask[top:bottom, left:right].copy()


def double_trim(extraction: Extraction, threshold: int = 10) -> tuple[Extraction, BBox | None]:
    """Crop the mask and every colour layer to the foreground's tight box.

    An empty mask is returned uncropped.
    """
    box = tight_bbox(extraction.mask, threshold)
    if box is None:
        return extraction, None
    trimmed = replace(
        extraction,
        mask=crop_mask(extraction.mask, box),
        layers=[crop_mask(layer, box) for layer in extraction.layers],
    )
    return trimmed, box
