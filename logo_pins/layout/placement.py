"""Fit a cropped mask into the pin-head box and composite it on the canvas."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import cv2
import numpy as np

from ..io.models import Placement, PlacementSpec

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings


def placement_spec(settings: "ConversionSettings") -> PlacementSpec:
    """Translate viewBox-unit settings into supersampled canvas pixels."""
    box_width, box_height = settings.target_box
    anchor_x, anchor_y = settings.anchor
    return PlacementSpec(
        box_width=box_width,
        box_height=box_height,
        canvas_size=settings.canvas_size,
        anchor_x=anchor_x,
        anchor_y=anchor_y,
    )


def fit_mask(mask: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize *mask* to fit a *width* x *height* box and pad it to that size.

    Aspect ratio is preserved; the content is centred and the short axis is
    padded with background.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Target box must have positive dimensions")
    boxed = np.zeros((height, width), dtype=bool)
    src_h, src_w = mask.shape[:2]
    if src_h == 0 or src_w == 0:
        return boxed

    factor = min(width / src_w, height / src_h)
    new_w = max(1, min(width, int(round(src_w * factor))))
    new_h = max(1, min(height, int(round(src_h * factor))))
    if (new_w, new_h) == (src_w, src_h):
        resized = mask.astype(bool)
    else:
        interpolation = cv2.INTER_AREA if factor < 1.0 else cv2.INTER_LINEAR
        coverage = cv2.resize(
            mask.astype(np.float32), (new_w, new_h), interpolation=interpolation
        )
        resized = coverage >= 0.5

    offset_x = (width - new_w) // 2
    offset_y = (height - new_h) // 2
    boxed[offset_y : offset_y + new_h, offset_x : offset_x + new_w] = resized
    return boxed


def compute_offset(spec: PlacementSpec) -> Placement:
    """Top-left offset that centres the box on the anchor.

    Offsets are clamped to the canvas: never negative, and never so large that
    the box would overhang the right or bottom edge.
    """
    left = _round_half_up(spec.anchor_x - spec.box_width / 2)
    top = _round_half_up(spec.anchor_y - spec.box_height / 2)
    left = min(max(0, left), max(0, spec.canvas_size - spec.box_width))
    top = min(max(0, top), max(0, spec.canvas_size - spec.box_height))
    return Placement(left=left, top=top, width=spec.box_width, height=spec.box_height)


def place_on_canvas(mask: np.ndarray, spec: PlacementSpec) -> tuple[np.ndarray, Placement]:
    """Composite *mask* onto an empty canvas at the pin-head position."""
    width = min(spec.box_width, spec.canvas_size)
    height = min(spec.box_height, spec.canvas_size)
    fitted = fit_mask(mask, width, height)
    placement = compute_offset(
        PlacementSpec(
            box_width=width,
            box_height=height,
            canvas_size=spec.canvas_size,
            anchor_x=spec.anchor_x,
            anchor_y=spec.anchor_y,
        )
    )
    canvas = np.zeros((spec.canvas_size, spec.canvas_size), dtype=bool)
    canvas[placement.top : placement.bottom, placement.left : placement.right] = fitted
    return canvas, placement


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
