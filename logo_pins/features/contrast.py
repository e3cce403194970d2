"""Pin-body colour selection based on perceptual luma."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Sequence

from ..io.models import BackgroundModel, SampleSource, rgb_to_hex

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)

_HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")

# ITU-R BT.709 coefficients
_LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Parse ``#rrggbb`` or ``#rgb`` into an RGB triple."""
    match = _HEX_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Not a hex colour: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def luma(rgb: Sequence[float]) -> float:
    """Return perceptual brightness of *rgb* on a 0-255 scale."""
    r, g, b = rgb[:3]
    return _LUMA_WEIGHTS[0] * r + _LUMA_WEIGHTS[1] * g + _LUMA_WEIGHTS[2] * b


def candidate_color(
    model: BackgroundModel,
    settings: "ConversionSettings",
    fill_hex: str | None = None,
    low_confidence: bool = False,
) -> str:
    """Return the model-derived pin colour before the legibility check.

    Transparent logos have no background of their own, so the pin follows the
    fill: a light neutral behind dark marks, the dark neutral behind light
    ones. Without a usable fill the neutral default is used.
    """
    if not model.is_transparent:
        return model.color.hex
    if fill_hex is None or low_confidence or model.color.source is SampleSource.DEFAULT:
        return settings.neutral_contrast
    if luma(hex_to_rgb(fill_hex)) < settings.transparent_split_luma:
        return settings.light_contrast
    return settings.dark_contrast


def contrast_color(
    fill_hex: str,
    model: BackgroundModel,
    settings: "ConversionSettings",
    low_confidence: bool = False,
) -> str:
    """Return a pin-body colour that keeps *fill_hex* legible.

    When both the fill and the candidate pin colour are light, the pin is
    replaced with the configured dark neutral.
    """
    candidate = candidate_color(model, settings, fill_hex, low_confidence)
    fill_luma = luma(hex_to_rgb(fill_hex))
    candidate_luma = luma(hex_to_rgb(candidate))
    if fill_luma > settings.light_luma and candidate_luma > settings.light_luma:
        logger.debug(
            "Light fill %s (%.1f) on light pin %s (%.1f); using %s",
            fill_hex,
            fill_luma,
            candidate,
            candidate_luma,
            settings.dark_contrast,
        )
        return rgb_to_hex(hex_to_rgb(settings.dark_contrast))
    return rgb_to_hex(hex_to_rgb(candidate))
