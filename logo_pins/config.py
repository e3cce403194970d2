"""Tunable thresholds and output settings for logo conversion."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from .features.contrast import hex_to_rgb, luma

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")


@dataclass(frozen=True, slots=True)
class ConversionSettings:
    """Every threshold used by the pipeline.

    Geometry fields (``target_*``, ``anchor_*``) are expressed in viewBox
    units and multiplied by ``scale`` to obtain supersampled canvas pixels.
    """

    # output geometry
    viewbox_size: int = 24
    scale: int = 10
    target_width: float = 18.0
    target_height: float = 14.0
    anchor_x: float = 12.0
    anchor_y: float = 9.0

    # normalization
    analysis_size: int = 800
    allow_upscale: bool = False
    trim_threshold: int = 10

    # classification
    keying_alpha: int = 50
    transparent_fraction: float = 0.10
    opaque_alpha: int = 100
    color_distance: float = 45.0
    center_dominance: float = 0.40
    corner_center_separation: float = 50.0
    exclude_exterior: bool = True
    uniform_share: float = 0.99

    # masking and palette
    mask_alpha: int = 100
    palette_alpha: int = 128
    palette_size: int = 1
    palette_quantize: int = 16

    # pin contrast
    light_luma: float = 165.0
    transparent_split_luma: float = 128.0
    dark_contrast: str = "#333333"
    light_contrast: str = "#F0F2F5"
    neutral_contrast: str = "#D9DBDA"

    # tracer
    potrace_bin: str = "potrace"
    turd_size: int = 20
    opt_tolerance: float = 0.2
    alpha_max: float = 1.0
    trace_timeout: float = 30.0
    trace_retries: int = 2

    # optimizer
    path_precision: int = 5
    collapse_groups: bool = True
    keep_dimensions: bool = True

    # theme configuration document
    base_url: str = ""
    theme_title: str = "THEME"
    theme_field: str = "field"
    category_field: str = "retailer"
    pin_template: str = "template_pin"
    pin_placeholder: str = "#FF69B4"
    legend_scale: float = 0.6

    def __post_init__(self) -> None:
        if self.viewbox_size <= 0 or self.scale <= 0:
            raise ValueError("viewbox_size and scale must be positive")
        if self.analysis_size <= 0:
            raise ValueError("analysis_size must be positive")
        if not 0 < self.target_width <= self.viewbox_size:
            raise ValueError("target_width must fit inside the viewBox")
        if not 0 < self.target_height <= self.viewbox_size:
            raise ValueError("target_height must fit inside the viewBox")
        if self.palette_size < 1:
            raise ValueError("palette_size must be at least 1")
        if not 1 <= self.palette_quantize <= 128:
            raise ValueError("palette_quantize must be between 1 and 128")
        if not 0.0 <= self.transparent_fraction <= 1.0:
            raise ValueError("transparent_fraction must be within [0, 1]")
        if not 0.0 <= self.center_dominance <= 1.0:
            raise ValueError("center_dominance must be within [0, 1]")
        if not 0.0 < self.uniform_share <= 1.0:
            raise ValueError("uniform_share must be within (0, 1]")
        for name in ("keying_alpha", "opaque_alpha", "mask_alpha", "palette_alpha"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} must be within [0, 255]")
        if self.trace_retries < 1:
            raise ValueError("trace_retries must be at least 1")
        if self.trace_timeout <= 0:
            raise ValueError("trace_timeout must be positive")
        if self.path_precision < 1:
            raise ValueError("path_precision must be at least 1")
        if luma(hex_to_rgb(self.dark_contrast)) >= self.light_luma:
            raise ValueError("dark_contrast must be darker than light_luma")
        if not 0.0 < self.transparent_split_luma <= 255.0:
            raise ValueError("transparent_split_luma must be within (0, 255]")
        hex_to_rgb(self.neutral_contrast)
        hex_to_rgb(self.light_contrast)

    @property
    def canvas_size(self) -> int:
        """Side of the supersampled raster canvas in pixels."""
        return self.viewbox_size * self.scale

    @property
    def target_box(self) -> tuple[int, int]:
        return (
            int(round(self.target_width * self.scale)),
            int(round(self.target_height * self.scale)),
        )

    @property
    def anchor(self) -> tuple[float, float]:
        return (self.anchor_x * self.scale, self.anchor_y * self.scale)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def settings_from_mapping(data: Mapping[str, Any]) -> ConversionSettings:
    """Build settings from *data*, rejecting keys that are not settings."""
    known = {item.name for item in fields(ConversionSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")
    for item in fields(ConversionSettings):
        if item.name in data:
            _check_type(item.name, str(item.type), data[item.name])
    return ConversionSettings(**dict(data))


# field annotations are strings under postponed evaluation
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "int": (int,),
    "float": (int, float),
    "bool": (bool,),
    "str": (str,),
}


def _check_type(name: str, annotation: str, value: Any) -> None:
    expected = _FIELD_TYPES.get(annotation)
    if expected is None:
        return
    # bool is an int subclass; only bool fields accept it
    if isinstance(value, bool) and annotation != "bool":
        raise ValueError(f"Setting {name!r} must be {annotation}, got bool")
    if not isinstance(value, expected):
        raise ValueError(
            f"Setting {name!r} must be {annotation}, got {type(value).__name__}"
        )


def load_settings(path: Path | None) -> ConversionSettings:
    """Load settings overrides from a JSON file, or defaults when *path* is None."""
    if path is None:
        return ConversionSettings()
    if not path.exists():
        raise FileNotFoundError(f"Settings file does not exist: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Settings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    settings = settings_from_mapping(data)
    logger.debug("Loaded %d setting overrides from %s", len(data), path)
    return settings
