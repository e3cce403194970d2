"""Data models shared across the logo conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Tuple

import numpy as np

RGB = Tuple[int, int, int]
BBox = Tuple[int, int, int, int]


def rgb_to_hex(rgb: RGB) -> str:
    """Return ``#rrggbb`` for an RGB triple."""
    return "#" + "".join(f"{max(0, min(255, int(c))):02x}" for c in rgb)


class BackgroundKind(str, Enum):
    """Which region of an image is treated as background."""

    TRANSPARENT = "transparent"
    OPAQUE_CORNER = "opaque-corner"
    OPAQUE_CENTER = "opaque-center"


class SampleSource(str, Enum):
    """Provenance of a sampled colour."""

    CORNER = "corner"
    CENTER = "center"
    AVERAGED = "averaged"
    BORDER = "border"
    DEFAULT = "default"


_METHOD_LABELS = {
    BackgroundKind.TRANSPARENT: "Transparent Extract",
    BackgroundKind.OPAQUE_CORNER: "Box Drill-Down",
    BackgroundKind.OPAQUE_CENTER: "Panel Drill-Down",
}


@dataclass(frozen=True, slots=True)
class ColorSample:
    """An RGB colour plus where it was sampled from."""

    rgb: RGB
    source: SampleSource

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


@dataclass(frozen=True, slots=True)
class BackgroundModel:
    """Background decision for one image."""

    kind: BackgroundKind
    color: ColorSample
    transparent_fraction: float = 0.0
    corner_share: float = 0.0
    center_share: float = 0.0

    @property
    def method(self) -> str:
        return _METHOD_LABELS[self.kind]

    @property
    def is_transparent(self) -> bool:
        return self.kind is BackgroundKind.TRANSPARENT


@dataclass(frozen=True, slots=True)
class PaletteEntry:
    """A dominant foreground colour and the number of pixels supporting it."""

    rgb: RGB
    count: int

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)


@dataclass(slots=True)
class Extraction:
    """Foreground mask, palette and per-colour layers for one image."""

    mask: np.ndarray
    palette: List[PaletteEntry]
    layers: List[np.ndarray] = field(default_factory=list)
    low_confidence: bool = False

    @property
    def fill_color(self) -> str:
        return self.palette[0].hex

    @property
    def foreground_pixels(self) -> int:
        return int(np.count_nonzero(self.mask))


@dataclass(frozen=True, slots=True)
class PlacementSpec:
    """Target box, canvas and anchor, all in supersampled canvas pixels."""

    box_width: int
    box_height: int
    canvas_size: int
    anchor_x: float
    anchor_y: float


@dataclass(frozen=True, slots=True)
class Placement:
    """Resolved top-left offset and size of the content on the canvas."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True, slots=True)
class TracedLayer:
    """Path geometry returned by the tracer for one fill colour."""

    color: str
    paths: Tuple[str, ...]
    transform: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.paths


@dataclass(slots=True)
class ConversionResult:
    """Everything produced by converting a single logo."""

    source: Path
    svg: str
    layers: List[TracedLayer]
    fill_color: str
    contrast_color: str
    method: str
    low_confidence: bool = False
    svg_path: Path | None = None

    @property
    def name(self) -> str:
        return self.source.stem


@dataclass(slots=True)
class FileOutcome:
    """Success or failure record for one input file."""

    source: Path
    result: ConversionResult | None = None
    error_kind: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.error_kind is None
