"""Output helpers for persisting batch results."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Sequence

import pandas as pd

from ..errors import WriteError
from .models import ConversionResult, FileOutcome

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "file",
    "status",
    "error_kind",
    "reason",
    "method",
    "fill_color",
    "contrast_color",
    "low_confidence",
    "layers",
]


@dataclass(frozen=True, slots=True)
class ThemeConfig:
    """Categorised map-theme document accumulated across a batch.

    Instances are immutable; :meth:`with_entry` returns a new value so each
    conversion step can hand the accumulator on without shared state.
    """

    base_url: str = ""
    title: str = "THEME"
    theme_field: str = "field"
    category_field: str = "retailer"
    template: str = "template_pin"
    placeholder: str = "#FF69B4"
    legend_scale: float = 0.6
    entries: Mapping[str, Mapping[str, Any]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_settings(cls, settings: "ConversionSettings") -> "ThemeConfig":
        return cls(
            base_url=settings.base_url,
            title=settings.theme_title,
            theme_field=settings.theme_field,
            category_field=settings.category_field,
            template=settings.pin_template,
            placeholder=settings.pin_placeholder,
            legend_scale=settings.legend_scale,
        )

    def style_for(self, pin_color: str, svg_name: str) -> dict[str, Any]:
        return {
            "field": self.category_field,
            "style": {
                "icon": [
                    {
                        "type": "template",
                        "template": self.template,
                        "substitute": {self.placeholder: pin_color},
                        "legendScale": self.legend_scale,
                    },
                    {"svg": f"{self.base_url}{svg_name}"},
                ]
            },
        }

    def with_entry(self, name: str, pin_color: str, svg_name: str) -> "ThemeConfig":
        """Return a copy with *name* mapped to a pin style."""
        entries = dict(self.entries)
        entries[name] = self.style_for(pin_color, svg_name)
        return replace(self, entries=MappingProxyType(entries))

    def with_result(self, result: ConversionResult) -> "ThemeConfig":
        svg_name = result.svg_path.name if result.svg_path else f"{result.name}.svg"
        return self.with_entry(result.name, result.contrast_color, svg_name)

    def merge(self, other: "ThemeConfig") -> "ThemeConfig":
        """Append *other*'s entries after this one's; later names win."""
        entries = dict(self.entries)
        entries.update(other.entries)
        return replace(self, entries=MappingProxyType(entries))

    def to_document(self) -> dict[str, Any]:
        return {
            "style": {
                "theme": {
                    "title": self.title,
                    "field": self.theme_field,
                    "type": "categorized",
                    "distribution": "count",
                    "cat": {name: _thaw(style) for name, style in self.entries.items()},
                }
            }
        }

    def __len__(self) -> int:
        return len(self.entries)


def write_svg(result: ConversionResult, out_dir: Path) -> Path:
    """Write the SVG for *result* into *out_dir* and return its path."""
    path = out_dir / f"{result.source.stem}.svg"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(result.svg, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Cannot write {path}: {exc}", source=str(result.source)) from exc
    return path


def write_theme_config(path: Path, theme: ThemeConfig) -> Path:
    """Write *theme* to *path* as JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(theme.to_document(), indent=2), encoding="utf-8")
    return path


def summary_rows(outcomes: Sequence[FileOutcome]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for outcome in outcomes:
        result = outcome.result
        rows.append(
            {
                "file": outcome.source.name,
                "status": "ok" if outcome.ok else "failed",
                "error_kind": outcome.error_kind,
                "reason": outcome.reason,
                "method": result.method if result else None,
                "fill_color": result.fill_color if result else None,
                "contrast_color": result.contrast_color if result else None,
                "low_confidence": result.low_confidence if result else None,
                "layers": sum(1 for layer in result.layers if not layer.is_empty)
                if result
                else None,
            }
        )
    return rows


def write_summary(path: Path, outcomes: Sequence[FileOutcome]) -> Path:
    """Write the per-file outcome table to *path* as CSV."""
    df = pd.DataFrame(summary_rows(outcomes), columns=SUMMARY_COLUMNS)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.debug("Wrote %d summary rows to %s", len(df), path)
    return path


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_thaw(item) for item in value]
    return value
