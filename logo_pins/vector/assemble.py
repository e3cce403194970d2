"""Wrap traced layers in a minimal SVG document and minify it."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Sequence

from scour import scour  # type: ignore[import-untyped]

from ..io.models import TracedLayer

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"

ET.register_namespace("", SVG_NS)


def assemble_svg(layers: Sequence[TracedLayer], settings: "ConversionSettings") -> str:
    """Return an SVG with one group per non-empty layer, scaled to the viewBox.

    Layers are stacked in order, so the most frequent colour is drawn first.
    Path geometry traced on the supersampled canvas is scaled back by
    ``1 / scale``.
    """
    size = str(settings.viewbox_size)
    root = ET.Element(
        f"{{{SVG_NS}}}svg",
        {"width": size, "height": size, "viewBox": f"0 0 {size} {size}"},
    )
    inverse = f"scale({1 / settings.scale:g})"
    for layer in layers:
        if layer.is_empty:
            continue
        transform = f"{inverse} {layer.transform}" if layer.transform else inverse
        group = ET.SubElement(
            root,
            f"{{{SVG_NS}}}g",
            {"transform": transform, "fill": layer.color, "stroke": "none"},
        )
        for data in layer.paths:
            ET.SubElement(group, f"{{{SVG_NS}}}path", {"d": data})
    return ET.tostring(root, encoding="unicode")


def scour_arguments(settings: "ConversionSettings") -> list[str]:
    arguments = [
        f"--set-precision={settings.path_precision}",
        "--strip-xml-prolog",
        "--remove-metadata",
        "--remove-descriptive-elements",
        "--enable-comment-stripping",
        "--enable-id-stripping",
        "--shorten-ids",
        "--indent=none",
        "--no-line-breaks",
        "--quiet",
    ]
    if not settings.collapse_groups:
        arguments.append("--disable-group-collapsing")
    if not settings.keep_dimensions:
        arguments.append("--enable-viewboxing")
    return arguments


def optimize_svg(svg_text: str, settings: "ConversionSettings") -> str:
    """Minify *svg_text* with scour using the configured precision and options."""
    options = scour.parse_args(scour_arguments(settings))
    optimized = scour.scourString(svg_text, options)
    logger.debug("Optimized SVG from %d to %d bytes", len(svg_text), len(optimized))
    return optimized.strip()
