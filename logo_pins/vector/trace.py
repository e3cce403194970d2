"""Adapter around the ``potrace`` executable.

The canvas mask is encoded as a PBM bitmap in memory and piped to potrace
over stdin; the SVG it writes to stdout is parsed for path data. No temporary
files are involved.
"""

from __future__ import annotations

import logging
import subprocess
import xml.etree.ElementTree as ET
from io import BytesIO
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image
from tenacity import (  # type: ignore[import-untyped]
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import TracerError
from ..extract.crop import mask_to_image
from ..io.models import TracedLayer

if TYPE_CHECKING:  # pragma: no cover
    from ..config import ConversionSettings

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"


def encode_bitmap(mask: np.ndarray) -> bytes:
    """Encode *mask* as a binary PBM (P4) with foreground pixels set."""
    if mask.ndim != 2 or mask.size == 0:
        raise ValueError("mask must be a non-empty 2-D array")
    bitmap = mask_to_image(mask).convert("1", dither=Image.Dither.NONE)
    buffer = BytesIO()
    bitmap.save(buffer, format="PPM")
    return buffer.getvalue()


def potrace_command(settings: "ConversionSettings") -> list[str]:
    return [
        settings.potrace_bin,
        "--svg",
        "--output",
        "-",
        "--turdsize",
        str(settings.turd_size),
        "--opttolerance",
        f"{settings.opt_tolerance:g}",
        "--alphamax",
        f"{settings.alpha_max:g}",
        "-",
    ]


def parse_potrace_svg(svg_text: str) -> tuple[list[str], str | None]:
    """Return the path-data strings and group transform from potrace output."""
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as exc:
        raise TracerError(f"Tracer returned malformed SVG: {exc}") from exc

    transform: str | None = None
    for group in _iter_tag(root, "g"):
        value = group.get("transform")
        if value:
            transform = " ".join(value.split())
            break

    paths: list[str] = []
    for element in _iter_tag(root, "path"):
        data = element.get("d")
        if data and data.strip():
            paths.append(" ".join(data.split()))
    return paths, transform


def trace_mask(mask: np.ndarray, color: str, settings: "ConversionSettings") -> TracedLayer:
    """Trace the foreground of *mask* into vector paths filled with *color*.

    An empty mask yields an empty layer without invoking the tracer.
    """
    if not mask.any():
        return TracedLayer(color=color, paths=())

    payload = encode_bitmap(mask)
    command = potrace_command(settings)
    retryer = Retrying(
        stop=stop_after_attempt(settings.trace_retries),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(subprocess.TimeoutExpired),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )
    try:
        completed = retryer(_run_once, command, payload, settings.trace_timeout)
    except FileNotFoundError as exc:
        raise TracerError(f"Tracer executable not found: {settings.potrace_bin}") from exc
    except subprocess.TimeoutExpired as exc:
        raise TracerError(
            f"Tracer timed out after {settings.trace_retries} attempt(s) "
            f"of {settings.trace_timeout:g}s"
        ) from exc

    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        raise TracerError(f"Tracer exited with status {completed.returncode}: {stderr}")

    paths, transform = parse_potrace_svg(completed.stdout.decode("utf-8", errors="replace"))
    logger.debug("Traced %d path(s) for %s", len(paths), color)
    return TracedLayer(color=color, paths=tuple(paths), transform=transform)


def _run_once(command: list[str], payload: bytes, timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(
        command,
        input=payload,
        capture_output=True,
        timeout=timeout,
        check=False,
    )


def _iter_tag(root: ET.Element, name: str):
    for element in root.iter():
        tag = element.tag.split("}")[-1] if "}" in element.tag else element.tag
        if tag == name:
            yield element
