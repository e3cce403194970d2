"""Per-logo conversion and the isolated batch loop around it."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Iterable, Iterator, List

from PIL import Image
from tqdm import tqdm

from .config import IMAGE_EXTENSIONS, ConversionSettings
from .errors import ConversionError, TracerError, WriteError
from .extract.crop import double_trim
from .extract.normalize import normalize_logo
from .features.background import classify_background
from .features.contrast import contrast_color
from .features.mask import extract_foreground
from .io.models import ConversionResult, FileOutcome, TracedLayer
from .io.outputs import ThemeConfig, write_svg
from .layout.placement import place_on_canvas, placement_spec
from .vector.assemble import assemble_svg, optimize_svg
from .vector.trace import trace_mask

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BatchReport:
    """Outcome of a batch run: one record per input plus the theme document."""

    outcomes: List[FileOutcome] = field(default_factory=list)
    theme: ThemeConfig = field(default_factory=ThemeConfig)

    @property
    def converted(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


def discover_inputs(input_dir: Path, extensions: Iterable[str] = IMAGE_EXTENSIONS) -> list[Path]:
    """Return raster files in *input_dir* whose extension matches, sorted by name."""
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Input directory does not exist: {input_dir}")
    allowed = {ext.lower() for ext in extensions}
    return sorted(
        (path for path in input_dir.iterdir() if path.is_file() and path.suffix.lower() in allowed),
        key=lambda path: path.name,
    )


def convert_logo(
    source: Path,
    settings: ConversionSettings,
    image: Image.Image | None = None,
) -> ConversionResult:
    """Convert one raster logo into an optimized SVG held in memory.

    *image* may be supplied to skip decoding *source*; the path is then used
    only for naming.
    """
    normalized = normalize_logo(image if image is not None else source, settings)
    model = classify_background(normalized.image, settings, normalized.border_color)
    extraction = extract_foreground(normalized.image, model, settings)
    if extraction.low_confidence:
        logger.warning("%s: no foreground detected, low-confidence result", source.name)
    trimmed, _ = double_trim(extraction, settings.trim_threshold)

    spec = placement_spec(settings)
    layers: list[TracedLayer] = []
    for entry, layer_mask in zip(trimmed.palette, trimmed.layers):
        canvas, _ = place_on_canvas(layer_mask, spec)
        try:
            layers.append(trace_mask(canvas, entry.hex, settings))
        except TracerError as exc:
            if exc.source is None:
                exc.source = str(source)
            raise
    if not extraction.low_confidence and all(layer.is_empty for layer in layers):
        raise TracerError("Tracer returned no path data", source=str(source))

    fill = extraction.fill_color
    svg = optimize_svg(assemble_svg(layers, settings), settings)
    return ConversionResult(
        source=source,
        svg=svg,
        layers=layers,
        fill_color=fill,
        contrast_color=contrast_color(fill, model, settings, extraction.low_confidence),
        method=model.method,
        low_confidence=extraction.low_confidence,
    )


def attempt_conversion(source: Path, settings: ConversionSettings) -> FileOutcome:
    """Convert *source*, turning any failure into a recorded outcome."""
    try:
        return FileOutcome(source=source, result=convert_logo(source, settings))
    except ConversionError as exc:
        logger.warning("%s: %s failed: %s", source.name, exc.kind, exc)
        return FileOutcome(source=source, error_kind=exc.kind, reason=str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s: unexpected failure", source.name)
        return FileOutcome(source=source, error_kind="unexpected", reason=str(exc))


def run_batch(
    files: Iterable[Path],
    out_dir: Path,
    settings: ConversionSettings,
    jobs: int = 1,
    progress: bool = True,
) -> BatchReport:
    """Convert every file, write its SVG and accumulate the theme document.

    Conversions may run on *jobs* threads; results are consumed in input order
    so the outcome list and theme entries match a sequential run.
    """
    paths = list(files)
    theme = ThemeConfig.from_settings(settings)
    outcomes: list[FileOutcome] = []
    claimed: dict[str, Path] = {}
    for outcome in tqdm(
        _conversions(paths, settings, jobs),
        total=len(paths),
        desc="Converting logos",
        unit="logo",
        leave=False,
        disable=not progress,
    ):
        outcome, theme = _finish(outcome, out_dir, theme, claimed)
        outcomes.append(outcome)
    return BatchReport(outcomes=outcomes, theme=theme)


def _conversions(
    paths: list[Path], settings: ConversionSettings, jobs: int
) -> Iterator[FileOutcome]:
    convert = partial(attempt_conversion, settings=settings)
    if jobs <= 1 or len(paths) <= 1:
        for path in paths:
            yield convert(path)
        return
    with ThreadPoolExecutor(max_workers=jobs) as executor:
        yield from executor.map(convert, paths)


def _finish(
    outcome: FileOutcome,
    out_dir: Path,
    theme: ThemeConfig,
    claimed: dict[str, Path],
) -> tuple[FileOutcome, ThemeConfig]:
    """Write the SVG of a successful outcome and add it to *theme*.

    *claimed* maps each SVG stem already written in this batch to its input;
    a later input with the same stem is recorded as a write failure.
    """
    result = outcome.result
    if result is None:
        return outcome, theme
    try:
        first = claimed.get(result.name)
        if first is not None:
            raise WriteError(
                f"{result.name}.svg was already written for {first.name}",
                source=str(result.source),
            )
        result.svg_path = write_svg(result, out_dir)
        claimed[result.name] = result.source
    except ConversionError as exc:
        logger.warning("%s: %s failed: %s", outcome.source.name, exc.kind, exc)
        return FileOutcome(source=outcome.source, error_kind=exc.kind, reason=str(exc)), theme
    return outcome, theme.with_result(result)
