"""Command-line interface for the logo_pins project."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import ConversionSettings, load_settings
from .io.outputs import write_summary, write_theme_config
from .io.report import write_audit_report
from .pipeline import BatchReport, discover_inputs, run_batch

DEFAULT_OUT_DIRNAME = "svgs"
THEME_CONFIG_NAME = "configuration.json"
REPORT_NAME = "audit.html"
SUMMARY_NAME = "summary.csv"


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the logo conversion batch."""
    parser = argparse.ArgumentParser(
        description="Convert a directory of raster logos into 24x24 map-pin SVG icons."
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Directory containing PNG/JPEG/WEBP logo files.",
    )
    parser.add_argument(
        "--out",
        required=False,
        default=None,
        help=f"Directory for SVGs and reports (default: <input>/{DEFAULT_OUT_DIRNAME}).",
    )
    parser.add_argument(
        "--settings",
        required=False,
        default=None,
        help="JSON file overriding conversion thresholds.",
    )
    parser.add_argument(
        "--palette-size",
        type=int,
        default=None,
        metavar="K",
        help="Number of dominant colours to trace as stacked layers (default 1).",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="URL prefix for SVG references in the theme configuration.",
    )
    parser.add_argument(
        "--potrace",
        default=None,
        metavar="BIN",
        help="Path to the potrace executable.",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        metavar="N",
        help="Convert N logos concurrently (default 1).",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip writing the HTML audit report.",
    )
    parser.add_argument(
        "--no-theme-config",
        action="store_true",
        help="Skip writing the theme configuration document.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def resolve_settings(args: argparse.Namespace) -> ConversionSettings:
    """Load the settings file and apply command-line overrides."""
    settings = load_settings(Path(args.settings) if args.settings else None)
    overrides: dict[str, Any] = {}
    if args.palette_size is not None:
        overrides["palette_size"] = args.palette_size
    if args.base_url is not None:
        overrides["base_url"] = args.base_url
    if args.potrace is not None:
        overrides["potrace_bin"] = args.potrace
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _write_artifacts(
    report: BatchReport, out_dir: Path, args: argparse.Namespace
) -> None:
    summary_path = write_summary(out_dir / SUMMARY_NAME, report.outcomes)
    print(f"[summary] {summary_path}")
    if not args.no_report:
        report_path = write_audit_report(out_dir / REPORT_NAME, report.outcomes)
        print(f"[report] {report_path}")
    if not args.no_theme_config:
        config_path = write_theme_config(out_dir / THEME_CONFIG_NAME, report.theme)
        print(f"[config] {config_path} ({len(report.theme)} entries)")


def _print_summary(report: BatchReport) -> None:
    for outcome in report.outcomes:
        if outcome.ok and outcome.result is not None:
            result = outcome.result
            flag = " (low confidence)" if result.low_confidence else ""
            print(f"[saved] {outcome.source.name}: {result.method} {result.fill_color}{flag}")
        else:
            print(f"[warn] {outcome.source.name}: {outcome.error_kind} - {outcome.reason}")
    total = len(report.outcomes)
    print(f"Total logos: {total}")
    print(f"Converted: {len(report.converted)}")
    print(f"Failed: {len(report.failed)}")


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    input_dir = Path(args.input)
    out_dir = Path(args.out) if args.out else input_dir / DEFAULT_OUT_DIRNAME
    try:
        settings = resolve_settings(args)
        files = discover_inputs(input_dir)
    except (OSError, ValueError) as exc:
        print(f"[error] {exc}")
        return 2
    print(f"Found {len(files)} logo file(s) in {input_dir}")
    if not files:
        print(f"[warn] no logo files found in {input_dir}")

    report = run_batch(files, out_dir, settings, jobs=max(1, args.jobs))
    _print_summary(report)
    try:
        _write_artifacts(report, out_dir, args)
    except OSError as exc:
        print(f"[error] failed to write reports: {exc}")
        return 1
    return 0 if not report.failed else 1


if __name__ == "__main__":
    raise SystemExit(main())
