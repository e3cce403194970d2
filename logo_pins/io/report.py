"""Browsable HTML audit of a conversion batch."""

from __future__ import annotations

import html
import os
from pathlib import Path
from typing import Sequence
from urllib.parse import quote

from .models import FileOutcome

# pin silhouette drawn in the 24-unit viewBox; the head is centred near (12, 10)
PIN_PATH = (
    "M 18.219 16.551 C 19.896 14.836 21.02 12.588 21.02 10.02 "
    "C 21.02 5.042 16.978 1 12 1 C 7.022 1 2.98 5.042 2.98 10.02 "
    "C 2.98 12.62 4.007 14.787 5.844 16.61 L 11.633 23 L 18.23 16.551 Z"
)

_STYLE = """
body { font-family: 'Segoe UI', sans-serif; background: #e0e0e0; padding: 20px; }
h1 { text-align: center; color: #333; }
.grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 20px; }
.tile { background: white; border-radius: 8px; box-shadow: 0 4px 12px rgba(0,0,0,0.1); overflow: hidden; }
.tile-header { background: #333; color: white; padding: 10px; font-size: 13px; font-weight: bold;
  white-space: nowrap; overflow: hidden; text-overflow: ellipsis; }
.tile-body { padding: 15px; display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 10px;
  text-align: center; align-items: end; }
.label { display: block; font-size: 10px; color: #666; margin-bottom: 5px; text-transform: uppercase;
  font-weight: bold; }
.box-24 { width: 24px; height: 24px; margin: 0 auto; position: relative; background: #ccc;
  border-radius: 4px; border: 1px solid #999; }
.box-24.original { background: white; border-color: #eee; }
.box-24.pin { background: transparent; border: none; }
.pin-bg, .pin-fg { position: absolute; top: 0; left: 0; }
.pin-fg { z-index: 10; }
.footer { padding: 8px; font-size: 11px; color: #555; background: #f9f9f9; border-top: 1px solid #eee;
  display: flex; justify-content: space-between; align-items: center; }
.chip { width: 12px; height: 12px; border-radius: 50%; border: 1px solid rgba(0,0,0,0.2);
  display: inline-block; vertical-align: middle; margin-right: 4px; }
.low { color: #b45309; }
.failures { margin-top: 30px; background: white; border-radius: 8px; padding: 15px; }
.failures li { font-size: 13px; margin: 4px 0; }
"""


def render_audit_report(
    outcomes: Sequence[FileOutcome],
    report_dir: Path,
    title: str = "Map Pin Audit",
) -> str:
    """Return the HTML audit page for *outcomes*.

    Image links are made relative to *report_dir*, where the page is expected
    to be written.
    """
    tiles = [_tile(outcome, report_dir) for outcome in outcomes if outcome.ok]
    failures = [outcome for outcome in outcomes if not outcome.ok]
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\">",
        f"<title>{html.escape(title)}</title>",
        f"<style>{_STYLE}</style>",
        "</head><body>",
        f"<h1>{html.escape(title)}</h1>",
        f"<p>{len(tiles)} converted, {len(failures)} failed</p>",
        "<div class=\"grid\">",
        *tiles,
        "</div>",
    ]
    if failures:
        parts.append("<div class=\"failures\"><h2>Failures</h2><ul>")
        for outcome in failures:
            parts.append(
                "<li><strong>{name}</strong> [{kind}] {reason}</li>".format(
                    name=html.escape(outcome.source.name),
                    kind=html.escape(outcome.error_kind or "unknown"),
                    reason=html.escape(outcome.reason or ""),
                )
            )
        parts.append("</ul></div>")
    parts.append("</body></html>")
    return "\n".join(parts)


def write_audit_report(
    path: Path, outcomes: Sequence[FileOutcome], title: str = "Map Pin Audit"
) -> Path:
    """Render and write the audit page to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_audit_report(outcomes, path.parent, title), encoding="utf-8")
    return path


def _tile(outcome: FileOutcome, report_dir: Path) -> str:
    result = outcome.result
    if result is None:
        return ""
    name = html.escape(outcome.source.name)
    original = _relative_url(outcome.source, report_dir)
    svg_path = result.svg_path or report_dir / f"{result.name}.svg"
    vector = _relative_url(svg_path, report_dir)
    fill = html.escape(result.fill_color)
    pin = html.escape(result.contrast_color)
    method = html.escape(result.method)
    if result.low_confidence:
        method += ' <span class="low">(low confidence)</span>'
    return f"""
<div class="tile">
  <div class="tile-header" title="{name}">{name}</div>
  <div class="tile-body">
    <div><span class="label">Original</span>
      <div class="box-24 original"><img src="{original}" height="24" style="max-width:24px; object-fit:contain;"></div></div>
    <div><span class="label">SVG Result</span>
      <div class="box-24"><img src="{vector}" width="24" height="24"></div></div>
    <div><span class="label">Map Context</span>
      <div class="box-24 pin">
        <svg class="pin-bg" width="24" height="24" viewBox="0 0 24 24" fill="{pin}"><path d="{PIN_PATH}"/></svg>
        <img src="{vector}" width="24" height="24" class="pin-fg"></div></div>
  </div>
  <div class="footer"><span>{method}</span>
    <span><span class="chip" style="background:{fill}"></span>{fill} / <span class="chip" style="background:{pin}"></span>{pin}</span></div>
</div>"""


def _relative_url(target: Path, base: Path) -> str:
    try:
        relative = os.path.relpath(target.resolve(), base.resolve())
    except ValueError:
        relative = str(target.resolve())
    return html.escape(quote(Path(relative).as_posix()))
