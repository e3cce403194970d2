import json
from pathlib import Path

import pandas as pd
import pytest

from logo_pins.errors import WriteError
from logo_pins.io.models import ConversionResult, FileOutcome, TracedLayer
from logo_pins.io.outputs import (
    SUMMARY_COLUMNS,
    ThemeConfig,
    summary_rows,
    write_summary,
    write_svg,
    write_theme_config,
)


def _result(name="acme", contrast="#0000ff", low_confidence=False):
    return ConversionResult(
        source=Path(f"/logos/{name}.png"),
        svg='<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24"/>',
        layers=[TracedLayer(color="#ffffff", paths=("M0 0z",)), TracedLayer("#000000", ())],
        fill_color="#ffffff",
        contrast_color=contrast,
        method="Box Drill-Down",
        low_confidence=low_confidence,
    )


def test_theme_config_is_immutable_accumulator():
    empty = ThemeConfig(base_url="https://cdn.example/pins/")
    first = empty.with_entry("acme", "#0000ff", "acme.svg")
    second = first.with_entry("globex", "#d9dbda", "globex.svg")
    assert len(empty) == 0
    assert len(first) == 1
    assert list(second.entries) == ["acme", "globex"]
    with pytest.raises(TypeError):
        second.entries["other"] = {}


def test_theme_document_structure():
    theme = ThemeConfig(base_url="https://cdn.example/pins/").with_entry(
        "acme", "#0000ff", "acme.svg"
    )
    document = theme.to_document()
    inner = document["style"]["theme"]
    assert inner["title"] == "THEME"
    assert inner["type"] == "categorized"
    assert inner["distribution"] == "count"
    entry = inner["cat"]["acme"]
    assert entry["field"] == "retailer"
    template, svg = entry["style"]["icon"]
    assert template["template"] == "template_pin"
    assert template["substitute"] == {"#FF69B4": "#0000ff"}
    assert template["legendScale"] == 0.6
    assert svg == {"svg": "https://cdn.example/pins/acme.svg"}


def test_theme_merge_keeps_order_and_later_wins():
    left = ThemeConfig().with_entry("a", "#111111", "a.svg").with_entry("b", "#222222", "b.svg")
    right = ThemeConfig().with_entry("b", "#999999", "b.svg").with_entry("c", "#333333", "c.svg")
    merged = left.merge(right)
    assert list(merged.entries) == ["a", "b", "c"]
    assert merged.entries["b"]["style"]["icon"][0]["substitute"]["#FF69B4"] == "#999999"


def test_with_result_uses_contrast_colour_and_svg_name():
    result = _result()
    result.svg_path = Path("/out/acme.svg")
    theme = ThemeConfig().with_result(result)
    icon = theme.entries["acme"]["style"]["icon"]
    assert icon[0]["substitute"]["#FF69B4"] == "#0000ff"
    assert icon[1]["svg"] == "acme.svg"


def test_write_theme_config_is_valid_json(tmp_path):
    theme = ThemeConfig().with_entry("acme", "#0000ff", "acme.svg")
    path = write_theme_config(tmp_path / "nested" / "configuration.json", theme)
    document = json.loads(path.read_text(encoding="utf-8"))
    assert list(document["style"]["theme"]["cat"]) == ["acme"]


def test_write_svg_names_file_after_source(tmp_path):
    path = write_svg(_result(), tmp_path / "svgs")
    assert path == tmp_path / "svgs" / "acme.svg"
    assert path.read_text(encoding="utf-8").startswith("<svg")


def test_write_svg_failure_is_write_error(tmp_path):
    blocker = tmp_path / "svgs"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(WriteError) as excinfo:
        write_svg(_result(), blocker)
    assert excinfo.value.kind == "write"


def test_summary_rows_cover_success_and_failure():
    outcomes = [
        FileOutcome(source=Path("/logos/acme.png"), result=_result(low_confidence=True)),
        FileOutcome(source=Path("/logos/bad.png"), error_kind="decode", reason="truncated"),
    ]
    ok, failed = summary_rows(outcomes)
    assert ok["status"] == "ok"
    assert ok["layers"] == 1
    assert ok["low_confidence"] is True
    assert failed["status"] == "failed"
    assert failed["error_kind"] == "decode"
    assert failed["method"] is None


def test_write_summary_csv(tmp_path):
    outcomes = [
        FileOutcome(source=Path("/logos/acme.png"), result=_result()),
        FileOutcome(source=Path("/logos/bad.png"), error_kind="decode", reason="truncated"),
    ]
    path = write_summary(tmp_path / "summary.csv", outcomes)
    df = pd.read_csv(path)
    assert list(df.columns) == SUMMARY_COLUMNS
    assert df["file"].tolist() == ["acme.png", "bad.png"]
    assert df["status"].tolist() == ["ok", "failed"]
    assert df.loc[0, "contrast_color"] == "#0000ff"
