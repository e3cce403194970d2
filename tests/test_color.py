import dataclasses

import numpy as np
import pytest
from PIL import Image

from logo_pins.features.color import (
    DEFAULT_FILL,
    dominant_colors,
    extract_palette,
    mean_color,
)


def _stripes(*colors_and_widths):
    """Build a 10-row image of vertical stripes of the given widths."""
    columns = []
    for color, width in colors_and_widths:
        columns.append(np.tile(np.asarray(color, dtype=np.uint8), (10, width, 1)))
    return Image.fromarray(np.concatenate(columns, axis=1), "RGBA")


def test_mean_color_rounds_half_up():
    img = _stripes(((10, 0, 0, 255), 1), ((11, 0, 0, 255), 1))
    entry = mean_color(img, np.ones((10, 2), dtype=bool))
    assert entry is not None
    assert entry.rgb == (11, 0, 0)
    assert entry.count == 20


def test_mean_color_of_empty_mask_is_none(make_image):
    img = make_image(4, 4, (1, 2, 3, 255))
    assert mean_color(img, np.zeros((4, 4), dtype=bool)) is None


def test_mean_color_rejects_mismatched_mask(make_image):
    with pytest.raises(ValueError):
        mean_color(make_image(4, 4, (1, 2, 3, 255)), np.ones((3, 3), dtype=bool))


def test_dominant_colors_orders_by_frequency():
    img = _stripes(((255, 0, 0, 255), 2), ((0, 0, 255, 255), 5), ((0, 128, 0, 255), 3))
    palette = dominant_colors(img, np.ones((10, 10), dtype=bool), k=3)
    assert [entry.hex for entry in palette] == ["#0000ff", "#008000", "#ff0000"]
    assert [entry.count for entry in palette] == [50, 30, 20]


def test_dominant_colors_merges_near_shades():
    img = _stripes(((200, 10, 10, 255), 3), ((203, 12, 9, 255), 3), ((0, 0, 0, 255), 4))
    palette = dominant_colors(img, np.ones((10, 10), dtype=bool), k=2, quantize=16)
    assert palette[0].count == 60
    assert palette[0].rgb == (202, 11, 10)  # 201.5, 11, 9.5 rounded half up
    assert palette[1].hex == "#000000"


def test_dominant_colors_skips_translucent_pixels():
    img = _stripes(((255, 0, 0, 60), 8), ((0, 0, 0, 255), 2))
    palette = dominant_colors(img, np.ones((10, 10), dtype=bool), k=2, alpha_cutoff=128)
    assert [entry.hex for entry in palette] == ["#000000"]


def test_dominant_colors_with_zero_k():
    img = _stripes(((0, 0, 0, 255), 2))
    assert dominant_colors(img, np.ones((10, 2), dtype=bool), k=0) == []


def test_extract_palette_default_uses_mean(settings):
    img = _stripes(((0, 0, 0, 255), 1), ((200, 100, 50, 255), 1))
    palette, low = extract_palette(img, np.ones((10, 2), dtype=bool), settings)
    assert not low
    assert [entry.hex for entry in palette] == ["#643219"]


def test_extract_palette_histogram_for_larger_palettes(settings):
    img = _stripes(((0, 0, 0, 255), 6), ((200, 100, 50, 255), 4))
    layered = dataclasses.replace(settings, palette_size=3)
    palette, low = extract_palette(img, np.ones((10, 10), dtype=bool), layered)
    assert not low
    assert [entry.hex for entry in palette] == ["#000000", "#c86432"]


def test_extract_palette_empty_mask_is_low_confidence(settings, make_image):
    img = make_image(5, 5, (255, 255, 255, 255))
    palette, low = extract_palette(img, np.zeros((5, 5), dtype=bool), settings)
    assert low
    assert palette == [DEFAULT_FILL]
    assert palette[0].hex == "#000000"
