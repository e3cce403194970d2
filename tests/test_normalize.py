import numpy as np
import pytest
from PIL import Image

from logo_pins.errors import DecodeError
from logo_pins.extract.normalize import (
    find_trim_box,
    fit_inside,
    load_image,
    normalize_logo,
    trim_border,
)


def test_trim_removes_uniform_padding(red_square_on_white):
    trimmed, border = trim_border(red_square_on_white, threshold=10)
    assert trimmed.size == (32, 32)
    assert border == (255, 255, 255)
    assert trimmed.getpixel((0, 0)) == (255, 0, 0, 255)


def test_trim_keys_transparent_padding_on_alpha(transparent_disk):
    box = find_trim_box(transparent_disk, threshold=10)
    assert box is not None
    left, top, right, bottom = box
    assert right - left == bottom - top
    assert 39 <= right - left <= 42
    _, border = trim_border(transparent_disk)
    assert border is None


def test_transparent_padding_ignores_hidden_rgb():
    pixels = np.zeros((20, 20, 4), dtype=np.uint8)
    pixels[..., :3] = 255
    pixels[0:5, 0:5, :3] = 0  # black-but-transparent noise in the padding
    pixels[8:12, 8:12] = (10, 20, 30, 255)
    box = find_trim_box(Image.fromarray(pixels, "RGBA"))
    assert box == (8, 8, 12, 12)


def test_uniform_image_is_left_alone(all_white):
    assert find_trim_box(all_white) is None
    trimmed, border = trim_border(all_white)
    assert trimmed.size == all_white.size
    assert border is None


def test_trim_threshold_ignores_small_differences(make_image):
    img = make_image(30, 30, (200, 200, 200, 255))
    img.putpixel((15, 15), (205, 195, 200, 255))
    assert find_trim_box(img, threshold=10) is None
    assert find_trim_box(img, threshold=2) == (15, 15, 16, 16)


def test_trim_against_explicit_background(make_image):
    img = make_image(10, 10, (255, 255, 255, 255))
    img.putpixel((0, 0), (0, 0, 0, 255))
    img.putpixel((5, 6), (0, 0, 0, 255))
    assert find_trim_box(img, background=(255, 255, 255)) == (0, 0, 6, 7)


def test_fit_inside_downscales_preserving_aspect(make_image):
    resized = fit_inside(make_image(1600, 800, (1, 2, 3, 255)), size=800)
    assert resized.size == (800, 400)


def test_fit_inside_does_not_upscale_by_default(make_image):
    img = make_image(40, 20, (1, 2, 3, 255))
    assert fit_inside(img, size=800).size == (40, 20)
    assert fit_inside(img, size=800, allow_upscale=True).size == (800, 400)


def test_fit_inside_rejects_bad_size(make_image):
    with pytest.raises(ValueError):
        fit_inside(make_image(4, 4, (0, 0, 0, 255)), size=0)


def test_load_image_rejects_garbage():
    with pytest.raises(DecodeError):
        load_image(b"definitely not an image")
    with pytest.raises(DecodeError):
        load_image(b"")


def test_load_image_missing_file(tmp_path):
    with pytest.raises(DecodeError):
        load_image(tmp_path / "missing.png")


def test_load_image_converts_to_rgba(tmp_path):
    path = tmp_path / "logo.jpg"
    Image.new("RGB", (12, 8), (10, 200, 30)).save(path, format="JPEG")
    img = load_image(path)
    assert img.mode == "RGBA"
    assert img.size == (12, 8)


def test_normalize_logo_reports_border(red_square_on_white, settings):
    normalized = normalize_logo(red_square_on_white, settings)
    assert normalized.image.size == (32, 32)
    assert normalized.border_color == (255, 255, 255)
    assert normalized.original_size == (64, 64)
