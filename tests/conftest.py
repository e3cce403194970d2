"""Fixtures for logo_pins tests.

Images are synthesised with numpy and Pillow; the potrace subprocess is
replaced by a recording fake so tests run without the executable.
"""

import subprocess
from collections.abc import Callable

import numpy as np
import pytest
from PIL import Image

from logo_pins.config import ConversionSettings
from logo_pins.vector import trace

FAKE_POTRACE_SVG = b"""<?xml version="1.0" standalone="no"?>
<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 20010904//EN"
 "http://www.w3.org/TR/2001/REC-SVG-20010904/DTD/svg10.dtd">
<svg version="1.0" xmlns="http://www.w3.org/2000/svg"
 width="240.000000pt" height="240.000000pt" viewBox="0 0 240.000000 240.000000"
 preserveAspectRatio="xMidYMid meet">
<metadata>
Created by potrace 1.16, written by Peter Selinger 2001-2019
</metadata>
<g transform="translate(0.000000,240.000000) scale(0.100000,-0.100000)"
fill="#000000" stroke="none">
<path d="M300 2200 l0 -1400 1800 0 1800 0 0 1400 0 1400 -1800 0 -1800 0 0
-1400z"/>
<path d="M900 1500 l0 -300 300 0 300 0 0 300 0 300 -300 0 -300 0 0 -300z"/>
</g>
</svg>
"""


class FakePotrace:
    """Stand-in for ``subprocess.run`` that records every tracer call."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.stdout = FAKE_POTRACE_SVG
        self.stderr = b""
        self.returncode = 0
        self.exc: BaseException | None = None

    def __call__(self, command, input=None, capture_output=False, timeout=None, check=False):
        self.calls.append({"command": list(command), "input": input, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(
            command, self.returncode, stdout=self.stdout, stderr=self.stderr
        )


def rgba(width: int, height: int, color: tuple[int, int, int, int]) -> np.ndarray:
    return np.tile(np.asarray(color, dtype=np.uint8), (height, width, 1))


def to_image(pixels: np.ndarray) -> Image.Image:
    return Image.fromarray(pixels.astype(np.uint8), "RGBA")


def disk(size: int, radius: float) -> np.ndarray:
    yy, xx = np.mgrid[0:size, 0:size]
    centre = (size - 1) / 2
    return (xx - centre) ** 2 + (yy - centre) ** 2 <= radius**2


@pytest.fixture
def settings() -> ConversionSettings:
    return ConversionSettings()


@pytest.fixture
def fake_potrace(monkeypatch: pytest.MonkeyPatch) -> FakePotrace:
    fake = FakePotrace()
    monkeypatch.setattr(trace.subprocess, "run", fake)
    return fake


@pytest.fixture
def red_square_on_white() -> Image.Image:
    """64x64 white frame with a solid red 32x32 square in the middle."""
    pixels = rgba(64, 64, (255, 255, 255, 255))
    pixels[16:48, 16:48] = (255, 0, 0, 255)
    return to_image(pixels)


@pytest.fixture
def transparent_disk() -> Image.Image:
    """64x64 fully transparent frame with an opaque black disk of radius 20."""
    pixels = rgba(64, 64, (0, 0, 0, 0))
    pixels[disk(64, 20)] = (0, 0, 0, 255)
    return to_image(pixels)


@pytest.fixture
def blue_box_logo() -> Image.Image:
    """Solid blue frame with a white 'text' block covering 10% in the middle."""
    pixels = rgba(100, 100, (0, 0, 255, 255))
    pixels[40:60, 25:75] = (255, 255, 255, 255)
    return to_image(pixels)


@pytest.fixture
def all_white() -> Image.Image:
    return to_image(rgba(64, 64, (255, 255, 255, 255)))


@pytest.fixture
def panel_on_white() -> Image.Image:
    """White page with a blue panel (64% of the frame) holding white text."""
    pixels = rgba(100, 100, (255, 255, 255, 255))
    pixels[10:90, 10:90] = (0, 0, 255, 255)
    pixels[20:30, 30:70] = (255, 255, 255, 255)
    return to_image(pixels)


@pytest.fixture
def two_color_mark() -> Image.Image:
    """Transparent frame with a large black bar and a smaller red bar."""
    pixels = rgba(80, 80, (0, 0, 0, 0))
    pixels[10:40, 10:70] = (0, 0, 0, 255)
    pixels[50:65, 10:70] = (220, 20, 30, 255)
    return to_image(pixels)


@pytest.fixture
def make_image() -> Callable[..., Image.Image]:
    def factory(width: int, height: int, color: tuple[int, int, int, int]) -> Image.Image:
        return to_image(rgba(width, height, color))

    return factory


@pytest.fixture
def potrace_svg() -> str:
    return FAKE_POTRACE_SVG.decode("utf-8")
