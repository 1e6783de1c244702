"""Shared fixtures for the raster editor tests."""

import io

import numpy as np
import pytest
from PIL import Image

from raster_editor import Editor, EditorConfig, PixelBuffer


def solid(width: int, height: int, rgba=(100, 100, 100, 255)) -> PixelBuffer:
    return PixelBuffer.blank(width, height, rgba)


def gradient(width: int = 16, height: int = 12) -> PixelBuffer:
    """Opaque buffer where every pixel has a distinct color."""
    ys, xs = np.mgrid[0:height, 0:width]
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[..., 0] = (xs * 13) % 256
    data[..., 1] = (ys * 17) % 256
    data[..., 2] = (xs * ys) % 256
    data[..., 3] = 255
    return PixelBuffer(data)


def png_bytes(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    buffer.to_image().save(out, format="PNG")
    return out.getvalue()


@pytest.fixture
def gradient_buffer() -> PixelBuffer:
    return gradient()


@pytest.fixture
def editor() -> Editor:
    """Editor loaded with a 16x12 gradient PNG."""
    ed = Editor(EditorConfig())
    ed.load(png_bytes(gradient()))
    return ed


@pytest.fixture
def gray_editor() -> Editor:
    """Editor on a 20x20 opaque (100, 100, 100) canvas."""
    ed = Editor()
    ed.load(solid(20, 20).to_bytes(), width=20, height=20)
    return ed


@pytest.fixture
def png_image() -> bytes:
    return png_bytes(gradient())


@pytest.fixture
def pil_image() -> Image.Image:
    return gradient().to_image()
