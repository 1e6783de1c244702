"""Utility functions shared by the filter, selection and transform modules.

AIDEV-NOTE: This module contains the Gaussian kernel builder and separable blur
used by both pixel filtering and selection feathering, plus small helpers for
rectangles, colors and float-to-uint8 conversion.
"""

import math
from typing import TYPE_CHECKING

import numpy as np
from PIL import ImageColor

if TYPE_CHECKING:
    from ..models import Rect


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round to nearest and saturate into the 0-255 range."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def clamp_rect(
    x: float,
    y: float,
    width: float,
    height: float,
    canvas_width: int,
    canvas_height: int,
) -> "Rect":
    """Clamp a rectangle to the canvas.

    The origin is floored and the far edge ceiled before clamping, so a
    fractional rectangle covers every pixel it touches.

    Returns:
        Clamped Rect; width/height are 0 when nothing of it lies on the canvas
    """
    from ..models import Rect

    x1 = max(0, math.floor(x))
    y1 = max(0, math.floor(y))
    x2 = min(canvas_width, math.ceil(x + width))
    y2 = min(canvas_height, math.ceil(y + height))
    return Rect(x1, y1, max(0, x2 - x1), max(0, y2 - y1))


def parse_color(color: "str | tuple[int, ...]") -> "tuple[int, int, int]":
    """Parse a CSS-style color ("#RRGGBB", "red", "rgb(...)") into RGB.

    Raises:
        ValueError: If the color string is not recognised
    """
    if isinstance(color, (tuple, list)):
        r, g, b = (int(c) for c in color[:3])
        return (r, g, b)
    rgb = ImageColor.getrgb(color)
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


def create_gaussian_kernel(radius: int) -> np.ndarray:
    """Build a normalised 1-D Gaussian kernel.

    Args:
        radius: Kernel radius in pixels (size is 2 * radius + 1)

    Returns:
        float64 array of length 2 * radius + 1 summing to 1

    AIDEV-NOTE: sigma = radius / 3, so the kernel spans +/- 3 sigma.
    """
    sigma = radius / 3.0
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def _blur_axis(values: np.ndarray, kernel: np.ndarray, axis: int) -> np.ndarray:
    """Convolve along one axis, reusing the nearest edge sample out of range."""
    radius = len(kernel) // 2
    pad = [(0, 0)] * values.ndim
    pad[axis] = (radius, radius)
    padded = np.pad(values.astype(np.float64), pad, mode="edge")

    length = values.shape[axis]
    result = np.zeros(values.shape, dtype=np.float64)
    for k, weight in enumerate(kernel):
        window = [slice(None)] * values.ndim
        window[axis] = slice(k, k + length)
        result += padded[tuple(window)] * weight
    return result


def gaussian_blur(values: np.ndarray, radius: int) -> np.ndarray:
    """Two-pass separable Gaussian blur with edge-clamped sampling.

    Works on 2-D masks (H x W) and on channel stacks (H x W x C). Each pass is
    rounded back to uint8, so horizontal then vertical results match an 8-bit
    canvas implementation.

    Args:
        values: uint8 array, blurred along axes 0 and 1
        radius: Blur radius in pixels; radius <= 0 returns an unchanged copy

    Returns:
        New uint8 array of the same shape
    """
    radius = int(radius)
    if radius <= 0:
        return values.copy()

    kernel = create_gaussian_kernel(radius)
    horizontal = to_uint8(_blur_axis(values, kernel, axis=1))
    return to_uint8(_blur_axis(horizontal, kernel, axis=0))


def color_distance(pixels: np.ndarray, color: "tuple[int, int, int]") -> np.ndarray:
    """Euclidean RGB distance of every pixel to a single color.

    Args:
        pixels: H x W x (3 or 4) array; alpha is ignored
        color: Reference RGB color

    Returns:
        H x W float64 array of distances
    """
    diff = pixels[..., :3].astype(np.float64) - np.asarray(color[:3], dtype=np.float64)
    return np.sqrt((diff * diff).sum(axis=-1))


def square_offsets(radius: int) -> "list[tuple[int, int]]":
    """All (dy, dx) offsets of a (2r+1) x (2r+1) window."""
    span = range(-radius, radius + 1)
    return [(dy, dx) for dy in span for dx in span]


def shifted(values: np.ndarray, dy: int, dx: int, fill=0) -> np.ndarray:
    """Return `values` shifted so out[y, x] == values[y + dy, x + dx].

    Samples that fall outside the source take `fill`.
    """
    height, width = values.shape[:2]
    out = np.full_like(values, fill)
    src_y0, src_y1 = max(0, dy), min(height, height + dy)
    src_x0, src_x1 = max(0, dx), min(width, width + dx)
    if src_y0 >= src_y1 or src_x0 >= src_x1:
        return out
    dst_y0, dst_x0 = src_y0 - dy, src_x0 - dx
    out[dst_y0:dst_y0 + (src_y1 - src_y0), dst_x0:dst_x0 + (src_x1 - src_x0)] = values[
        src_y0:src_y1, src_x0:src_x1
    ]
    return out
