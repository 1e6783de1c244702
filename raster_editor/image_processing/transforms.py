"""Geometry-changing operations: resize, crop, rotate, flip.

AIDEV-NOTE: Each function takes a PixelBuffer and returns a new one; nothing
is modified in place. Resampling goes through Pillow on premultiplied alpha
("RGBa") so transparent edges do not bleed dark fringes.
"""

import logging
import math

import numpy as np
from PIL import Image

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}


def get_resample_filter(name: str) -> Image.Resampling:
    """Map a resampling name to Pillow's filter, defaulting to LANCZOS."""
    return RESAMPLE_FILTERS.get(str(name).lower(), Image.Resampling.LANCZOS)


def target_size(
    width: int,
    height: int,
    new_width: "float | None",
    new_height: "float | None",
    maintain_aspect: bool = True,
) -> "tuple[int, int]":
    """Work out resize dimensions.

    When `maintain_aspect` is set and only one of the new dimensions is given,
    the other is derived from the current aspect ratio. A missing dimension
    with `maintain_aspect` off keeps the current value.

    Raises:
        ValueError: If the resulting size is not at least 1x1
    """
    w = int(new_width) if new_width else width
    h = int(new_height) if new_height else height

    if maintain_aspect:
        aspect = width / height
        # A derived side never truncates below one pixel
        if new_width and not new_height:
            h = max(1, int(new_width / aspect))
        elif new_height and not new_width:
            w = max(1, int(new_height * aspect))

    if w <= 0 or h <= 0:
        raise ValueError(f"Invalid target size {w}x{h}")
    return w, h


def resize(
    buffer: PixelBuffer,
    width: int,
    height: int,
    resample: str = "lanczos",
) -> PixelBuffer:
    """Resample a buffer to exactly width x height."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid target size {width}x{height}")
    if (width, height) == buffer.size:
        return buffer.copy()

    image = buffer.to_image().convert("RGBa")
    resized = image.resize((width, height), get_resample_filter(resample))
    return PixelBuffer.from_image(resized.convert("RGBA"))


def crop(buffer: PixelBuffer, x: int, y: int, width: int, height: int) -> PixelBuffer:
    """Cut out a width x height rectangle whose top-left is (x, y).

    The rectangle is clamped to the source explicitly: only the overlapping
    part is copied, and areas outside the source come out transparent.

    Raises:
        ValueError: If width or height is not positive
    """
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid crop size {width}x{height}")
    return buffer.get_region(int(x), int(y), width, height)


def rotated_size(width: int, height: int, degrees: float) -> "tuple[int, int]":
    """Bounding box of a width x height image rotated by `degrees`."""
    radians = math.radians(degrees)
    cos = abs(math.cos(radians))
    sin = abs(math.sin(radians))
    new_width = max(1, int(round(width * cos + height * sin)))
    new_height = max(1, int(round(width * sin + height * cos)))
    return new_width, new_height


def rotate(buffer: PixelBuffer, degrees: float) -> PixelBuffer:
    """Rotate clockwise (screen coordinates) about the centre of the new canvas.

    AIDEV-NOTE: Quarter turns are done with np.rot90 so they are lossless;
    any other angle is an inverse-mapped bilinear affine resample.
    """
    quarter_turns, remainder = divmod(float(degrees), 90.0)
    if remainder == 0.0:
        # np.rot90 with negative k turns clockwise
        return PixelBuffer(np.ascontiguousarray(np.rot90(buffer.data, k=-int(quarter_turns) % 4)))

    width, height = buffer.size
    new_width, new_height = rotated_size(width, height, degrees)

    radians = math.radians(degrees)
    cos, sin = math.cos(radians), math.sin(radians)
    # Output (x, y) -> source (u, v): translate to new centre, rotate back, translate to old centre
    cx_new, cy_new = new_width / 2.0, new_height / 2.0
    cx_old, cy_old = width / 2.0, height / 2.0
    matrix = (
        cos,
        sin,
        cx_old - cos * cx_new - sin * cy_new,
        -sin,
        cos,
        cy_old + sin * cx_new - cos * cy_new,
    )

    image = buffer.to_image().convert("RGBa")
    rotated = image.transform(
        (new_width, new_height),
        Image.Transform.AFFINE,
        matrix,
        resample=Image.Resampling.BILINEAR,
    )
    return PixelBuffer.from_image(rotated.convert("RGBA"))


def flip_horizontal(buffer: PixelBuffer) -> PixelBuffer:
    return PixelBuffer(np.ascontiguousarray(buffer.data[:, ::-1]))


def flip_vertical(buffer: PixelBuffer) -> PixelBuffer:
    return PixelBuffer(np.ascontiguousarray(buffer.data[::-1]))
