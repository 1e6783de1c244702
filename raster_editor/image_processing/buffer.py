"""RGBA pixel storage.

AIDEV-NOTE: PixelBuffer is the only owner of raw pixel memory in the engine.
Everything else (layers, history, filters) either holds a PixelBuffer or
works on the numpy array it exposes and builds a new one.
"""

import numpy as np
from PIL import Image

from ..models import CHANNELS, Rect


class PixelBuffer:
    """A width x height RGBA image backed by an (H, W, 4) uint8 array."""

    def __init__(self, data: np.ndarray):
        """Wrap an existing array without copying it.

        Args:
            data: uint8 array of shape (height, width, 4)

        Raises:
            ValueError: If the array is not an RGBA uint8 image
        """
        if data.ndim != 3 or data.shape[2] != CHANNELS:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {data.shape}")
        if data.dtype != np.uint8:
            raise ValueError(f"Expected uint8 samples, got {data.dtype}")
        if data.shape[0] <= 0 or data.shape[1] <= 0:
            raise ValueError("Pixel buffers must be at least 1x1")
        self.data = data

    # --- Construction ---

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: "tuple[int, int, int, int]" = (0, 0, 0, 0),
    ) -> "PixelBuffer":
        """Create a buffer filled with one RGBA color (transparent by default)."""
        data = np.empty((int(height), int(width), CHANNELS), dtype=np.uint8)
        data[...] = color
        return cls(data)

    @classmethod
    def from_bytes(cls, raw: bytes, width: int, height: int) -> "PixelBuffer":
        """Build a buffer from tightly packed RGBA bytes.

        Raises:
            ValueError: If the byte count is not width * height * 4
        """
        expected = width * height * CHANNELS
        if len(raw) != expected:
            raise ValueError(
                f"Expected {expected} bytes for {width}x{height} RGBA, got {len(raw)}"
            )
        data = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(data.copy())

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from a PIL image (converted to RGBA)."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    # --- Accessors ---

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> "tuple[int, int]":
        return (self.width, self.height)

    def get_pixel(self, x: int, y: int) -> "tuple[int, int, int, int]":
        """Return the RGBA value at (x, y).

        Raises:
            IndexError: If the coordinate is outside the buffer
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        r, g, b, a = self.data[y, x]
        return (int(r), int(g), int(b), int(a))

    def set_pixel(self, x: int, y: int, rgba: "tuple[int, int, int, int]") -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        self.data[y, x] = rgba

    def get_region(self, x: int, y: int, width: int, height: int) -> "PixelBuffer":
        """Extract a width x height region whose top-left is (x, y).

        Parts of the region that fall outside the buffer come back transparent.
        """
        region = PixelBuffer.blank(width, height)
        src = Rect(x, y, width, height)

        x1, y1 = max(0, src.x), max(0, src.y)
        x2, y2 = min(self.width, src.right), min(self.height, src.bottom)
        if x1 < x2 and y1 < y2:
            region.data[y1 - y:y2 - y, x1 - x:x2 - x] = self.data[y1:y2, x1:x2]
        return region

    def put_region(self, region: "PixelBuffer", x: int, y: int) -> None:
        """Overwrite pixels with `region` placed at (x, y), clipped to this buffer."""
        x1, y1 = max(0, x), max(0, y)
        x2 = min(self.width, x + region.width)
        y2 = min(self.height, y + region.height)
        if x1 < x2 and y1 < y2:
            self.data[y1:y2, x1:x2] = region.data[y1 - y:y2 - y, x1 - x:x2 - x]

    # --- Conversion ---

    def copy(self) -> "PixelBuffer":
        """Deep copy; the new buffer shares no memory with this one."""
        return PixelBuffer(self.data.copy())

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height})"
