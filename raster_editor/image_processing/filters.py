"""Tonal and convolution filters over RGBA pixel arrays.

AIDEV-NOTE: Every filter is a pure function: it takes an (H, W, 4) uint8 array
and returns a new one, leaving alpha untouched unless stated. Results are
rounded to nearest and saturated to 0-255. `apply_with_mask` restricts any
filter result to a selection.
"""

import logging
from typing import Callable

import numpy as np

from .utils import gaussian_blur, to_uint8

logger = logging.getLogger(__name__)

FilterFn = Callable[..., np.ndarray]

# AIDEV-NOTE: The two luma weightings below differ slightly on purpose;
# grayscale and saturation have always used different coefficients.
SATURATION_LUMA = (0.2989, 0.5870, 0.1140)
GRAYSCALE_LUMA = (0.299, 0.587, 0.114)

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ]
)

SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)
EDGE_DETECT_KERNEL = np.array([[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]], dtype=np.float64)
EMBOSS_KERNEL = np.array([[-2, -1, 0], [-1, 1, 1], [0, 1, 2]], dtype=np.float64)


def _with_rgb(pixels: np.ndarray, rgb: np.ndarray) -> np.ndarray:
    """Copy of `pixels` with new RGB channels and the original alpha."""
    result = pixels.copy()
    result[..., :3] = to_uint8(rgb)
    return result


def _rgb(pixels: np.ndarray) -> np.ndarray:
    return pixels[..., :3].astype(np.float64)


def _luma(rgb: np.ndarray, weights: "tuple[float, float, float]") -> np.ndarray:
    return (rgb[..., 0] * weights[0] + rgb[..., 1] * weights[1] + rgb[..., 2] * weights[2])[..., None]


# --- Tonal filters ---


def brightness(pixels: np.ndarray, value: float) -> np.ndarray:
    """Add `value` to R, G and B."""
    return _with_rgb(pixels, _rgb(pixels) + value)


def contrast(pixels: np.ndarray, value: float) -> np.ndarray:
    """Stretch channels around mid-grey.

    Args:
        pixels: RGBA pixels
        value: Contrast amount in [-255, 255]; 0 leaves the image unchanged

    Raises:
        ValueError: If value is outside [-255, 255]
    """
    if not -255 <= value <= 255:
        raise ValueError(f"Contrast must be between -255 and 255, got {value}")
    factor = (259.0 * (value + 255.0)) / (255.0 * (259.0 - value))
    return _with_rgb(pixels, factor * (_rgb(pixels) - 128.0) + 128.0)


def saturation(pixels: np.ndarray, value: float) -> np.ndarray:
    """Scale each channel's distance from luma by `value` (1.0 = unchanged)."""
    rgb = _rgb(pixels)
    gray = _luma(rgb, SATURATION_LUMA)
    return _with_rgb(pixels, gray + value * (rgb - gray))


def grayscale(pixels: np.ndarray) -> np.ndarray:
    rgb = _rgb(pixels)
    gray = _luma(rgb, GRAYSCALE_LUMA)
    return _with_rgb(pixels, np.repeat(gray, 3, axis=-1))


def sepia(pixels: np.ndarray) -> np.ndarray:
    return _with_rgb(pixels, _rgb(pixels) @ SEPIA_MATRIX.T)


def invert(pixels: np.ndarray) -> np.ndarray:
    return _with_rgb(pixels, 255.0 - _rgb(pixels))


# --- Convolution filters ---


def convolve(pixels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Direct 3x3 convolution over RGB.

    The one-pixel border has no full neighbourhood and keeps its original
    values; alpha is copied through unchanged.
    """
    height, width = pixels.shape[:2]
    result = pixels.copy()
    if height < 3 or width < 3:
        return result

    rgb = _rgb(pixels)
    total = np.zeros((height - 2, width - 2, 3), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            weight = kernel[ky, kx]
            if weight:
                total += rgb[ky:ky + height - 2, kx:kx + width - 2] * weight

    result[1:-1, 1:-1, :3] = to_uint8(total)
    return result


def sharpen(pixels: np.ndarray) -> np.ndarray:
    return convolve(pixels, SHARPEN_KERNEL)


def edge_detect(pixels: np.ndarray) -> np.ndarray:
    return convolve(pixels, EDGE_DETECT_KERNEL)


def emboss(pixels: np.ndarray) -> np.ndarray:
    return convolve(pixels, EMBOSS_KERNEL)


def blur(pixels: np.ndarray, radius: int = 5) -> np.ndarray:
    """Separable Gaussian blur over all four channels."""
    return gaussian_blur(pixels, radius)


# --- Selection scoping ---


def apply_with_mask(
    original: np.ndarray,
    filtered: np.ndarray,
    mask: "np.ndarray | None",
) -> np.ndarray:
    """Blend a filter result back into the original by selection alpha.

    Args:
        original: Pixels before the filter ran
        filtered: Filter output for the full canvas
        mask: (H, W) 0-255 selection alpha, or None for no selection

    Returns:
        `filtered` when there is no mask, otherwise
        original * (1 - a) + filtered * a per pixel, with a = mask / 255
    """
    if mask is None:
        return filtered
    weight = mask.astype(np.float64)[..., None] / 255.0
    mixed = original.astype(np.float64) * (1.0 - weight) + filtered.astype(np.float64) * weight
    return to_uint8(mixed)


FILTERS: "dict[str, FilterFn]" = {
    "brightness": brightness,
    "contrast": contrast,
    "saturation": saturation,
    "grayscale": grayscale,
    "sepia": sepia,
    "invert": invert,
    "blur": blur,
    "sharpen": sharpen,
    "edge_detect": edge_detect,
    "emboss": emboss,
}


def get_filter(name: str) -> FilterFn:
    """Look up a filter by name.

    Raises:
        ValueError: If no filter has that name
    """
    key = name.strip().lower().replace("-", "_")
    try:
        return FILTERS[key]
    except KeyError:
        raise ValueError(f"Unknown filter: {name}") from None
