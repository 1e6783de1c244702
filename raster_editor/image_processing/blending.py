"""Layer blend modes and source-over compositing.

AIDEV-NOTE: Formulas follow the W3C Compositing and Blending Level 1 model,
which is what a 2D canvas `globalCompositeOperation` implements:

    Cs' = (1 - ab) * Cs + ab * B(Cb, Cs)
    co  = as * Cs' + (1 - as) * ab * Cb      (premultiplied result)
    ao  = as + ab * (1 - as)

All math runs in float64 on straight (non-premultiplied) 0-1 values. Inputs
and outputs are straight-alpha uint8 RGBA arrays.
"""

import logging
from typing import Callable

import numpy as np

from ..models import MAX_OPACITY, BlendMode
from .utils import to_uint8

logger = logging.getLogger(__name__)

BlendFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


# --- Separable blend functions: B(Cb, Cs) per channel ---


def _normal(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return cs


def _multiply(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return cb * cs


def _screen(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return cb + cs - cb * cs


def _hard_light(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return np.where(cs <= 0.5, _multiply(cb, 2.0 * cs), _screen(cb, 2.0 * cs - 1.0))


def _overlay(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return _hard_light(cs, cb)


def _darken(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return np.minimum(cb, cs)


def _lighten(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return np.maximum(cb, cs)


def _color_dodge(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        dodged = np.minimum(1.0, cb / (1.0 - cs))
    return np.where(cb == 0.0, 0.0, np.where(cs >= 1.0, 1.0, dodged))


def _color_burn(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        burned = 1.0 - np.minimum(1.0, (1.0 - cb) / cs)
    return np.where(cb >= 1.0, 1.0, np.where(cs <= 0.0, 0.0, burned))


def _soft_light(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    d = np.where(cb <= 0.25, ((16.0 * cb - 12.0) * cb + 4.0) * cb, np.sqrt(cb))
    return np.where(
        cs <= 0.5,
        cb - (1.0 - 2.0 * cs) * cb * (1.0 - cb),
        cb + (2.0 * cs - 1.0) * (d - cb),
    )


def _difference(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return np.abs(cb - cs)


def _exclusion(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return cb + cs - 2.0 * cb * cs


# --- Non-separable helpers (operate on the whole RGB triple) ---


def _lum(c: np.ndarray) -> np.ndarray:
    return (0.3 * c[..., 0] + 0.59 * c[..., 1] + 0.11 * c[..., 2])[..., None]


def _clip_color(c: np.ndarray) -> np.ndarray:
    lum = _lum(c)
    low = c.min(axis=-1, keepdims=True)
    high = c.max(axis=-1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        c = np.where(low < 0.0, lum + (c - lum) * lum / (lum - low), c)
        c = np.where(high > 1.0, lum + (c - lum) * (1.0 - lum) / (high - lum), c)
    return np.nan_to_num(c)


def _set_lum(c: np.ndarray, lum: np.ndarray) -> np.ndarray:
    return _clip_color(c + (lum - _lum(c)))


def _sat(c: np.ndarray) -> np.ndarray:
    return c.max(axis=-1, keepdims=True) - c.min(axis=-1, keepdims=True)


def _set_sat(c: np.ndarray, sat: np.ndarray) -> np.ndarray:
    # Maps min -> 0, max -> sat, mid proportionally; grey stays 0
    low = c.min(axis=-1, keepdims=True)
    spread = c.max(axis=-1, keepdims=True) - low
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (c - low) * sat / spread
    return np.where(spread > 0.0, scaled, 0.0)


def _hue(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return _set_lum(_set_sat(cs, _sat(cb)), _lum(cb))


def _saturation(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return _set_lum(_set_sat(cb, _sat(cs)), _lum(cb))


def _color(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return _set_lum(cs, _lum(cb))


def _luminosity(cb: np.ndarray, cs: np.ndarray) -> np.ndarray:
    return _set_lum(cb, _lum(cs))


BLEND_FUNCTIONS: "dict[BlendMode, BlendFn]" = {
    BlendMode.NORMAL: _normal,
    BlendMode.MULTIPLY: _multiply,
    BlendMode.SCREEN: _screen,
    BlendMode.OVERLAY: _overlay,
    BlendMode.DARKEN: _darken,
    BlendMode.LIGHTEN: _lighten,
    BlendMode.COLOR_DODGE: _color_dodge,
    BlendMode.COLOR_BURN: _color_burn,
    BlendMode.HARD_LIGHT: _hard_light,
    BlendMode.SOFT_LIGHT: _soft_light,
    BlendMode.DIFFERENCE: _difference,
    BlendMode.EXCLUSION: _exclusion,
    BlendMode.HUE: _hue,
    BlendMode.SATURATION: _saturation,
    BlendMode.COLOR: _color,
    BlendMode.LUMINOSITY: _luminosity,
}


def get_blend_function(mode: "BlendMode | str | None") -> BlendFn:
    """Total lookup from a mode (or mode name) to its blend function."""
    return BLEND_FUNCTIONS[BlendMode.parse(mode)]


def composite_over(
    backdrop: np.ndarray,
    source: np.ndarray,
    opacity: float = MAX_OPACITY,
    mode: "BlendMode | str" = BlendMode.NORMAL,
) -> np.ndarray:
    """Draw `source` over `backdrop` with a global alpha and blend mode.

    Args:
        backdrop: (H, W, 4) uint8 straight-alpha pixels underneath
        source: (H, W, 4) uint8 straight-alpha pixels being drawn
        opacity: Global alpha as 0-100 (a layer's opacity)
        mode: Blend mode or its name; unknown names blend as normal

    Returns:
        New (H, W, 4) uint8 array; inputs are not modified
    """
    if backdrop.shape != source.shape:
        raise ValueError(f"Cannot composite {source.shape} over {backdrop.shape}")

    blend = get_blend_function(mode)
    global_alpha = max(0.0, min(float(MAX_OPACITY), float(opacity))) / MAX_OPACITY

    cb = backdrop[..., :3].astype(np.float64) / 255.0
    ab = backdrop[..., 3:4].astype(np.float64) / 255.0
    cs = source[..., :3].astype(np.float64) / 255.0
    a_s = source[..., 3:4].astype(np.float64) / 255.0 * global_alpha

    mixed = (1.0 - ab) * cs + ab * np.clip(blend(cb, cs), 0.0, 1.0)
    alpha_out = a_s + ab * (1.0 - a_s)
    premultiplied = a_s * mixed + (1.0 - a_s) * ab * cb

    with np.errstate(divide="ignore", invalid="ignore"):
        color_out = np.where(alpha_out > 0.0, premultiplied / alpha_out, 0.0)

    result = np.empty_like(backdrop)
    result[..., :3] = to_uint8(color_out * 255.0)
    result[..., 3:4] = to_uint8(alpha_out * 255.0)
    return result
