"""Painting onto layers: text, shapes and selection fill/clear/stroke.

AIDEV-NOTE: Text and shapes are drawn with Pillow's ImageDraw onto a
transparent overlay which is then composited over the layer, so partially
covered (anti-aliased) pixels blend instead of overwriting.
"""

import logging

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..models import ShapeKind
from .blending import composite_over
from .buffer import PixelBuffer
from .utils import parse_color, shifted, square_offsets, to_uint8

logger = logging.getLogger(__name__)

# Pillow anchors: first letter horizontal, second vertical
_H_ANCHORS = {"left": "l", "start": "l", "center": "m", "right": "r", "end": "r"}
_V_ANCHORS = {"top": "t", "middle": "m", "alphabetic": "s", "bottom": "d", "hanging": "a"}


def _overlay_onto(buffer: PixelBuffer, overlay: Image.Image) -> PixelBuffer:
    return PixelBuffer(composite_over(buffer.data, np.array(overlay, dtype=np.uint8)))


def load_font(size: int) -> ImageFont.ImageFont:
    """Pillow's bundled default font at `size` pixels."""
    return ImageFont.load_default(size=size)


def draw_text(
    buffer: PixelBuffer,
    text: str,
    x: float,
    y: float,
    size: int = 30,
    color: str = "#000000",
    align: str = "left",
    baseline: str = "top",
    max_width: "float | None" = None,
) -> PixelBuffer:
    """Render a line of text.

    Args:
        buffer: Layer pixels to draw on
        text: Text to render
        x: Anchor x position
        y: Anchor y position
        size: Font size in pixels
        color: Fill color
        align: "left", "center" or "right" relative to x
        baseline: "top", "middle", "alphabetic" or "bottom" relative to y
        max_width: When the rendered text is wider, it is squeezed horizontally to fit

    Returns:
        New PixelBuffer with the text composited on top
    """
    rgb = parse_color(color)
    font = load_font(size)
    anchor = _H_ANCHORS.get(align, "l") + _V_ANCHORS.get(baseline, "t")

    left, top, right, bottom = font.getbbox(text, anchor=anchor)
    text_width = right - left
    if not text or text_width <= 0:
        return buffer.copy()

    # Draw into a tight tile first so max_width can scale just the text
    tile = Image.new("RGBA", (text_width, max(1, bottom - top)), (0, 0, 0, 0))
    ImageDraw.Draw(tile).text((-left, -top), text, font=font, fill=rgb + (255,), anchor=anchor)

    dest_x, dest_y = x + left, y + top
    if max_width is not None and 0 < max_width < text_width:
        scale = max_width / text_width
        tile = tile.resize((max(1, int(text_width * scale)), tile.height), Image.Resampling.BILINEAR)
        # Keep the anchor point fixed while squeezing
        dest_x = x + left * scale

    overlay = Image.new("RGBA", buffer.size, (0, 0, 0, 0))
    overlay.paste(tile, (int(round(dest_x)), int(round(dest_y))))
    return _overlay_onto(buffer, overlay)


def draw_shape(
    buffer: PixelBuffer,
    kind: "str | ShapeKind",
    x: float,
    y: float,
    width: float,
    height: float,
    fill_color: "str | None" = None,
    stroke_color: "str | None" = "#000000",
    line_width: int = 2,
) -> PixelBuffer:
    """Draw a rectangle, circle or ellipse.

    A circle uses radius min(width, height) / 2 centred in the rectangle.

    Raises:
        ValueError: For an unknown shape kind
    """
    shape = ShapeKind(kind) if not isinstance(kind, ShapeKind) else kind

    if shape is ShapeKind.CIRCLE:
        radius = min(width, height) / 2.0
        cx, cy = x + width / 2.0, y + height / 2.0
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
    else:
        box = [x, y, x + width, y + height]
    box = [min(box[0], box[2]), min(box[1], box[3]), max(box[0], box[2]), max(box[1], box[3])]

    fill = parse_color(fill_color) + (255,) if fill_color else None
    outline = parse_color(stroke_color) + (255,) if stroke_color else None
    stroke_width = max(0, int(line_width)) if outline else 0

    overlay = Image.new("RGBA", buffer.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    if shape is ShapeKind.RECTANGLE:
        draw.rectangle(box, fill=fill, outline=outline, width=stroke_width)
    else:
        draw.ellipse(box, fill=fill, outline=outline, width=stroke_width)

    return _overlay_onto(buffer, overlay)


# --- Selection pixel operations ---


def copy_masked(buffer: PixelBuffer, mask: np.ndarray, bounds) -> PixelBuffer:
    """Cut the bounds rectangle out with alpha multiplied by the mask."""
    region = buffer.get_region(bounds.x, bounds.y, bounds.width, bounds.height)
    weight = mask[bounds.y:bounds.bottom, bounds.x:bounds.right].astype(np.float64) / 255.0
    region.data[..., 3] = to_uint8(region.data[..., 3] * weight)
    return region


def clear_masked(buffer: PixelBuffer, mask: np.ndarray) -> PixelBuffer:
    """Fade every channel toward transparent black by the mask alpha."""
    keep = 1.0 - mask.astype(np.float64)[..., None] / 255.0
    return PixelBuffer(to_uint8(buffer.data * keep))


def fill_masked(buffer: PixelBuffer, mask: np.ndarray, color: str) -> PixelBuffer:
    """Lerp every pixel toward the opaque `color` by the mask alpha.

    On an opaque layer this only changes RGB; on a transparent layer the
    selection also becomes opaque so the fill is visible.
    """
    rgba = np.asarray(parse_color(color) + (255,), dtype=np.float64)
    weight = mask.astype(np.float64)[..., None] / 255.0
    return PixelBuffer(to_uint8(rgba * weight + buffer.data * (1.0 - weight)))


def mask_edges(mask: np.ndarray) -> np.ndarray:
    """Selected pixels with at least one unselected 4-neighbour inside the canvas."""
    selected = mask > 0
    height, width = selected.shape
    edge = np.zeros_like(selected)
    # Neighbours past the canvas border do not make a pixel an edge
    edge[:, 1:] |= ~selected[:, :-1]
    edge[:, :-1] |= ~selected[:, 1:]
    edge[1:, :] |= ~selected[:-1, :]
    edge[:-1, :] |= ~selected[1:, :]
    return selected & edge


def stroke_masked(buffer: PixelBuffer, mask: np.ndarray, color: str, width: int = 1) -> PixelBuffer:
    """Paint the selection outline, widened by width // 2 on each side."""
    outline = mask_edges(mask)
    spread = max(0, int(width) // 2)
    if spread:
        widened = outline.copy()
        for dy, dx in square_offsets(spread):
            widened |= shifted(outline, dy, dx, fill=False)
        outline = widened

    r, g, b = parse_color(color)
    result = buffer.data.copy()
    result[outline] = (r, g, b, 255)
    return PixelBuffer(result)
