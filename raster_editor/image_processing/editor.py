"""Editor façade: the single API a host shell drives.

AIDEV-NOTE: One Editor instance is one editing session. It owns the layer
stack, the selection, the undo history and the original image. Every
pixel-changing call ends with exactly one save_state(); selection calls never
touch history. All layer-pixel edits target the active layer and are followed
by a recomposite, so `composite` always reflects `layers`.
"""

import logging
from functools import wraps
from typing import Callable, Sequence

import numpy as np

from ..errors import EditorNotLoadedError
from ..models import Dimensions, EditorConfig, LayerInfo, SelectionInfo
from . import drawing, filters, transforms
from .buffer import PixelBuffer
from .codec import decode_image, encode_data_url, encode_image
from .history import HistoryManager, HistorySnapshot
from .layers import LayerStack
from .selection import SelectionMask
from .utils import parse_color

logger = logging.getLogger(__name__)


def requires_image(method):
    """Raise EditorNotLoadedError when called before load()."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.layers is None:
            raise EditorNotLoadedError(f"{method.__name__}() called before an image was loaded")
        return method(self, *args, **kwargs)

    return wrapper


class Editor:
    """Layered raster editor session."""

    def __init__(self, config: EditorConfig | None = None):
        self.config = config or EditorConfig()
        self.history = HistoryManager(self.config.max_history)
        self.layers: LayerStack | None = None
        self.selection: SelectionMask | None = None
        self.composite: PixelBuffer | None = None
        self.original: PixelBuffer | None = None

    @property
    def is_loaded(self) -> bool:
        return self.layers is not None

    # ==================== SESSION ====================

    def load(
        self,
        image: "bytes | str",
        width: int | None = None,
        height: int | None = None,
    ) -> Dimensions:
        """Start a session from encoded bytes, a data URL, or raw RGBA bytes.

        Args:
            image: Image bytes or `data:` URL
            width: Width of raw RGBA input (omit for encoded images)
            height: Height of raw RGBA input (omit for encoded images)

        Returns:
            Dimensions of the loaded image

        Raises:
            ImageDecodeError: If the input cannot be decoded; the editor is
                left exactly as it was
        """
        buffer = decode_image(image, width, height)
        self._start_session(buffer)
        logger.info("Loaded image with size: %dx%d pixels.", buffer.width, buffer.height)
        return self.get_dimensions()

    def load_blank(self, width: int, height: int, color: str | None = None) -> Dimensions:
        """Start a session on a solid-color canvas (config background by default)."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size {width}x{height}")
        rgb = parse_color(color or self.config.background_color)
        self._start_session(PixelBuffer.blank(width, height, rgb + (255,)))
        logger.info("Created blank %dx%d canvas", width, height)
        return self.get_dimensions()

    def _start_session(self, buffer: PixelBuffer) -> None:
        self.original = buffer.copy()
        self.layers = LayerStack(buffer.width, buffer.height)
        self.layers.initialize(buffer)
        self.selection = SelectionMask(buffer.width, buffer.height)
        self.history.clear()
        self._update_composite()
        self.save_state()

    @requires_image
    def reset(self) -> Dimensions:
        """Return to the originally loaded image as a single background layer."""
        self.layers.initialize(self.original)
        self._sync_selection(force=True)
        self._update_composite()
        self.save_state()
        logger.info("Reset to original image")
        return self.get_dimensions()

    # ==================== HISTORY ====================

    @requires_image
    def save_state(self) -> None:
        self.history.save_state(HistorySnapshot(composite=self.composite, layers=self.layers))

    @requires_image
    def undo(self) -> bool:
        """Step back one snapshot. Returns False when there is nothing to undo."""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    @requires_image
    def redo(self) -> bool:
        """Step forward one snapshot. Returns False when there is nothing to redo."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def _restore(self, snapshot: HistorySnapshot) -> None:
        # HistoryManager hands out copies, so these are ours to keep
        self.layers = snapshot.layers
        self.composite = snapshot.composite
        self._sync_selection()

    # ==================== INTERNALS ====================

    def _update_composite(self) -> None:
        self.composite = self.layers.get_composite()

    def _sync_selection(self, force: bool = False) -> None:
        """Replace the selection when the canvas size no longer matches it."""
        size_changed = (self.selection.width, self.selection.height) != (
            self.layers.width,
            self.layers.height,
        )
        if force or size_changed:
            self.selection = SelectionMask(self.layers.width, self.layers.height)

    def _active_mask(self) -> "np.ndarray | None":
        return self.selection.mask if self.has_selection() else None

    def _edit_active_layer(self, edit: Callable[[PixelBuffer], PixelBuffer]) -> None:
        layer = self.layers.active_layer
        layer.buffer = edit(layer.buffer)
        self._update_composite()
        self.save_state()

    def _apply_filter(self, fn: filters.FilterFn, *args) -> None:
        """Run a filter on the active layer, limited to the selection if there is one."""
        mask = self._active_mask()

        def edit(buffer: PixelBuffer) -> PixelBuffer:
            result = fn(buffer.data, *args)
            return PixelBuffer(filters.apply_with_mask(buffer.data, result, mask))

        self._edit_active_layer(edit)
        logger.debug("Applied %s%s (selection=%s)", fn.__name__, args, mask is not None)

    def _apply_geometry(self, fn: Callable[[PixelBuffer], PixelBuffer]) -> Dimensions:
        self.layers.map_buffers(fn)
        self._sync_selection()
        self._update_composite()
        self.save_state()
        return self.get_dimensions()

    # ==================== TRANSFORMS ====================

    @requires_image
    def resize(
        self,
        width: int | None = None,
        height: int | None = None,
        maintain_aspect_ratio: bool = True,
    ) -> Dimensions:
        """Resample every layer to a new canvas size."""
        size = transforms.target_size(
            self.layers.width, self.layers.height, width, height, maintain_aspect_ratio
        )
        logger.info("Resizing canvas to %dx%d", *size)
        return self._apply_geometry(
            lambda buffer: transforms.resize(buffer, size[0], size[1], self.config.resample)
        )

    @requires_image
    def crop(self, x: int, y: int, width: int, height: int) -> Dimensions:
        # Validate up front so a bad rectangle leaves the layers untouched
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError(f"Invalid crop size {width}x{height}")
        logger.info("Cropping to %dx%d at (%d, %d)", width, height, x, y)
        return self._apply_geometry(lambda buffer: transforms.crop(buffer, x, y, width, height))

    @requires_image
    def rotate(self, degrees: float) -> Dimensions:
        logger.info("Rotating by %s degrees", degrees)
        return self._apply_geometry(lambda buffer: transforms.rotate(buffer, degrees))

    @requires_image
    def flip_horizontal(self) -> Dimensions:
        return self._apply_geometry(transforms.flip_horizontal)

    @requires_image
    def flip_vertical(self) -> Dimensions:
        return self._apply_geometry(transforms.flip_vertical)

    # ==================== FILTERS ====================

    @requires_image
    def apply_filter(self, name: str, *args) -> None:
        """Apply a filter by name (see filters.FILTERS)."""
        self._apply_filter(filters.get_filter(name), *args)

    @requires_image
    def adjust_brightness(self, value: float) -> None:
        self._apply_filter(filters.brightness, value)

    @requires_image
    def adjust_contrast(self, value: float) -> None:
        if not -255 <= value <= 255:
            raise ValueError(f"Contrast must be between -255 and 255, got {value}")
        self._apply_filter(filters.contrast, value)

    @requires_image
    def adjust_saturation(self, value: float) -> None:
        self._apply_filter(filters.saturation, value)

    @requires_image
    def grayscale(self) -> None:
        self._apply_filter(filters.grayscale)

    @requires_image
    def sepia(self) -> None:
        self._apply_filter(filters.sepia)

    @requires_image
    def invert(self) -> None:
        self._apply_filter(filters.invert)

    @requires_image
    def blur(self, radius: int | None = None) -> None:
        radius = self.config.default_blur_radius if radius is None else radius
        self._apply_filter(filters.blur, radius)

    @requires_image
    def sharpen(self) -> None:
        self._apply_filter(filters.sharpen)

    @requires_image
    def edge_detect(self) -> None:
        self._apply_filter(filters.edge_detect)

    @requires_image
    def emboss(self) -> None:
        self._apply_filter(filters.emboss)

    # ==================== DRAWING ====================

    @requires_image
    def add_text(
        self,
        text: str,
        x: float,
        y: float,
        size: int | None = None,
        color: str = "#000000",
        align: str = "left",
        baseline: str = "top",
        max_width: float | None = None,
    ) -> None:
        size = size or self.config.default_font_size
        self._edit_active_layer(
            lambda buffer: drawing.draw_text(
                buffer, text, x, y, size=size, color=color,
                align=align, baseline=baseline, max_width=max_width,
            )
        )

    @requires_image
    def draw_shape(
        self,
        kind: str,
        x: float,
        y: float,
        width: float,
        height: float,
        fill_color: str | None = None,
        stroke_color: str | None = "#000000",
        line_width: int = 2,
    ) -> None:
        self._edit_active_layer(
            lambda buffer: drawing.draw_shape(
                buffer, kind, x, y, width, height,
                fill_color=fill_color, stroke_color=stroke_color, line_width=line_width,
            )
        )

    # ==================== LAYER MANAGEMENT ====================

    @requires_image
    def add_layer(self, name: str | None = None, insert_above: bool = True) -> "list[LayerInfo]":
        self.layers.add_layer(name, insert_above)
        return self._after_layer_change()

    @requires_image
    def delete_layer(self, index: int) -> "list[LayerInfo]":
        self.layers.delete_layer(index)
        return self._after_layer_change()

    @requires_image
    def duplicate_layer(self, index: int) -> "list[LayerInfo]":
        self.layers.duplicate_layer(index)
        return self._after_layer_change()

    @requires_image
    def set_active_layer(self, index: int) -> "list[LayerInfo]":
        self.layers.set_active_layer(index)
        return self.get_layer_info()

    @requires_image
    def move_layer_up(self, index: int) -> "list[LayerInfo]":
        if self.layers.move_layer_up(index):
            return self._after_layer_change()
        return self.get_layer_info()

    @requires_image
    def move_layer_down(self, index: int) -> "list[LayerInfo]":
        if self.layers.move_layer_down(index):
            return self._after_layer_change()
        return self.get_layer_info()

    @requires_image
    def set_layer_opacity(self, index: int, opacity: float) -> "list[LayerInfo]":
        if 0 <= index < len(self.layers):
            self.layers.layers[index].set_opacity(opacity)
            return self._after_layer_change()
        return self.get_layer_info()

    @requires_image
    def set_layer_blend_mode(self, index: int, blend_mode: str) -> "list[LayerInfo]":
        if 0 <= index < len(self.layers):
            self.layers.layers[index].set_blend_mode(blend_mode)
            return self._after_layer_change()
        return self.get_layer_info()

    @requires_image
    def toggle_layer_visibility(self, index: int) -> "list[LayerInfo]":
        """Show/hide a layer. Not recorded in history."""
        if 0 <= index < len(self.layers):
            layer = self.layers.layers[index]
            layer.visible = not layer.visible
            self._update_composite()
        return self.get_layer_info()

    @requires_image
    def rename_layer(self, index: int, name: str) -> "list[LayerInfo]":
        if 0 <= index < len(self.layers):
            self.layers.layers[index].name = name
        return self.get_layer_info()

    @requires_image
    def merge_layer_down(self, index: int) -> "list[LayerInfo]":
        self.layers.merge_down(index)
        return self._after_layer_change()

    @requires_image
    def flatten_layers(self) -> "list[LayerInfo]":
        self.layers.flatten()
        return self._after_layer_change()

    def _after_layer_change(self) -> "list[LayerInfo]":
        self._update_composite()
        self.save_state()
        return self.get_layer_info()

    @requires_image
    def get_layer_info(self) -> "list[LayerInfo]":
        return self.layers.get_layer_info()

    # ==================== SELECTION TOOLS ====================

    @requires_image
    def select_rectangle(self, x: float, y: float, width: float, height: float) -> SelectionInfo:
        self.selection.from_rectangle(x, y, width, height)
        return self.get_selection_info()

    @requires_image
    def select_ellipse(self, x: float, y: float, width: float, height: float) -> SelectionInfo:
        self.selection.from_ellipse(x, y, width, height)
        return self.get_selection_info()

    @requires_image
    def select_lasso(self, points: "Sequence[tuple[float, float]]") -> SelectionInfo:
        self.selection.from_path(points)
        return self.get_selection_info()

    @requires_image
    def select_magic_wand(
        self,
        x: int,
        y: int,
        tolerance: float | None = None,
        contiguous: bool = True,
    ) -> SelectionInfo:
        tolerance = self.config.default_tolerance if tolerance is None else tolerance
        self.selection.from_color(self.composite.data, x, y, tolerance, contiguous)
        return self.get_selection_info()

    @requires_image
    def select_all(self) -> SelectionInfo:
        self.selection.select_all()
        return self.get_selection_info()

    @requires_image
    def deselect(self) -> SelectionInfo:
        self.selection.deselect()
        return self.get_selection_info()

    @requires_image
    def invert_selection(self) -> SelectionInfo:
        self.selection.invert()
        return self.get_selection_info()

    @requires_image
    def feather_selection(self, radius: int) -> SelectionInfo:
        self.selection.apply_feather(radius)
        return self.get_selection_info()

    @requires_image
    def grow_selection(self, pixels: int) -> SelectionInfo:
        self.selection.grow(pixels)
        return self.get_selection_info()

    @requires_image
    def shrink_selection(self, pixels: int) -> SelectionInfo:
        self.selection.shrink(pixels)
        return self.get_selection_info()

    @requires_image
    def select_similar(self, tolerance: float | None = None) -> SelectionInfo:
        tolerance = self.config.default_tolerance if tolerance is None else tolerance
        self.selection.select_similar(self.composite.data, tolerance)
        return self.get_selection_info()

    @requires_image
    def transform_selection(self, x: float, y: float, width: float, height: float) -> SelectionInfo:
        self.selection.transform(x, y, width, height)
        return self.get_selection_info()

    def get_selection_info(self) -> SelectionInfo:
        if self.selection is None:
            return SelectionInfo(active=False)
        return self.selection.info()

    def has_selection(self) -> bool:
        return bool(self.selection and self.selection.active and self.selection.mask is not None)

    def get_selection_mask(self) -> "np.ndarray | None":
        if not self.has_selection():
            return None
        return self.selection.mask.copy()

    # ==================== SELECTION EDITING ====================

    @requires_image
    def copy_selection(self) -> PixelBuffer | None:
        """Masked copy of the active layer inside the selection bounds."""
        if not self.has_selection() or self.selection.bounds is None:
            return None
        return drawing.copy_masked(
            self.layers.active_layer.buffer, self.selection.mask, self.selection.bounds
        )

    @requires_image
    def cut_selection(self) -> PixelBuffer | None:
        copied = self.copy_selection()
        if copied is not None:
            self.delete_selection()
        return copied

    @requires_image
    def delete_selection(self) -> None:
        if not self.has_selection():
            return
        mask = self.selection.mask
        self._edit_active_layer(lambda buffer: drawing.clear_masked(buffer, mask))

    @requires_image
    def fill_selection(self, color: str) -> None:
        if not self.has_selection():
            return
        mask = self.selection.mask
        self._edit_active_layer(lambda buffer: drawing.fill_masked(buffer, mask, color))

    @requires_image
    def stroke_selection(self, color: str, width: int = 1) -> None:
        if not self.has_selection() or self.selection.bounds is None:
            return
        mask = self.selection.mask
        self._edit_active_layer(lambda buffer: drawing.stroke_masked(buffer, mask, color, width))

    # ==================== OUTPUT ====================

    @requires_image
    def get_buffer(self, fmt: str | None = None, quality: float | None = None) -> bytes:
        """Encoded composite (PNG unless fmt is "jpg"/"jpeg")."""
        return encode_image(
            self.composite,
            fmt or self.config.default_format,
            self.config.default_quality if quality is None else quality,
        )

    @requires_image
    def get_data_url(self, fmt: str | None = None, quality: float | None = None) -> str:
        return encode_data_url(
            self.composite,
            fmt or self.config.default_format,
            self.config.default_quality if quality is None else quality,
        )

    @requires_image
    def get_composite(self) -> PixelBuffer:
        return self.composite.copy()

    @requires_image
    def get_dimensions(self) -> Dimensions:
        return Dimensions(width=self.layers.width, height=self.layers.height)
