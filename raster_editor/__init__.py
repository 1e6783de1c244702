"""Layered raster image editor core."""

from .errors import EditorNotLoadedError, ImageDecodeError, LayerError, RasterEditorError
from .image_processing import Editor, PixelBuffer
from .models import BlendMode, Dimensions, EditorConfig, LayerInfo, Rect, SelectionInfo

__version__ = "0.1.0"

__all__ = [
    "BlendMode",
    "Dimensions",
    "Editor",
    "EditorConfig",
    "EditorNotLoadedError",
    "ImageDecodeError",
    "LayerError",
    "LayerInfo",
    "PixelBuffer",
    "RasterEditorError",
    "Rect",
    "SelectionInfo",
]
