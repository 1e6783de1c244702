"""Raster editing engine.

AIDEV-NOTE: This package holds the complete editing core. Organized into
modular components:
- editor: Editor façade the host shell drives
- buffer: PixelBuffer RGBA storage
- layers / blending: layer stack and compositing math
- selection: selection masks and their construction algorithms
- filters / transforms: pixel and geometry operations
- history: bounded undo/redo snapshots
- drawing / codec: painting helpers and image encode/decode
- utils: Gaussian kernel, rectangle and color helpers
"""

from .buffer import PixelBuffer
from .editor import Editor
from .history import HistoryManager, HistorySnapshot
from .layers import Layer, LayerStack
from .selection import SelectionMask

__all__ = [
    "Editor",
    "HistoryManager",
    "HistorySnapshot",
    "Layer",
    "LayerStack",
    "PixelBuffer",
    "SelectionMask",
]
