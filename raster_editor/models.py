"""Data models and constants for the raster editor."""

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path

# Configuration file path
CONFIG_FILE = Path.home() / ".raster_editor_config.json"

# AIDEV-NOTE: Canvas channel layout is RGBA, 8 bits per sample, everywhere.
CHANNELS = 4

MAX_OPACITY = 100
MAX_HISTORY = 20


class BlendMode(Enum):
    """Layer compositing functions.

    AIDEV-NOTE: Values match the names the host shell sends. Lookups go through
    `parse`, which never raises.
    """

    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    HARD_LIGHT = "hard-light"
    SOFT_LIGHT = "soft-light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    HUE = "hue"
    SATURATION = "saturation"
    COLOR = "color"
    LUMINOSITY = "luminosity"

    @classmethod
    def parse(cls, name: "str | BlendMode | None") -> "BlendMode":
        """Map a mode name to a BlendMode, falling back to NORMAL."""
        if isinstance(name, BlendMode):
            return name
        if not name:
            return cls.NORMAL
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            return cls.NORMAL


class ShapeKind(Enum):
    """Shapes supported by draw_shape."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"


@dataclass(frozen=True)
class Rect:
    """Immutable integer rectangle in canvas pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Dimensions:
    """Canvas size reported back to the host shell."""

    width: int
    height: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LayerInfo:
    """Per-layer metadata for building a layers panel."""

    id: int
    name: str
    visible: bool
    opacity: int
    blend_mode: str
    locked: bool
    is_background: bool
    is_active: bool
    index: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SelectionInfo:
    """Selection summary.

    AIDEV-NOTE: An inactive selection reports only `active=False`; the other
    fields stay None.
    """

    active: bool
    bounds: "Rect | None" = None
    feather: "int | None" = None
    has_path: "bool | None" = None

    def to_dict(self) -> dict:
        if not self.active:
            return {"active": False}
        return {
            "active": True,
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "feather": self.feather,
            "has_path": self.has_path,
        }


@dataclass
class EditorConfig:
    """Editor behaviour settings."""

    # History
    max_history: int = MAX_HISTORY  # snapshots kept for undo/redo

    # Selection
    default_tolerance: float = 32.0  # RGB distance for magic wand / similar

    # Filters
    default_blur_radius: int = 5  # pixels

    # Output encoding
    default_format: str = "png"  # "png" or "jpeg"
    default_quality: float = 0.9  # 0.0-1.0, JPEG only

    # Resampling used by resize ("nearest", "bilinear", "bicubic", "lanczos")
    resample: str = "lanczos"

    # Drawing
    default_font_size: int = 30
    background_color: str = "#ffffff"  # fill for blank canvases
