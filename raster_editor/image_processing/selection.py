"""Selection masks and the algorithms that build them.

AIDEV-NOTE: A selection is a per-pixel 0-255 alpha mask over canvas
coordinates. Constructors (from_*, select_all) replace the mask; modifiers
(invert, grow, shrink, feather, select_similar, transform) edit it in place.
Selections are never part of undo/redo history.
"""

import logging
import math
from typing import Sequence

import numpy as np

from ..models import Rect, SelectionInfo
from .utils import clamp_rect, color_distance, gaussian_blur, shifted, square_offsets

logger = logging.getLogger(__name__)

SELECTED = 255


class SelectionMask:
    """Per-pixel selection alpha for a width x height canvas."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.mask: "np.ndarray | None" = None  # (H, W) uint8
        self.bounds: "Rect | None" = None
        self.feather = 0
        self.active = False
        self.path: "list[tuple[float, float]] | None" = None

    def _empty_mask(self) -> np.ndarray:
        return np.zeros((self.height, self.width), dtype=np.uint8)

    def _activate(self, mask: np.ndarray, bounds: "Rect | None") -> None:
        self.mask = mask
        self.bounds = bounds if bounds is not None and not bounds.is_empty else None
        self.feather = 0
        self.path = None
        self.active = True

    # --- Constructors ---

    def from_rectangle(self, x: float, y: float, width: float, height: float) -> None:
        """Select a rectangle clamped to the canvas."""
        rect = clamp_rect(x, y, width, height, self.width, self.height)
        mask = self._empty_mask()
        mask[rect.y:rect.bottom, rect.x:rect.right] = SELECTED
        self._activate(mask, rect)

    def from_ellipse(self, x: float, y: float, width: float, height: float) -> None:
        """Select the ellipse inscribed in a rectangle.

        Pixels are tested at their integer coordinates with
        (dx / rx)^2 + (dy / ry)^2 <= 1.
        """
        rect = clamp_rect(x, y, width, height, self.width, self.height)
        mask = self._empty_mask()

        rx, ry = width / 2.0, height / 2.0
        if not rect.is_empty and rx > 0 and ry > 0:
            cx, cy = x + rx, y + ry
            ys, xs = np.mgrid[rect.y:rect.bottom, rect.x:rect.right]
            dx = (xs - cx) / rx
            dy = (ys - cy) / ry
            inside = dx * dx + dy * dy <= 1.0
            mask[rect.y:rect.bottom, rect.x:rect.right][inside] = SELECTED

        self._activate(mask, rect)

    def from_path(self, points: "Sequence[tuple[float, float]]") -> None:
        """Select a freehand polygon with an even-odd scanline fill.

        Args:
            points: Polygon vertices; the last connects back to the first.
                Fewer than three points leaves the selection unchanged.
        """
        points = [(float(px), float(py)) for px, py in points]
        if len(points) < 3:
            return

        mask = self._empty_mask()
        min_y = min(py for _, py in points)
        max_y = max(py for _, py in points)
        edges = list(zip(points, points[1:] + points[:1]))

        first_row = max(0, math.floor(min_y))
        last_row = min(self.height - 1, math.ceil(max_y))
        for y in range(first_row, last_row + 1):
            crossings = []
            for (x1, y1), (x2, y2) in edges:
                # Half-open rule so shared vertices are counted once
                if (y1 <= y < y2) or (y2 <= y < y1):
                    crossings.append(x1 + (y - y1) * (x2 - x1) / (y2 - y1))
            crossings.sort()

            for start, end in zip(crossings[0::2], crossings[1::2]):
                left = max(0, math.floor(start))
                right = min(self.width, math.ceil(end))
                if left < right:
                    mask[y, left:right] = SELECTED

        self._activate(mask, None)
        self.update_bounds()
        self.path = points

    def from_color(
        self,
        image: np.ndarray,
        x: int,
        y: int,
        tolerance: float = 32,
        contiguous: bool = True,
    ) -> None:
        """Magic wand: select pixels whose RGB is within `tolerance` of the seed.

        Args:
            image: (H, W, 4) canvas pixels to sample
            x: Seed column
            y: Seed row
            tolerance: Maximum Euclidean RGB distance to the seed color
            contiguous: Flood fill (4-connected) from the seed when True,
                otherwise select matching pixels anywhere

        AIDEV-NOTE: The contiguous branch is an explicit stack flood fill with
        a visited map, so large regions cannot hit the recursion limit.
        """
        height, width = image.shape[:2]
        x, y = int(x), int(y)
        if not (0 <= x < width and 0 <= y < height):
            logger.warning("Magic wand seed (%d, %d) is outside the canvas", x, y)
            return

        seed = tuple(int(c) for c in image[y, x, :3])
        matches = color_distance(image, seed) <= tolerance
        mask = self._empty_mask()

        if contiguous:
            visited = np.zeros((height, width), dtype=bool)
            stack = [(x, y)]
            while stack:
                px, py = stack.pop()
                if px < 0 or px >= width or py < 0 or py >= height:
                    continue
                if visited[py, px] or not matches[py, px]:
                    continue
                visited[py, px] = True
                mask[py, px] = SELECTED
                stack.append((px + 1, py))
                stack.append((px - 1, py))
                stack.append((px, py + 1))
                stack.append((px, py - 1))
        else:
            mask[matches] = SELECTED

        self._activate(mask, None)
        self.update_bounds()
        logger.debug("Magic wand at (%d, %d) selected %d pixels", x, y, int(np.count_nonzero(mask)))

    def select_all(self) -> None:
        mask = np.full((self.height, self.width), SELECTED, dtype=np.uint8)
        self._activate(mask, Rect(0, 0, self.width, self.height))

    def deselect(self) -> None:
        self.mask = None
        self.bounds = None
        self.active = False
        self.path = None

    # --- Modifiers ---

    def update_bounds(self) -> None:
        """Recompute the bounding rectangle of every non-zero mask pixel."""
        if self.mask is None:
            self.bounds = None
            return
        rows = np.flatnonzero(self.mask.any(axis=1))
        cols = np.flatnonzero(self.mask.any(axis=0))
        if rows.size == 0:
            self.bounds = None
            return
        self.bounds = Rect(
            int(cols[0]),
            int(rows[0]),
            int(cols[-1] - cols[0] + 1),
            int(rows[-1] - rows[0] + 1),
        )

    def invert(self) -> None:
        if not self.active or self.mask is None:
            return
        self.mask = SELECTED - self.mask
        self.update_bounds()

    def grow(self, pixels: int) -> None:
        """Dilate: every pixel within a (2p+1) square of a selected pixel is selected."""
        pixels = int(pixels)
        if not self.active or self.mask is None or pixels <= 0:
            return

        selected = self.mask > 0
        grown = np.zeros_like(selected)
        for dy, dx in square_offsets(pixels):
            grown |= shifted(selected, dy, dx, fill=False)

        self.mask = np.where(grown, SELECTED, 0).astype(np.uint8)
        self.update_bounds()

    def shrink(self, pixels: int) -> None:
        """Erode: keep a pixel only if its whole (2p+1) square is selected.

        Neighbours outside the canvas count as unselected.
        """
        pixels = int(pixels)
        if not self.active or self.mask is None or pixels <= 0:
            return

        selected = self.mask > 0
        kept = selected.copy()
        for dy, dx in square_offsets(pixels):
            kept &= shifted(selected, dy, dx, fill=False)

        self.mask = np.where(kept, SELECTED, 0).astype(np.uint8)
        self.update_bounds()

    def apply_feather(self, radius: int) -> None:
        """Soften the mask edge with a separable Gaussian blur."""
        radius = int(radius)
        if not self.active or self.mask is None or radius <= 0:
            return
        self.mask = gaussian_blur(self.mask, radius)
        self.feather = radius
        self.update_bounds()

    def select_similar(self, image: np.ndarray, tolerance: float = 32) -> None:
        """Add every pixel close to any color already inside the selection.

        AIDEV-NOTE: Unlike the magic wand this compares against each distinct
        selected color, so cost grows with the number of colors selected.
        """
        if not self.active or self.mask is None:
            return

        rgb = image[..., :3]
        colors = np.unique(rgb[self.mask > 0].reshape(-1, 3), axis=0)
        similar = self.mask > 0
        for color in colors:
            pending = ~similar
            if not pending.any():
                break
            similar |= pending & (color_distance(image, tuple(int(c) for c in color)) <= tolerance)

        self.mask = np.where(similar, SELECTED, self.mask).astype(np.uint8)
        self.update_bounds()
        logger.debug("Select similar matched %d colors", len(colors))

    def transform(self, x: float, y: float, width: float, height: float) -> None:
        """Move/scale the selection so its bounds become the given rectangle.

        Each destination pixel samples the old mask at the inverse-mapped,
        floored source position (nearest neighbour).
        """
        if not self.active or self.mask is None or self.bounds is None:
            return
        if width == 0 or height == 0:
            return

        old = self.bounds
        scale_x = width / old.width
        scale_y = height / old.height

        ys, xs = np.mgrid[0:self.height, 0:self.width]
        src_x = np.floor((xs - x) / scale_x + old.x).astype(np.int64)
        src_y = np.floor((ys - y) / scale_y + old.y).astype(np.int64)
        valid = (src_x >= 0) & (src_x < self.width) & (src_y >= 0) & (src_y < self.height)

        remapped = self._empty_mask()
        remapped[valid] = self.mask[src_y[valid], src_x[valid]]
        self.mask = remapped
        self.update_bounds()

    # --- Queries ---

    def is_selected(self, x: int, y: int) -> bool:
        if not self.active or self.mask is None:
            return False
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return bool(self.mask[y, x] > 0)

    def mask_image(self) -> "np.ndarray | None":
        """Render the mask as white RGBA pixels whose alpha is the selection."""
        if self.mask is None:
            return None
        image = np.full((self.height, self.width, 4), 255, dtype=np.uint8)
        image[..., 3] = self.mask
        return image

    def info(self) -> SelectionInfo:
        if not self.active:
            return SelectionInfo(active=False)
        return SelectionInfo(
            active=True,
            bounds=self.bounds,
            feather=self.feather,
            has_path=self.path is not None,
        )
