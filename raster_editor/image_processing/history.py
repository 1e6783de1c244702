"""Bounded undo/redo history of full editor snapshots.

AIDEV-NOTE: HistoryManager keeps a list of snapshots plus a pointer to the
current one. save_state() drops any redo states before appending, and the
oldest snapshot is discarded once the limit is reached. Snapshots are copied
on the way in and on the way out, so history never aliases live buffers.
"""

import logging
from dataclasses import dataclass

from ..models import MAX_HISTORY
from .buffer import PixelBuffer
from .layers import LayerStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistorySnapshot:
    """The composite image plus the layers that rendered it."""

    composite: PixelBuffer
    layers: LayerStack

    def copy(self) -> "HistorySnapshot":
        return HistorySnapshot(composite=self.composite.copy(), layers=self.layers.copy())


class HistoryManager:
    """Bounded undo/redo over deep snapshots."""

    def __init__(self, limit: int = MAX_HISTORY):
        """Initialize history manager.

        Args:
            limit: Maximum number of snapshots kept (default 20); older states
                are dropped first
        """
        self.limit = max(1, int(limit))
        self.states: "list[HistorySnapshot]" = []
        self.index = -1

    def save_state(self, snapshot: HistorySnapshot) -> None:
        """Record a snapshot as the new current state."""
        # New action = can't redo old futures
        del self.states[self.index + 1:]

        self.states.append(snapshot.copy())  # never alias the live buffers
        self.index += 1

        if len(self.states) > self.limit:
            self.states.pop(0)
            self.index -= 1
            logger.debug("History limit %d reached, dropped oldest snapshot", self.limit)

    def undo(self) -> "HistorySnapshot | None":
        """Step back one snapshot.

        Returns:
            Copy of the now-current snapshot, or None if nothing to undo
        """
        if self.index <= 0:
            return None
        self.index -= 1
        return self.states[self.index].copy()

    def redo(self) -> "HistorySnapshot | None":
        """Step forward one snapshot.

        Returns:
            Copy of the now-current snapshot, or None if nothing to redo
        """
        if self.index >= len(self.states) - 1:
            return None
        self.index += 1
        return self.states[self.index].copy()

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self.index > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return self.index < len(self.states) - 1

    def clear(self) -> None:
        self.states.clear()
        self.index = -1

    def get_stats(self) -> dict:
        """Get statistics about history usage.

        Returns:
            Dict of undo/redo counts, the limit, and whether it is reached
        """
        return {
            "undo_count": max(0, self.index),
            "redo_count": len(self.states) - 1 - self.index,
            "limit": self.limit,
            "history_full": len(self.states) >= self.limit,
        }
