"""Bounded linear undo/redo history of full image snapshots.

Every entry is an independent deep copy, so memory grows with
``max_depth x image size``.  Pushing a new state discards the redo branch.
"""
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from .raster import RasterBuffer

LOGGER = logging.getLogger("raster_studio")

DEFAULT_HISTORY_DEPTH = 10


class HistoryStack:
    """Undo and redo stacks capped at ``max_depth`` undo entries.

    All methods take an internal lock and may be called from any thread.
    """

    def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"History depth must be at least 1, got {max_depth}")
        self.max_depth = max_depth
        self._undo: List[RasterBuffer] = []
        self._redo: List[RasterBuffer] = []
        self._lock = threading.Lock()

    def push_state(self, image: RasterBuffer) -> None:
        """Record ``image`` as the state to return to on the next undo."""

        snapshot = image.copy()
        with self._lock:
            self._undo.append(snapshot)
            self._redo.clear()
            while len(self._undo) > self.max_depth:
                self._undo.pop(0)
                LOGGER.debug("History full; evicted oldest snapshot")

    def undo(self, current: RasterBuffer) -> Optional[RasterBuffer]:
        """Step back; returns ``None`` when there is nothing to undo."""

        with self._lock:
            if not self._undo:
                return None
            self._redo.append(current.copy())
            return self._undo.pop()

    def redo(self, current: RasterBuffer) -> Optional[RasterBuffer]:
        """Step forward; returns ``None`` when there is nothing to redo."""

        with self._lock:
            if not self._redo:
                return None
            self._undo.append(current.copy())
            return self._redo.pop()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def clear(self) -> None:
        with self._lock:
            self._undo.clear()
            self._redo.clear()


__all__ = ["DEFAULT_HISTORY_DEPTH", "HistoryStack"]
