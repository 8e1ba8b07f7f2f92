import logging
from typing import List, Optional

from .surface import RasterSurface, Snapshot

logger = logging.getLogger(__name__)


class HistoryStack:
    """Undo/redo over full-buffer snapshots of a surface.

    ``undo`` restores the snapshot it pops rather than the one beneath it, so the
    first undo after a stroke redraws the buffer as it already is. ``redo`` mirrors
    that. Every completed stroke calls ``snapshot``, which drops the redo timeline.
    """

    def __init__(self, surface: RasterSurface, max_depth: Optional[int] = None):
        self.surface = surface
        self.max_depth = max_depth
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def snapshot(self):
        self._undo.append(self.surface.capture())
        self._redo.clear()
        if self.max_depth is not None and len(self._undo) > self.max_depth:
            self._undo.pop(0)
        logger.debug("Snapshot taken, undo depth %d", len(self._undo))

    def undo(self) -> bool:
        if not self._undo:
            return False
        state = self._undo.pop()
        self._redo.append(state)
        self.surface.restore(state)
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        state = self._redo.pop()
        self._undo.append(state)
        self.surface.restore(state)
        return True
