"""Bounded undo/redo stacks of committed states."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from ..core.protocol import State

DEFAULT_MAX_HISTORY_SIZE = 50


class HistoryStack:
    """Two fixed capacity stacks of immutable state snapshots.

    When a stack is full the oldest snapshot is evicted to make room for
    the newest one. Recording a new state clears the redo stack.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_HISTORY_SIZE) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self._max_size = max_size
        self._undo: Deque[State] = deque(maxlen=max_size)
        self._redo: Deque[State] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def record(self, previous: State) -> None:
        self._undo.append(previous)
        self._redo.clear()

    def undo(self, current: State) -> Optional[State]:
        """Return the state before ``current`` or ``None`` when exhausted."""

        if not self._undo:
            return None
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: State) -> Optional[State]:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()


__all__ = ["DEFAULT_MAX_HISTORY_SIZE", "HistoryStack"]
