"""Bounded undo history."""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class HistoryStack(Generic[T]):
    """LIFO stack of snapshots that silently drops the oldest entry past ``limit``."""

    def __init__(self, limit: int = 50) -> None:
        if limit < 1:
            raise ValueError("History limit must be >= 1")
        self._entries: deque[T] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._entries.maxlen or 0

    def push(self, entry: T) -> None:
        self._entries.append(entry)

    def pop(self) -> T | None:
        if not self._entries:
            return None
        return self._entries.pop()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


__all__ = ["HistoryStack"]
