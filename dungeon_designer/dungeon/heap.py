"""Array-backed binary min-heap used as the A* open list.

There is no decrease-key or removal: callers push a fresh entry
when they find a cheaper route to a node and skip stale entries on pop using
their own closed set.
"""
from __future__ import annotations

from typing import Any, List, Optional, Tuple


class MinHeap:
    __slots__ = ("_data",)

    def __init__(self):
        self._data: List[Tuple[float, Any]] = []

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def push(self, priority: float, value: Any) -> None:
        self._data.append((priority, value))
        self._sift_up(len(self._data) - 1)

    def pop(self) -> Optional[Tuple[float, Any]]:
        """Remove and return the ``(priority, value)`` pair with the smallest priority."""
        data = self._data
        if not data:
            return None
        top = data[0]
        last = data.pop()
        if data:
            data[0] = last
            self._sift_down(0)
        return top

    def _sift_up(self, i: int) -> None:
        data = self._data
        while i > 0:
            p = (i - 1) >> 1
            if data[p][0] <= data[i][0]:
                break
            data[p], data[i] = data[i], data[p]
            i = p

    def _sift_down(self, i: int) -> None:
        data = self._data
        n = len(data)
        while True:
            left = i * 2 + 1
            right = left + 1
            best = i
            if left < n and data[left][0] < data[best][0]:
                best = left
            if right < n and data[right][0] < data[best][0]:
                best = right
            if best == i:
                break
            data[best], data[i] = data[i], data[best]
            i = best


__all__ = ["MinHeap"]
