"""Seeded pseudo random source.

String seeds are hashed with an xmur3-style mixer and fed into mulberry32.
All arithmetic is done modulo 2**32 so the output sequence is bit-identical
to the browser implementation of the designer: the same seed shared as a URL
yields the same dungeon on either side.

Every generator owns its own ``SeededRNG``; nothing here touches the
``random`` module or any other global state.
"""
from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
_TWO_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def seed_from_string(text: str) -> int:
    """Hash ``text`` into an unsigned 32-bit seed (order sensitive)."""
    data = text.encode("utf-16-le")
    units = [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]
    h = (1779033703 ^ len(units)) & MASK32
    for unit in units:
        h = _imul(h ^ unit, 3432918353)
        h = ((h << 13) | (h >> 19)) & MASK32
    h = _imul(h ^ (h >> 16), 2246822507)
    h = _imul(h ^ (h >> 13), 3266489909)
    h ^= h >> 16
    return h & MASK32


class SeededRNG:
    """Mulberry32 generator seeded from a string."""

    __slots__ = ("seed", "_state")

    def __init__(self, seed: str):
        self.seed = seed
        self._state = seed_from_string(seed)

    def next(self) -> float:
        """Return a float in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & MASK32
        x = self._state
        x = _imul(x ^ (x >> 15), x | 1)
        x ^= (x + _imul(x ^ (x >> 7), x | 61)) & MASK32
        return ((x ^ (x >> 14)) & MASK32) / _TWO_32

    def int_in_range(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi] (both inclusive)."""
        r = self.next()
        return lo + math.floor(r * (hi - lo + 1))

    def float_in_range(self, lo: float, hi: float) -> float:
        """Uniform float in [lo, hi)."""
        return lo + self.next() * (hi - lo)

    def pick_one(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("pick_one called with an empty sequence")
        return items[int(self.next() * len(items))]

    def weighted_pick(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Pick one item with probability proportional to its weight."""
        if not items or len(items) != len(weights):
            raise ValueError("weighted_pick needs one weight per item")
        total = sum(w for w in weights if w > 0)
        if total <= 0:
            raise ValueError("weighted_pick needs at least one positive weight")
        target = self.next() * total
        acc = 0.0
        chosen = None
        for item, w in zip(items, weights):
            if w <= 0:
                continue
            acc += w
            chosen = item
            if target < acc:
                break
        return chosen


__all__ = ["SeededRNG", "seed_from_string", "MASK32"]
