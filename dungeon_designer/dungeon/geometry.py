"""Integer grid geometry shared by every generation stage."""
from __future__ import annotations

from typing import NamedTuple


class Point(NamedTuple):
    x: int
    y: int

    def to_dict(self):
        return {"x": self.x, "y": self.y}


class Rect(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    @property
    def x2(self) -> int:
        return self.x + self.w

    @property
    def y2(self) -> int:
        return self.y + self.h

    @property
    def area(self) -> int:
        return self.w * self.h

    @property
    def center(self) -> Point:
        return Point(self.x + self.w // 2, self.y + self.h // 2)

    def contains_rect(self, other: "Rect") -> bool:
        return self.x <= other.x and self.y <= other.y and other.x2 <= self.x2 and other.y2 <= self.y2

    def intersects(self, other: "Rect") -> bool:
        return not (self.x2 <= other.x or other.x2 <= self.x or self.y2 <= other.y or other.y2 <= self.y)

    def expand(self, pad: int) -> "Rect":
        return Rect(self.x - pad, self.y - pad, self.w + pad * 2, self.h + pad * 2)

    def shrink(self, margin: int) -> "Rect":
        """Inset by ``margin`` on every side; width/height may go to zero or below."""
        return Rect(self.x + margin, self.y + margin, self.w - margin * 2, self.h - margin * 2)

    def cells(self):
        for y in range(self.y, self.y2):
            for x in range(self.x, self.x2):
                yield x, y

    def to_dict(self):
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def dist2(a: Point, b: Point) -> int:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def manhattan(a: Point, b: Point) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def aspect_ratio(w: int, h: int) -> float:
    """Squareness in [0, 1]; 1 is a square, degenerate boxes score 0."""
    if w <= 0 or h <= 0:
        return 0.0
    return min(w / h, h / w)


def nearest_point_on_perimeter(room: Rect, target: Point) -> Point:
    """Clamp ``target`` into ``room`` then snap it to the closest edge cell.

    Ties prefer left, right, top, bottom in that order.
    """
    ix = clamp(target.x, room.x, room.x2 - 1)
    iy = clamp(target.y, room.y, room.y2 - 1)
    left = abs(ix - room.x)
    right = abs(ix - (room.x2 - 1))
    top = abs(iy - room.y)
    bottom = abs(iy - (room.y2 - 1))
    m = min(left, right, top, bottom)
    if m == left:
        return Point(room.x, iy)
    if m == right:
        return Point(room.x2 - 1, iy)
    if m == top:
        return Point(ix, room.y)
    return Point(ix, room.y2 - 1)


__all__ = [
    "Point",
    "Rect",
    "clamp",
    "dist2",
    "manhattan",
    "aspect_ratio",
    "nearest_point_on_perimeter",
]
