from typing import Dict, List, Sequence, Tuple

from .config import DungeonConfig
from .geometry import Rect, aspect_ratio, clamp
from .models import Room, RoomCandidate
from .rng import SeededRNG
from .tiles import ROOM


def usable_area(leaf: Rect, config: DungeonConfig) -> Rect:
    """Leaf interior after the room margin is applied (may be empty)."""
    return leaf.shrink(config.room_margin)


def score_room(room: Rect, leaf: Rect, config: DungeonConfig) -> Tuple[float, Dict[str, float]]:
    """Favour large-ish, squarish rooms near the target fill ratio."""
    fill = room.area / leaf.area if leaf.area > 0 else 0.0
    breakdown = {
        "area": fill * 12,
        "aspect": aspect_ratio(room.w, room.h) * 8,
        "variety": (1 - abs(fill - config.target_fill)) * 4,
    }
    return breakdown["area"] + breakdown["aspect"] + breakdown["variety"], breakdown


def make_room_candidates(
    leaf: Rect, existing: Sequence[Room], config: DungeonConfig, rng: SeededRNG
) -> List[RoomCandidate]:
    """Sample ``room_candidates`` rectangles inside the leaf interior.

    Samples whose buffer-expanded box touches an already placed room are
    dropped, so the result may be empty. Four RNG draws are consumed per
    sample whether or not it survives.
    """
    out: List[RoomCandidate] = []
    usable = usable_area(leaf, config)
    low = config.room_min_size
    if usable.w < low or usable.h < low:
        return out
    for _ in range(config.room_candidates):
        w = rng.int_in_range(low, usable.w)
        h = rng.int_in_range(low, usable.h)
        x = rng.int_in_range(usable.x, usable.x + usable.w - w)
        y = rng.int_in_range(usable.y, usable.y + usable.h - h)
        rect = Rect(x, y, w, h)
        padded = rect.expand(config.room_buffer)
        if any(padded.intersects(r.rect) for r in existing):
            continue
        score, breakdown = score_room(rect, leaf, config)
        out.append(RoomCandidate(rect, score, breakdown))
    return out


def fallback_room(leaf: Rect, config: DungeonConfig) -> RoomCandidate:
    """Centered room covering about 75% of the usable interior.

    Used when no sampled candidate survives. When the margin leaves no
    interior at all the leaf itself is used so the room is never empty.
    """
    usable = usable_area(leaf, config)
    if usable.w <= 0 or usable.h <= 0:
        usable = leaf
    w = min(max(config.room_min_size, int(usable.w * 0.75)), usable.w)
    h = min(max(config.room_min_size, int(usable.h * 0.75)), usable.h)
    x = clamp(usable.x + (usable.w - w) // 2, usable.x, usable.x + usable.w - w)
    y = clamp(usable.y + (usable.h - h) // 2, usable.y, usable.y + usable.h - h)
    rect = Rect(x, y, w, h)
    score, breakdown = score_room(rect, leaf, config)
    return RoomCandidate(rect, score, breakdown)


def rank_candidates(candidates: List[RoomCandidate]) -> List[RoomCandidate]:
    """Sort best-first (stable, so earlier samples win ties)."""
    return sorted(candidates, key=lambda c: c.score, reverse=True)


def carve_room(tiles: bytearray, width: int, rect: Rect) -> None:
    for y in range(rect.y, rect.y2):
        row = y * width
        for x in range(rect.x, rect.x2):
            tiles[row + x] = ROOM


__all__ = [
    "usable_area",
    "score_room",
    "make_room_candidates",
    "fallback_room",
    "rank_candidates",
    "carve_room",
]
