"""Cost-weighted A* over the live tile grid.

Step costs depend on the tile being entered:
    * WALL costs 1 (carving fresh rock),
    * CORRIDOR / DOOR cost ``reuse_corridors_bias`` (below 1 encourages merging corridors),
    * ROOM costs ``room_penalty`` (discourages cutting through rooms).
Changing direction adds ``turn_penalty``. The Manhattan heuristic is scaled by
``min(1, reuse_corridors_bias)`` so it never overestimates the cheapest step.

The open list is a ``MinHeap`` without decrease-key; a node reached again with
a better cost is pushed again and the stale entry is dropped when popped
because the node is already closed.
"""
from __future__ import annotations

import math
from typing import List, NamedTuple, Sequence

from .geometry import Point, manhattan
from .heap import MinHeap
from .tiles import CORRIDOR, DOOR, ROOM, WALL

# +x, -x, +y, -y; index doubles as the direction id used for turn detection
DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class PathResult(NamedTuple):
    path: List[Point]
    visited: int
    cost: float


def tile_cost(tile: int, room_penalty: float, reuse_corridors_bias: float) -> float:
    if tile == WALL:
        return 1.0
    if tile == CORRIDOR or tile == DOOR:
        return reuse_corridors_bias
    if tile == ROOM:
        return room_penalty
    return 1.0


def find_path(
    tiles: Sequence[int],
    width: int,
    height: int,
    start: Point,
    goal: Point,
    room_penalty: float,
    reuse_corridors_bias: float,
    turn_penalty: float,
) -> PathResult:
    """Return the cheapest 4-connected path from ``start`` to ``goal`` inclusive.

    If the goal cannot be reached the result is the two-point direct path
    ``[start, goal]`` with ``cost=math.inf``; the caller always gets a path.
    """
    size = width * height
    start_i = start.y * width + start.x
    goal_i = goal.y * width + goal.x

    g = [math.inf] * size
    came_from = [-1] * size
    came_dir = [-1] * size
    closed = bytearray(size)

    min_step = min(1.0, reuse_corridors_bias)
    open_list = MinHeap()
    g[start_i] = 0.0
    open_list.push(manhattan(start, goal) * min_step, start_i)

    visited = 0
    while open_list:
        _, cur_i = open_list.pop()
        if closed[cur_i]:
            continue
        closed[cur_i] = 1
        visited += 1
        if cur_i == goal_i:
            break

        cx, cy = cur_i % width, cur_i // width
        prev_dir = came_dir[cur_i]
        for dir_index, (dx, dy) in enumerate(DIRECTIONS):
            nx, ny = cx + dx, cy + dy
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            ni = ny * width + nx
            if closed[ni]:
                continue
            step = tile_cost(tiles[ni], room_penalty, reuse_corridors_bias)
            turn = turn_penalty if prev_dir != -1 and prev_dir != dir_index else 0
            tentative = g[cur_i] + step + turn
            if tentative < g[ni]:
                g[ni] = tentative
                came_from[ni] = cur_i
                came_dir[ni] = dir_index
                h = manhattan(Point(nx, ny), goal) * min_step
                open_list.push(tentative + h, ni)

    if came_from[goal_i] == -1 and start_i != goal_i:
        return PathResult([start, goal], visited, math.inf)

    path = [Point(goal_i % width, goal_i // width)]
    cur = goal_i
    while cur != start_i:
        cur = came_from[cur]
        if cur == -1:
            break
        path.append(Point(cur % width, cur // width))
    path.reverse()
    return PathResult(path, visited, g[goal_i])


__all__ = ["find_path", "tile_cost", "PathResult", "DIRECTIONS"]
