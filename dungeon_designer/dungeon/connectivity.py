"""Room adjacency candidates and room-graph reachability.

Candidate edges come from each room's ``k`` nearest neighbours (by center
distance), deduplicated and sorted by weight. A k-nearest graph can split
into clusters that never see each other; in that case the shortest edges
bridging the clusters are appended so Kruskal can always finish a spanning
tree.
"""
from __future__ import annotations

import math
from collections import deque
from typing import Dict, Iterable, List, Sequence, Set

from .geometry import dist2
from .models import GraphEdge, Room
from .union_find import DisjointSet


def _edge(a: Room, b: Room, d2: int) -> GraphEdge:
    lo, hi = (a.id, b.id) if a.id < b.id else (b.id, a.id)
    return GraphEdge(lo, hi, math.sqrt(d2))


def k_nearest_edges(rooms: Sequence[Room], k: int) -> List[GraphEdge]:
    k = max(1, k)
    edges: List[GraphEdge] = []
    seen = set()
    for i, a in enumerate(rooms):
        dists = [(dist2(a.center, b.center), j) for j, b in enumerate(rooms) if j != i]
        dists.sort(key=lambda t: t[0])
        for d2, j in dists[:k]:
            e = _edge(a, rooms[j], d2)
            if e.key in seen:
                continue
            seen.add(e.key)
            edges.append(e)
    edges.sort(key=lambda e: e.weight)
    return edges


def bridging_edges(rooms: Sequence[Room], edges: Iterable[GraphEdge]) -> List[GraphEdge]:
    """Shortest extra edges needed to join every component of ``edges``."""
    dsu = DisjointSet(r.id for r in rooms)
    for e in edges:
        dsu.union(e.a, e.b)
    if dsu.component_count() <= 1:
        return []
    pairs = []
    for i, a in enumerate(rooms):
        for b in rooms[i + 1:]:
            if not dsu.connected(a.id, b.id):
                pairs.append(_edge(a, b, dist2(a.center, b.center)))
    pairs.sort(key=lambda e: (e.weight, e.a, e.b))
    bridges = []
    for e in pairs:
        if dsu.union(e.a, e.b):
            bridges.append(e)
    return bridges


def build_candidate_edges(rooms: Sequence[Room], k: int) -> List[GraphEdge]:
    edges = k_nearest_edges(rooms, k)
    bridges = bridging_edges(rooms, edges)
    if bridges:
        edges = sorted(edges + bridges, key=lambda e: e.weight)
    return edges


def neighbor_map(rooms: Sequence[Room], edges: Iterable[GraphEdge]) -> Dict[str, List[str]]:
    """Room id -> neighbour ids in edge order (no duplicates)."""
    neighbors: Dict[str, List[str]] = {r.id: [] for r in rooms}
    for e in edges:
        if e.b not in neighbors.get(e.a, []):
            neighbors.setdefault(e.a, []).append(e.b)
        if e.a not in neighbors.get(e.b, []):
            neighbors.setdefault(e.b, []).append(e.a)
    return neighbors


def reachable_rooms(neighbors: Dict[str, List[str]], start: str) -> Set[str]:
    """Breadth-first closure of ``start`` over the room graph."""
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nxt in neighbors.get(current, []):
            if nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)
    return visited


def rooms_connected(rooms: Sequence[Room], edges: Iterable[GraphEdge]) -> bool:
    if len(rooms) <= 1:
        return True
    neighbors = neighbor_map(rooms, edges)
    return len(reachable_rooms(neighbors, rooms[0].id)) == len(rooms)


__all__ = [
    "k_nearest_edges",
    "bridging_edges",
    "build_candidate_edges",
    "neighbor_map",
    "reachable_rooms",
    "rooms_connected",
]
