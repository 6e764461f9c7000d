from __future__ import annotations

from typing import Dict, Hashable, Iterable

from .errors import UnknownItemError


class DisjointSet:
    """Union-find over a fixed item set with path compression and union by rank.

    ``union`` reports whether two components were actually merged, which is
    exactly the Kruskal question "would this edge close a cycle?".
    """

    def __init__(self, items: Iterable[Hashable] = ()):
        self._parent: Dict[Hashable, Hashable] = {}
        self._rank: Dict[Hashable, int] = {}
        for item in items:
            self.add(item)

    def __contains__(self, item) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def add(self, item) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._rank[item] = 0

    def find(self, item):
        parent = self._parent
        if item not in parent:
            raise UnknownItemError(item)
        root = item
        while parent[root] != root:
            root = parent[root]
        # compress every node on the walked path onto the root
        while parent[item] != root:
            parent[item], item = root, parent[item]
        return root

    def union(self, a, b) -> bool:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        rank_a, rank_b = self._rank[ra], self._rank[rb]
        if rank_a < rank_b:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if rank_a == rank_b:
            self._rank[ra] = rank_a + 1
        return True

    def connected(self, a, b) -> bool:
        return self.find(a) == self.find(b)

    def component_count(self) -> int:
        return sum(1 for item in self._parent if self.find(item) == item)


__all__ = ["DisjointSet"]
