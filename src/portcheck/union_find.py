"""Disjoint-set structure used for connectivity classes.

Both the copper graph (ports joined by routed traces) and the requirement
extractor (groups joined by shared net ids) merge items into equivalence
classes with this structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

K = TypeVar("K", bound="Hashable")


@dataclass
class UnionFind(Generic[K]):
    """Union-find keyed by arbitrary hashable items.

    Implements path compression and union by rank. Items are added lazily on
    first lookup, and insertion order is remembered so that ``groups()`` is
    deterministic.
    """

    parent: dict[K, K] = field(default_factory=dict)
    rank: dict[K, int] = field(default_factory=dict)

    def add(self, x: K) -> None:
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: K) -> K:
        """Find the root of an item with path compression."""
        self.add(x)
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # Iterative compression keeps long trace chains off the recursion limit
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: K, y: K) -> K:
        """Union two items by rank and return the surviving root."""
        root_x = self.find(x)
        root_y = self.find(y)

        if root_x == root_y:
            return root_x

        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
            return root_y
        if self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
            return root_x
        self.parent[root_y] = root_x
        self.rank[root_x] += 1
        return root_x

    def union_all(self, items: Iterable[K]) -> None:
        first: K | None = None
        for item in items:
            if first is None:
                first = item
                self.add(item)
            else:
                self.union(first, item)

    def connected(self, x: K, y: K) -> bool:
        """Check if two items are in the same class."""
        return self.find(x) == self.find(y)

    def groups(self) -> list[list[K]]:
        """Return every class, ordered by the first-added member of each."""
        by_root: dict[K, list[K]] = {}
        for item in list(self.parent):
            by_root.setdefault(self.find(item), []).append(item)
        return list(by_root.values())
