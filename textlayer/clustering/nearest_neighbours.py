"""
Nearest-Neighbour Clustering
============================
Generic two-phase clustering reused at glyph, word and line granularity.

Phase 1 (fan-out over pivots): every eligible pivot looks up its nearest
acceptable candidate and records a directed edge ``edges[pivot] = candidate``
when the pair is closer than the pair's maximum distance, else -1. Each pivot
writes only its own slot, so the fan-out needs no locking.

Phase 2 (sequential): the directed edges are treated as undirected and the
connected components are extracted with a union-find. Components come out
ordered by their smallest member index, members in ascending index order.

Which points are compared, how far is too far and which pairs are allowed is
described by a ``ClusteringStrategy``.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from ..errors import CancellationToken, check_cancelled
from ..spatial import KdTree, euclidean, find_index_nearest


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ClusteringConfig:
    """Fan-out settings for phase 1"""
    max_workers: int = 1  # 1 = sequential
    chunk_size: int = 256
    cancel_check_interval: int = 100


class ClusteringStrategy(Generic[T]):
    """
    How elements pair up. Subclass and override what differs.

    ``pivot_point`` / ``candidate_point`` return points for the point based
    searches and segments (pairs of points) for ``nearest_segments``;
    ``distance`` must accept whatever they return.
    """

    def distance(self, a, b) -> float:
        return euclidean(a, b)

    def max_distance(self, pivot: T, candidate: T) -> float:
        raise NotImplementedError

    def pivot_point(self, element: T):
        raise NotImplementedError

    def candidate_point(self, element: T):
        return self.pivot_point(element)

    def filter_pivot(self, element: T) -> bool:
        return True

    def filter_final(self, pivot: T, candidate: T) -> bool:
        return True


class UnionFind:
    """Disjoint sets with union by rank and path compression."""

    def __init__(self, n: int):
        self.parent = list(range(n))
        self.rank = [0] * n

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> None:
        px, py = self.find(x), self.find(y)
        if px == py:
            return
        if self.rank[px] < self.rank[py]:
            px, py = py, px
        self.parent[py] = px
        if self.rank[px] == self.rank[py]:
            self.rank[px] += 1


def _components(uf: UnionFind, n: int) -> List[List[int]]:
    groups = {}
    for i in range(n):
        groups.setdefault(uf.find(i), []).append(i)
    return list(groups.values())


def group_indexes(
    edges: Sequence[int],
    token: Optional[CancellationToken] = None,
    cancel_check_interval: int = 100,
) -> List[List[int]]:
    """
    Connected components of the undirected graph given by ``edges[i] = j``
    (-1 for no edge).
    """
    uf = UnionFind(len(edges))
    for i, j in enumerate(edges):
        if i % cancel_check_interval == 0:
            check_cancelled(token)
        if j != -1:
            uf.union(i, j)
    return _components(uf, len(edges))


def group_indexes_multi(edges: Sequence[Sequence[int]]) -> List[List[int]]:
    """Same as ``group_indexes`` with any number of edges per element."""
    uf = UnionFind(len(edges))
    for i, targets in enumerate(edges):
        for j in targets:
            if j != -1:
                uf.union(i, j)
    return _components(uf, len(edges))


class NearestNeighbourClustering:
    """
    Nearest-neighbour clustering engine.

    Usage:
        engine = NearestNeighbourClustering(ClusteringConfig(max_workers=4))
        groups = engine.nearest_neighbours(glyphs, WordStrategy(config))
    """

    def __init__(self, config: Optional[ClusteringConfig] = None):
        self.config = config or ClusteringConfig()

    # ------------------------------------------------------------
    # Public overloads
    # ------------------------------------------------------------

    def nearest_neighbours(
        self,
        elements: Sequence[T],
        strategy: ClusteringStrategy,
        token: Optional[CancellationToken] = None,
    ) -> List[List[T]]:
        """Cluster using the single nearest candidate of each pivot."""
        if not elements:
            return []
        check_cancelled(token)

        tree = KdTree(elements, strategy.candidate_point)

        def edge_of(i: int) -> int:
            pivot = elements[i]
            if not strategy.filter_pivot(pivot):
                return -1
            hit = tree.nearest(strategy.pivot_point(pivot), strategy.distance, exclude=pivot)
            if hit is None:
                return -1
            if strategy.filter_final(pivot, hit.element) and hit.distance < strategy.max_distance(pivot, hit.element):
                return hit.index
            return -1

        return self._cluster(elements, edge_of, token)

    def k_nearest_neighbours(
        self,
        elements: Sequence[T],
        k: int,
        strategy: ClusteringStrategy,
        token: Optional[CancellationToken] = None,
    ) -> List[List[T]]:
        """Cluster using the first of the k nearest candidates that passes the filters."""
        if not elements:
            return []
        check_cancelled(token)

        tree = KdTree(elements, strategy.candidate_point)

        def edge_of(i: int) -> int:
            pivot = elements[i]
            if not strategy.filter_pivot(pivot):
                return -1
            for hit in tree.k_nearest(strategy.pivot_point(pivot), k, strategy.distance, exclude=pivot):
                if strategy.filter_final(pivot, hit.element) and hit.distance < strategy.max_distance(pivot, hit.element):
                    return hit.index
            return -1

        return self._cluster(elements, edge_of, token)

    def nearest_segments(
        self,
        elements: Sequence[T],
        strategy: ClusteringStrategy,
        token: Optional[CancellationToken] = None,
    ) -> List[List[T]]:
        """Cluster using segment distances; candidates found by linear scan."""
        if not elements:
            return []
        check_cancelled(token)

        def edge_of(i: int) -> int:
            pivot = elements[i]
            if not strategy.filter_pivot(pivot):
                return -1
            index, dist = find_index_nearest(
                pivot, elements, strategy.pivot_point, strategy.candidate_point, strategy.distance
            )
            if index == -1 or math.isnan(dist):
                return -1
            paired = elements[index]
            if strategy.filter_final(pivot, paired) and dist < strategy.max_distance(pivot, paired):
                return index
            return -1

        return self._cluster(elements, edge_of, token)

    # ------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------

    def find_edges(self, count: int, edge_of: Callable[[int], int]) -> List[int]:
        """Phase 1: one directed edge (or -1) per element."""
        edges = [-1] * count
        workers = self.config.max_workers

        if workers <= 1 or count <= self.config.chunk_size:
            for i in range(count):
                edges[i] = edge_of(i)
            return edges

        def run_chunk(start: int, end: int) -> None:
            for i in range(start, end):
                edges[i] = edge_of(i)

        size = self.config.chunk_size
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(run_chunk, start, min(start + size, count))
                for start in range(0, count, size)
            ]
            for future in futures:
                future.result()
        return edges

    def _cluster(self, elements: Sequence[T], edge_of: Callable[[int], int], token) -> List[List[T]]:
        edges = self.find_edges(len(elements), edge_of)
        groups = group_indexes(edges, token, self.config.cancel_check_interval)
        logger.debug("Clustered %d elements into %d groups", len(elements), len(groups))
        return [[elements[i] for i in group] for group in groups]
