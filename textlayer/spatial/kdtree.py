"""
KD-Tree Spatial Index
=====================
Static 2D KD-tree over arbitrary elements. Built once per query batch from
a point selector, never updated.

Build:
- Sort by x at even depths, by y at odd depths; the median becomes the node.
- A single element is a leaf. Two elements give a node holding the larger
  one with the smaller as its only (left) child.

Queries exclude the pivot element by identity, so a tree can be queried with
its own members. Ties are broken by the candidate point (x then y) and then
by its position in the input sequence, which keeps results independent of the
order the elements were supplied in.
"""

import bisect
import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, NamedTuple, Optional, Sequence, Tuple, TypeVar

from ..errors import EmptyIndexError
from ..types import Point
from .distances import euclidean


T = TypeVar('T')

DistanceFunc = Callable[[Point, Point], float]


class Neighbour(NamedTuple):
    """Query result: the element, its index in the input sequence and its distance"""
    element: Any
    index: int
    distance: float


@dataclass
class KdTreeEntry:
    point: Point
    index: int
    element: Any


@dataclass
class KdTreeNode:
    """
    Tree node. ``split`` is the node point's coordinate on the cut axis
    (x when ``is_axis_cut_x``, else y). Leaves have no children.
    """
    entry: KdTreeEntry
    split: float
    is_axis_cut_x: bool
    depth: int
    left: Optional['KdTreeNode'] = None
    right: Optional['KdTreeNode'] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


class KdTree(Generic[T]):
    """
    Usage:
        tree = KdTree(glyphs, lambda g: g.start_baseline)
        hit = tree.nearest(glyph.end_baseline, exclude=glyph)
        hits = tree.k_nearest(word.centroid, 2, exclude=word)
    """

    def __init__(self, elements: Sequence[T], point_func: Callable[[T], Point]):
        if not elements:
            raise EmptyIndexError("Cannot build a KD-tree from an empty element list")

        entries = []
        for i, element in enumerate(elements):
            p = point_func(element)
            entries.append(KdTreeEntry(Point(float(p[0]), float(p[1])), i, element))

        self.count = len(entries)
        self.root = self._build(entries, 0)

    def __len__(self) -> int:
        return self.count

    @classmethod
    def _build(cls, entries: List[KdTreeEntry], depth: int) -> KdTreeNode:
        is_x = depth % 2 == 0
        axis = 0 if is_x else 1

        if len(entries) == 1:
            entry = entries[0]
            return KdTreeNode(entry, entry.point[axis], is_x, depth)

        entries = sorted(entries, key=lambda e: (e.point[axis], e.point[1 - axis], e.index))

        if len(entries) == 2:
            entry = entries[1]
            left = cls._build(entries[:1], depth + 1)
            return KdTreeNode(entry, entry.point[axis], is_x, depth, left=left)

        median = len(entries) // 2
        entry = entries[median]
        left = cls._build(entries[:median], depth + 1)
        right = cls._build(entries[median + 1:], depth + 1)
        return KdTreeNode(entry, entry.point[axis], is_x, depth, left=left, right=right)

    # ------------------------------------------------------------
    # Nearest neighbour
    # ------------------------------------------------------------

    def nearest(
        self,
        point: Tuple[float, float],
        distance: DistanceFunc = euclidean,
        exclude: Any = None,
    ) -> Optional[Neighbour]:
        """
        Nearest element to ``point``, skipping ``exclude``.

        Returns:
            Neighbour, or None when the tree holds nothing but ``exclude``
        """
        query = Point(float(point[0]), float(point[1]))
        best = self._nearest(self.root, query, distance, exclude, None)
        if best is None:
            return None
        return Neighbour(best[-1].element, best[-1].index, best[0])

    def _nearest(self, node, query, distance, exclude, best):
        entry = node.entry
        if entry.element is not exclude:
            d = distance(query, entry.point)
            key = (d, entry.point.x, entry.point.y, entry.index, entry)
            if best is None or key[:4] < best[:4]:
                best = key

        if node.is_leaf:
            return best

        diff = (query.x if node.is_axis_cut_x else query.y) - node.split
        if diff < 0:
            near, far = node.left, node.right
        else:
            near, far = node.right, node.left

        if near is not None:
            best = self._nearest(near, query, distance, exclude, best)
        if far is not None and (best is None or abs(diff) <= best[0]):
            best = self._nearest(far, query, distance, exclude, best)
        return best

    # ------------------------------------------------------------
    # k nearest neighbours
    # ------------------------------------------------------------

    def k_nearest(
        self,
        point: Tuple[float, float],
        k: int,
        distance: DistanceFunc = euclidean,
        exclude: Any = None,
    ) -> List[Neighbour]:
        """
        The ``k`` nearest elements to ``point``, skipping ``exclude``.

        Elements tied with the k-th distance are all returned, so the result
        can be longer than ``k``. Sorted by non-decreasing distance.
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")

        query = Point(float(point[0]), float(point[1]))
        found: List[tuple] = []
        self._k_nearest(self.root, query, k, distance, exclude, found)
        return [Neighbour(f[-1].element, f[-1].index, f[0]) for f in found]

    @staticmethod
    def _radius(found: List[tuple], k: int) -> float:
        if len(found) < k:
            return math.inf
        return found[k - 1][0]

    def _k_nearest(self, node, query, k, distance, exclude, found):
        entry = node.entry
        if entry.element is not exclude:
            d = distance(query, entry.point)
            if d <= self._radius(found, k):
                keys = [f[:4] for f in found]
                key = (d, entry.point.x, entry.point.y, entry.index)
                found.insert(bisect.bisect(keys, key), key + (entry,))
                if len(found) > k:
                    limit = found[k - 1][0]
                    while found[-1][0] > limit:
                        found.pop()

        if node.is_leaf:
            return

        diff = (query.x if node.is_axis_cut_x else query.y) - node.split
        if diff < 0:
            near, far = node.left, node.right
        else:
            near, far = node.right, node.left

        if near is not None:
            self._k_nearest(near, query, k, distance, exclude, found)
        if far is not None and abs(diff) <= self._radius(found, k):
            self._k_nearest(far, query, k, distance, exclude, found)

    # ------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------

    def depth(self) -> int:
        """Height of the tree (a single leaf has depth 1)."""
        stack = [(self.root, 1)]
        deepest = 0
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            for child in (node.left, node.right):
                if child is not None:
                    stack.append((child, level + 1))
        return deepest
