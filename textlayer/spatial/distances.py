"""
Distance Functions
==================
Point and segment distances used by the spatial index and the clustering
engine. All point arguments are ``Point`` (or any ``(x, y)`` tuple).

The KD-tree prunes exactly for any distance that is never smaller than the
absolute coordinate difference on either axis. ``euclidean``, ``manhattan``
and ``weighted_euclidean`` with both weights >= 1 satisfy this.
"""

import math
from typing import Callable, Sequence, Tuple

from ..types import Point, angle as _angle, bound_angle_180, bound_angle_0_360


Segment = Tuple[Point, Point]


def euclidean(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def weighted_euclidean(a: Point, b: Point, w_x: float = 1.0, w_y: float = 1.0) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return math.sqrt(w_x * dx * dx + w_y * dy * dy)


def manhattan(a: Point, b: Point) -> float:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def vertical(a: Point, b: Point) -> float:
    return abs(b[1] - a[1])


def horizontal(a: Point, b: Point) -> float:
    return abs(b[0] - a[0])


def angle(a: Point, b: Point) -> float:
    """Angle in degrees of a -> b, in (-180, 180]."""
    return _angle(Point(a[0], a[1]), Point(b[0], b[1]))


def angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in degrees, in [0, 180]."""
    return abs(bound_angle_180(a - b))


def point_segment_distance(p: Point, segment: Segment) -> float:
    start, end = segment
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    den = dx * dx + dy * dy
    if den <= 0:
        return euclidean(p, start)
    t = ((p[0] - start[0]) * dx + (p[1] - start[1]) * dy) / den
    t = max(0.0, min(1.0, t))
    return math.hypot(p[0] - (start[0] + t * dx), p[1] - (start[1] + t * dy))


def _segments_intersect(a: Segment, b: Segment) -> bool:
    def orient(p, q, r) -> float:
        return (q[0] - p[0]) * (r[1] - p[1]) - (q[1] - p[1]) * (r[0] - p[0])

    d1 = orient(b[0], b[1], a[0])
    d2 = orient(b[0], b[1], a[1])
    d3 = orient(a[0], a[1], b[0])
    d4 = orient(a[0], a[1], b[1])
    return ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4))


def segment_distance(a: Segment, b: Segment) -> float:
    """Minimum distance between two segments (0 when they cross)."""
    if _segments_intersect(a, b):
        return 0.0
    return min(
        point_segment_distance(a[0], b),
        point_segment_distance(a[1], b),
        point_segment_distance(b[0], a),
        point_segment_distance(b[1], a),
    )


def project_point_on_line(p: Point, line_start: Point, line_end: Point) -> float:
    """
    Parameter of the orthogonal projection of ``p`` on the line through
    ``line_start`` and ``line_end`` (0 at start, 1 at end). 0 for a degenerate line.
    """
    dx = line_end[0] - line_start[0]
    dy = line_end[1] - line_start[1]
    den = dx * dx + dy * dy
    if den <= 0:
        return 0.0
    return ((p[0] - line_start[0]) * dx + (p[1] - line_start[1]) * dy) / den


def find_index_nearest(
    element,
    candidates: Sequence,
    pivot_point: Callable,
    candidate_point: Callable,
    distance: Callable,
) -> Tuple[int, float]:
    """
    Linear scan for the candidate nearest to ``element``, skipping ``element``
    itself (by identity).

    Works for points and segments alike: the selectors return whatever the
    distance function takes.

    Returns:
        (index, distance), or (-1, nan) when no other candidate exists

    Raises:
        ValueError: candidates is empty
    """
    if not candidates:
        raise ValueError("find_index_nearest: no candidates")

    pivot = pivot_point(element)
    best_index = -1
    best_distance = math.inf
    for i, candidate in enumerate(candidates):
        if candidate is element:
            continue
        d = distance(pivot, candidate_point(candidate))
        if d < best_distance:
            best_distance = d
            best_index = i

    if best_index == -1:
        return -1, math.nan
    return best_index, best_distance


__all__ = [
    'Segment',
    'euclidean',
    'weighted_euclidean',
    'manhattan',
    'vertical',
    'horizontal',
    'angle',
    'angle_difference',
    'bound_angle_180',
    'bound_angle_0_360',
    'point_segment_distance',
    'segment_distance',
    'project_point_on_line',
    'find_index_nearest',
]
