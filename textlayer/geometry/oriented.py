"""
Oriented Geometry
=================
Orientation classification and bounding boxes of words, lines and blocks.

Canonical orientations (Horizontal, Rotate90, Rotate180, Rotate270) use a
closed-form extremal scan in the orientation's reading frame, O(n) in the
number of children. "Other" containers fit a frame first:
- words: least-squares regression through the glyph baseline points
- lines / blocks: minimum-area rectangle over all child corners
and then pick, among the four 90 degree relabellings of the fitted rectangle,
the one whose baseline is closest to a measured reference angle.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from ..errors import DegenerateGeometryError
from ..types import (
    OrientedRect, Point, TextOrientation,
    almost_equals, angle, bound_angle_180, frame_from_rotation, points_of, reading_frame,
)


BASELINE_EPSILON = 1e-4


# ============================================================
# Orientation
# ============================================================

def orientation_from_rotation(rotation: float) -> TextOrientation:
    """
    Map a rotation in degrees to a canonical orientation, Other when it is
    not a multiple of 90.

    Raises:
        DegenerateGeometryError: rotation is not finite
    """
    if not math.isfinite(rotation):
        raise DegenerateGeometryError(f"Undefined glyph rotation: {rotation}")

    rounded = round(rotation)
    if not almost_equals(rotation, rounded, BASELINE_EPSILON) or rounded % 90 != 0:
        return TextOrientation.OTHER

    bounded = bound_angle_180(rounded)
    if bounded == 0:
        return TextOrientation.HORIZONTAL
    if bounded == -90:
        return TextOrientation.ROTATE90
    if bounded == 180:
        return TextOrientation.ROTATE180
    return TextOrientation.ROTATE270


def glyph_orientation(bbox: OrientedRect, rotation_hint: Optional[float] = None) -> TextOrientation:
    """
    Classify a glyph from its baseline (bottom-left -> bottom-right).

    A zero-length baseline falls back to ``rotation_hint`` (usually taken
    from the text matrix), then to the direction of the glyph's left edge.
    """
    start = bbox.bottom_left
    end = bbox.bottom_right

    if almost_equals(start.y, end.y, BASELINE_EPSILON):
        if almost_equals(start.x, end.x, BASELINE_EPSILON):
            return orientation_from_rotation(_fallback_rotation(bbox, rotation_hint))
        if start.x > end.x:
            return TextOrientation.ROTATE180
        return TextOrientation.HORIZONTAL

    if almost_equals(start.x, end.x, BASELINE_EPSILON):
        if start.y > end.y:
            return TextOrientation.ROTATE90
        return TextOrientation.ROTATE270

    return TextOrientation.OTHER


def _fallback_rotation(bbox: OrientedRect, rotation_hint: Optional[float]) -> float:
    if rotation_hint is not None:
        return rotation_hint
    edge = bbox.top_left.subtract(bbox.bottom_left)
    if edge.length <= BASELINE_EPSILON:
        return math.nan
    # up = direction rotated by -90, so direction = up rotated by +90
    return bound_angle_180(angle(bbox.bottom_left, bbox.top_left) + 90)


def text_orientation_of(elements: Iterable) -> TextOrientation:
    """Shared orientation of the elements, Other on any mismatch."""
    orientation = None
    for element in elements:
        if orientation is None:
            orientation = element.orientation
        elif element.orientation is not orientation:
            return TextOrientation.OTHER
    if orientation is None:
        raise ValueError("text_orientation_of: no elements")
    return orientation


# ============================================================
# Frames and Boxes
# ============================================================

def bounding_box_in_frame(points: Iterable[Point], direction: Point, up: Point) -> OrientedRect:
    """
    Smallest rectangle aligned with the (direction, up) frame containing all
    points. Both vectors must be unit length and orthogonal.
    """
    min_u = min_v = math.inf
    max_u = max_v = -math.inf
    for p in points:
        u = p.x * direction.x + p.y * direction.y
        v = p.x * up.x + p.y * up.y
        min_u = min(min_u, u)
        max_u = max(max_u, u)
        min_v = min(min_v, v)
        max_v = max(max_v, v)

    if min_u == math.inf:
        raise ValueError("bounding_box_in_frame: no points")

    def at(u: float, v: float) -> Point:
        return Point(direction.x * u + up.x * v, direction.y * u + up.y * v)

    return OrientedRect(
        top_left=at(min_u, max_v),
        top_right=at(max_u, max_v),
        bottom_left=at(min_u, min_v),
        bottom_right=at(max_u, min_v),
    )


def canonical_bounding_box(rects: Iterable[OrientedRect], orientation: TextOrientation) -> OrientedRect:
    direction, up = reading_frame(orientation)
    return bounding_box_in_frame(points_of(rects), direction, up)


def best_relabelling(points: Sequence[Point], base_rotation: float, reference_angle: float) -> OrientedRect:
    """
    Of the four rectangles aligned with ``base_rotation + k * 90`` pick the one
    whose baseline rotation is closest to ``reference_angle``.
    """
    best = None
    best_delta = math.inf
    for k in range(4):
        direction, up = frame_from_rotation(base_rotation + 90 * k)
        rect = bounding_box_in_frame(points, direction, up)
        delta = abs(bound_angle_180(rect.rotation - reference_angle))
        if delta < best_delta:
            best_delta = delta
            best = rect
    return best


def regression_rotation(points: Sequence[Point]) -> float:
    """
    Rotation in degrees of the least-squares line through the points, in
    (-90, 90]. A vertical (or degenerate) spread gives 90.
    """
    n = len(points)
    if n == 0:
        raise ValueError("regression_rotation: no points")
    mean_x = sum(p.x for p in points) / n
    mean_y = sum(p.y for p in points) / n
    s_xx = sum((p.x - mean_x) ** 2 for p in points)
    s_xy = sum((p.x - mean_x) * (p.y - mean_y) for p in points)
    if s_xx <= 1e-3:
        return 90.0
    return math.degrees(math.atan(s_xy / s_xx))


def convex_hull(points: Iterable[Point]) -> List[Point]:
    """Monotone chain convex hull, counter-clockwise, no repeated endpoint."""
    pts = sorted(set((p.x, p.y) for p in points))
    if len(pts) <= 2:
        return [Point(x, y) for x, y in pts]

    def cross(o, a, b) -> float:
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower: List[Tuple[float, float]] = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: List[Tuple[float, float]] = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return [Point(x, y) for x, y in lower[:-1] + upper[:-1]]


def minimum_area_rotation(points: Sequence[Point]) -> float:
    """
    Rotation in degrees of one edge of the minimum-area enclosing rectangle
    (rotating calipers over the hull edges).
    """
    hull = convex_hull(points)
    if len(hull) < 2:
        return 0.0
    if len(hull) == 2:
        return angle(hull[0], hull[1])

    best_rotation = 0.0
    best_area = math.inf
    for i in range(len(hull)):
        a = hull[i]
        b = hull[(i + 1) % len(hull)]
        if a == b:
            continue
        rotation = angle(a, b)
        direction, up = frame_from_rotation(rotation)
        us = [p.x * direction.x + p.y * direction.y for p in hull]
        vs = [p.x * up.x + p.y * up.y for p in hull]
        area = (max(us) - min(us)) * (max(vs) - min(vs))
        if area < best_area:
            best_area = area
            best_rotation = rotation
    return best_rotation


# ============================================================
# Container Boxes
# ============================================================

def word_bounding_box(glyphs: Sequence, orientation: TextOrientation) -> OrientedRect:
    """Box of a word from its ordered glyphs (anything with ``bbox``)."""
    if orientation.is_axis_aligned:
        return canonical_bounding_box((g.bbox for g in glyphs), orientation)
    if len(glyphs) == 1:
        return glyphs[0].bbox

    baseline_points: List[Point] = []
    for g in glyphs:
        baseline_points.append(g.bbox.bottom_left)
        baseline_points.append(g.bbox.bottom_right)

    rotation = regression_rotation(baseline_points)
    reference = angle(glyphs[0].bbox.bottom_left, glyphs[-1].bbox.bottom_right)
    return best_relabelling(points_of(g.bbox for g in glyphs), rotation, reference)


def container_bounding_box(children: Sequence, orientation: TextOrientation) -> OrientedRect:
    """Box of a line or block from its ordered children (anything with ``bbox``)."""
    if orientation.is_axis_aligned:
        return canonical_bounding_box((c.bbox for c in children), orientation)
    if len(children) == 1:
        return children[0].bbox

    points = points_of(c.bbox for c in children)
    last = children[-1].bbox
    reference = bound_angle_180(angle(last.bottom_left, last.bottom_right))
    return best_relabelling(points, minimum_area_rotation(points), reference)
