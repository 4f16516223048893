"""
Geometry Primitives for the Text Layer
======================================
Every module works with these types. Coordinates use a page frame whose origin
is the top-left corner, Y axis pointing down (the frame pdfplumber reports
``top``/``bottom`` in).

Type Hierarchy:
- Point: 2D point / vector
- OrientedRect: Four-corner (possibly rotated) rectangle
- TextOrientation: Reading direction classification of a glyph or container
- Angle helpers: angle, bound_angle_180, bound_angle_0_360, mode
"""

import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, NamedTuple, Sequence, Tuple


EPSILON = 1e-5


# ============================================================
# Primitive Types
# ============================================================

class Point(NamedTuple):
    """A point (or vector) in page space."""
    x: float
    y: float

    def add(self, other: 'Point') -> 'Point':
        return Point(self.x + other.x, self.y + other.y)

    def subtract(self, other: 'Point') -> 'Point':
        return Point(self.x - other.x, self.y - other.y)

    def dot(self, other: 'Point') -> float:
        return self.x * other.x + self.y * other.y

    def scale(self, factor: float) -> 'Point':
        return Point(self.x * factor, self.y * factor)

    @property
    def length(self) -> float:
        return math.hypot(self.x, self.y)


class TextOrientation(Enum):
    """Reading direction of a glyph, word, line or block."""
    HORIZONTAL = "horizontal"
    ROTATE90 = "rotate90"
    ROTATE180 = "rotate180"
    ROTATE270 = "rotate270"
    OTHER = "other"

    @property
    def is_axis_aligned(self) -> bool:
        return self is not TextOrientation.OTHER


@dataclass(frozen=True)
class OrientedRect:
    """
    Rectangle defined by its four corners.

    "Bottom" and "top" follow the text: the bottom edge is the baseline side,
    read from bottom-left to bottom-right. For upright text in the
    top-left-origin frame the bottom edge therefore has the larger Y.

    Attributes:
        top_left, top_right, bottom_left, bottom_right: Corner points
    """
    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point

    @classmethod
    def from_bounds(cls, left: float, top: float, right: float, bottom: float) -> 'OrientedRect':
        """Axis aligned rectangle for upright text (pdfplumber x0/top/x1/bottom)."""
        return cls(
            top_left=Point(left, top),
            top_right=Point(right, top),
            bottom_left=Point(left, bottom),
            bottom_right=Point(right, bottom),
        )

    @classmethod
    def from_points(cls, points: Sequence[Tuple[float, float]]) -> 'OrientedRect':
        """Build from (top_left, top_right, bottom_left, bottom_right) tuples."""
        tl, tr, bl, br = (Point(float(p[0]), float(p[1])) for p in points)
        return cls(tl, tr, bl, br)

    @property
    def width(self) -> float:
        """Length of the baseline edge"""
        return self.bottom_right.subtract(self.bottom_left).length

    @property
    def height(self) -> float:
        """Length of the left edge"""
        return self.top_left.subtract(self.bottom_left).length

    @property
    def rotation(self) -> float:
        """Baseline angle in degrees, in (-180, 180]"""
        return angle(self.bottom_left, self.bottom_right)

    @property
    def centroid(self) -> Point:
        xs = (self.top_left.x + self.top_right.x + self.bottom_left.x + self.bottom_right.x) / 4
        ys = (self.top_left.y + self.top_right.y + self.bottom_left.y + self.bottom_right.y) / 4
        return Point(xs, ys)

    @property
    def corners(self) -> Tuple[Point, Point, Point, Point]:
        return (self.top_left, self.top_right, self.bottom_left, self.bottom_right)

    @property
    def left(self) -> float:
        return min(p.x for p in self.corners)

    @property
    def right(self) -> float:
        return max(p.x for p in self.corners)

    @property
    def top(self) -> float:
        return min(p.y for p in self.corners)

    @property
    def bottom(self) -> float:
        return max(p.y for p in self.corners)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Axis aligned envelope as (x0, top, x1, bottom)"""
        return (self.left, self.top, self.right, self.bottom)

    def normalise(self) -> 'OrientedRect':
        """Axis aligned envelope as an upright rectangle."""
        return OrientedRect.from_bounds(self.left, self.top, self.right, self.bottom)

    def contains(self, point: Tuple[float, float], include_border: bool = False) -> bool:
        """
        Point-in-rectangle test using the rectangle's own edges.

        Degenerate (zero area) rectangles fall back to the axis aligned envelope.
        """
        p = Point(point[0], point[1])
        edge_u = self.bottom_right.subtract(self.bottom_left)
        edge_v = self.top_left.subtract(self.bottom_left)
        len_u = edge_u.dot(edge_u)
        len_v = edge_v.dot(edge_v)

        if len_u <= 0 or len_v <= 0:
            x0, top, x1, bottom = self.bounds
            if include_border:
                return x0 <= p.x <= x1 and top <= p.y <= bottom
            return x0 < p.x < x1 and top < p.y < bottom

        rel = p.subtract(self.bottom_left)
        u = rel.dot(edge_u) / len_u
        v = rel.dot(edge_v) / len_v
        if include_border:
            return -EPSILON <= u <= 1 + EPSILON and -EPSILON <= v <= 1 + EPSILON
        return 0 < u < 1 and 0 < v < 1

    def contains_rect(self, other: 'OrientedRect', tolerance: float = 1e-3) -> bool:
        """True if every corner of ``other`` lies inside this rectangle (within tolerance)."""
        edge_u = self.bottom_right.subtract(self.bottom_left)
        edge_v = self.top_left.subtract(self.bottom_left)
        len_u = edge_u.length
        len_v = edge_v.length
        if len_u <= 0 or len_v <= 0:
            x0, top, x1, bottom = self.bounds
            return all(
                x0 - tolerance <= p.x <= x1 + tolerance and top - tolerance <= p.y <= bottom + tolerance
                for p in other.corners
            )
        for p in other.corners:
            rel = p.subtract(self.bottom_left)
            u = rel.dot(edge_u) / len_u
            v = rel.dot(edge_v) / len_v
            if u < -tolerance or u > len_u + tolerance or v < -tolerance or v > len_v + tolerance:
                return False
        return True

    def inverse_y_axis(self, page_height: float) -> 'OrientedRect':
        """Flip between bottom-left-origin and top-left-origin page frames."""
        def flip(p: Point) -> Point:
            return Point(p.x, page_height - p.y)
        return OrientedRect(
            flip(self.top_left), flip(self.top_right),
            flip(self.bottom_left), flip(self.bottom_right),
        )


# ============================================================
# Angle Helpers
# ============================================================

def angle(start: Point, end: Point) -> float:
    """Angle in degrees of the vector start -> end, in (-180, 180]."""
    return math.degrees(math.atan2(end.y - start.y, end.x - start.x))


def bound_angle_180(value: float) -> float:
    """Bound an angle in degrees to (-180, 180]."""
    value = math.fmod(value, 360.0)
    if value > 180:
        value -= 360
    elif value <= -180:
        value += 360
    return value


def bound_angle_0_360(value: float) -> float:
    """Bound an angle in degrees to [0, 360)."""
    value = math.fmod(value, 360.0)
    if value < 0:
        value += 360
    if value >= 360:
        value -= 360
    return value


def almost_equals(a: float, b: float, epsilon: float = EPSILON) -> bool:
    return abs(a - b) <= epsilon


def mode(values: Iterable[float]) -> float:
    """
    Most common value.

    Returns NaN when the sequence is empty or when more than one value shares
    the top count, so callers can pick their own fallback.
    """
    counts = Counter(values)
    if not counts:
        return math.nan
    top = counts.most_common(2)
    if len(top) > 1 and top[0][1] == top[1][1]:
        return math.nan
    return top[0][0]


def reading_frame(orientation: TextOrientation) -> Tuple[Point, Point]:
    """
    Unit (direction, up) vectors of a canonical orientation.

    ``direction`` points along the reading direction, ``up`` from the baseline
    toward the top of the glyphs. ``up`` is always ``direction`` rotated by
    -90 degrees in the top-left-origin frame.
    """
    if orientation is TextOrientation.HORIZONTAL:
        return Point(1.0, 0.0), Point(0.0, -1.0)
    if orientation is TextOrientation.ROTATE180:
        return Point(-1.0, 0.0), Point(0.0, 1.0)
    if orientation is TextOrientation.ROTATE90:
        return Point(0.0, -1.0), Point(-1.0, 0.0)
    if orientation is TextOrientation.ROTATE270:
        return Point(0.0, 1.0), Point(1.0, 0.0)
    raise ValueError(f"No fixed reading frame for {orientation}")


def frame_from_rotation(rotation: float) -> Tuple[Point, Point]:
    """(direction, up) unit vectors for a baseline rotation in degrees."""
    rad = math.radians(rotation)
    direction = Point(math.cos(rad), math.sin(rad))
    return direction, Point(direction.y, -direction.x)


def points_of(rects: Iterable[OrientedRect]) -> List[Point]:
    """All corners of the given rectangles."""
    points: List[Point] = []
    for rect in rects:
        points.extend(rect.corners)
    return points
