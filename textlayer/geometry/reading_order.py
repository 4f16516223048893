"""
Reading Order
=============
Order words inside a line (left to right in the reading frame) and lines
inside a block (top to bottom in the reading frame).

Canonical orientations sort on a single coordinate of the bottom-left corner.
Mixed or "Other" orientations sort on the projection of the bottom-left
corner along the average rotation, with the perpendicular projection as
tie-break.
"""

import math
from typing import List, Sequence, TypeVar

from ..errors import DegenerateGeometryError
from ..types import TextOrientation, frame_from_rotation
from .oriented import text_orientation_of


T = TypeVar('T')


def average_rotation(elements: Sequence) -> float:
    """
    Circular mean of the elements' bbox rotations, in degrees.

    Raises:
        DegenerateGeometryError: a rotation is NaN or the rotations cancel out
    """
    sum_sin = 0.0
    sum_cos = 0.0
    for element in elements:
        rotation = element.bbox.rotation
        if math.isnan(rotation):
            raise DegenerateGeometryError("NaN bounding box rotation found when ordering elements")
        rad = math.radians(rotation)
        sum_sin += math.sin(rad)
        sum_cos += math.cos(rad)

    if abs(sum_sin) < 1e-9 and abs(sum_cos) < 1e-9:
        raise DegenerateGeometryError("Unknown bounding box rotation found when ordering elements")
    return math.degrees(math.atan2(sum_sin, sum_cos))


def order_words_by_reading_order(words: Sequence[T]) -> List[T]:
    """Order words along the reading direction of their line."""
    if len(words) <= 1:
        return list(words)

    orientation = text_orientation_of(words)

    if orientation is TextOrientation.HORIZONTAL:
        return sorted(words, key=lambda w: w.bbox.bottom_left.x)
    if orientation is TextOrientation.ROTATE180:
        return sorted(words, key=lambda w: -w.bbox.bottom_left.x)
    if orientation is TextOrientation.ROTATE90:
        return sorted(words, key=lambda w: -w.bbox.bottom_left.y)
    if orientation is TextOrientation.ROTATE270:
        return sorted(words, key=lambda w: w.bbox.bottom_left.y)

    direction, up = frame_from_rotation(average_rotation(words))
    return sorted(
        words,
        key=lambda w: (w.bbox.bottom_left.dot(direction), -w.bbox.bottom_left.dot(up)),
    )


def order_lines_by_reading_order(lines: Sequence[T]) -> List[T]:
    """Order lines from the top of their block to the bottom."""
    if len(lines) <= 1:
        return list(lines)

    orientation = text_orientation_of(lines)

    if orientation is TextOrientation.HORIZONTAL:
        return sorted(lines, key=lambda line: line.bbox.bottom_left.y)
    if orientation is TextOrientation.ROTATE180:
        return sorted(lines, key=lambda line: -line.bbox.bottom_left.y)
    if orientation is TextOrientation.ROTATE90:
        return sorted(lines, key=lambda line: line.bbox.bottom_left.x)
    if orientation is TextOrientation.ROTATE270:
        return sorted(lines, key=lambda line: -line.bbox.bottom_left.x)

    direction, up = frame_from_rotation(average_rotation(lines))
    return sorted(
        lines,
        key=lambda line: (-line.bbox.bottom_left.dot(up), line.bbox.bottom_left.dot(direction)),
    )
