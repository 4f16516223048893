"""
Geometry Module
===============
Orientation classification, oriented bounding boxes and reading order.
"""

from .oriented import (
    glyph_orientation,
    orientation_from_rotation,
    text_orientation_of,
    bounding_box_in_frame,
    canonical_bounding_box,
    best_relabelling,
    regression_rotation,
    convex_hull,
    minimum_area_rotation,
    word_bounding_box,
    container_bounding_box,
)
from .reading_order import (
    average_rotation,
    order_words_by_reading_order,
    order_lines_by_reading_order,
)

__all__ = [
    'glyph_orientation',
    'orientation_from_rotation',
    'text_orientation_of',
    'bounding_box_in_frame',
    'canonical_bounding_box',
    'best_relabelling',
    'regression_rotation',
    'convex_hull',
    'minimum_area_rotation',
    'word_bounding_box',
    'container_bounding_box',
    'average_rotation',
    'order_words_by_reading_order',
    'order_lines_by_reading_order',
]
