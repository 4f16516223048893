"""
Spatial Module
==============
KD-tree index and distance functions.
"""

from .kdtree import KdTree, KdTreeNode, Neighbour
from .distances import (
    euclidean,
    weighted_euclidean,
    manhattan,
    vertical,
    horizontal,
    angle,
    angle_difference,
    point_segment_distance,
    segment_distance,
    project_point_on_line,
    find_index_nearest,
)

__all__ = [
    'KdTree',
    'KdTreeNode',
    'Neighbour',
    'euclidean',
    'weighted_euclidean',
    'manhattan',
    'vertical',
    'horizontal',
    'angle',
    'angle_difference',
    'point_segment_distance',
    'segment_distance',
    'project_point_on_line',
    'find_index_nearest',
]
