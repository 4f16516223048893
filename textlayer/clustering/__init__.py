"""
Clustering Module
=================
Nearest-neighbour clustering engine shared by the word extractor and the
layout analyzer.
"""

from .nearest_neighbours import (
    ClusteringConfig,
    ClusteringStrategy,
    NearestNeighbourClustering,
    UnionFind,
    group_indexes,
    group_indexes_multi,
)

__all__ = [
    'ClusteringConfig',
    'ClusteringStrategy',
    'NearestNeighbourClustering',
    'UnionFind',
    'group_indexes',
    'group_indexes_multi',
]
