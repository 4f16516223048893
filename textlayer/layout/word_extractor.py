"""
Nearest-Neighbour Word Extractor
================================
Groups glyphs into words: a glyph links to the glyph whose start of baseline
is nearest to its own end of baseline, provided the gap is small relative to
the glyph widths and both glyphs look alike (font, size, fill/stroke).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..clustering import ClusteringConfig, ClusteringStrategy, NearestNeighbourClustering
from ..errors import CancellationToken, check_cancelled
from ..page_model import Glyph, Word
from ..spatial import euclidean
from ..text_pool import TextPool
from ..types import TextOrientation, reading_frame


logger = logging.getLogger(__name__)


ORIENTATION_ORDER = (
    TextOrientation.HORIZONTAL,
    TextOrientation.ROTATE90,
    TextOrientation.ROTATE180,
    TextOrientation.ROTATE270,
    TextOrientation.OTHER,
)


@dataclass
class WordExtractorConfig:
    """Configuration for word extraction"""
    # Link when gap < max_distance_ratio * max(pivot width, candidate width)
    max_distance_ratio: float = 0.2
    # Width floor for zero-width glyphs, as a fraction of the point size
    min_width_ratio: float = 0.5
    # Sizes must satisfy |a - b| <= size_tolerance * max(a, b)
    size_tolerance: float = 0.5
    match_font: bool = True
    match_stroke: bool = True
    # Candidates examined per glyph (1 = only the nearest)
    k: int = 1


class WordStrategy(ClusteringStrategy):
    """Pairing rules between consecutive glyphs of a word."""

    def __init__(self, config: WordExtractorConfig):
        self.config = config

    def distance(self, a, b) -> float:
        return euclidean(a, b)

    def pivot_point(self, glyph: Glyph):
        return glyph.end_baseline

    def candidate_point(self, glyph: Glyph):
        return glyph.start_baseline

    def _width(self, glyph: Glyph) -> float:
        width = abs(glyph.width)
        if width > 0:
            return width
        return abs(glyph.point_size) * self.config.min_width_ratio

    def max_distance(self, pivot: Glyph, candidate: Glyph) -> float:
        return self.config.max_distance_ratio * max(self._width(pivot), self._width(candidate))

    def filter_pivot(self, glyph: Glyph) -> bool:
        return not glyph.is_whitespace

    def filter_final(self, pivot: Glyph, candidate: Glyph) -> bool:
        if candidate.is_whitespace:
            return False
        if candidate.orientation is not pivot.orientation:
            return False
        if self.config.match_font and pivot.font_name != candidate.font_name:
            return False
        if self.config.match_stroke and pivot.is_stroke != candidate.is_stroke:
            return False
        largest = max(abs(pivot.point_size), abs(candidate.point_size))
        return abs(pivot.point_size - candidate.point_size) <= self.config.size_tolerance * largest


def order_letters(glyphs: Sequence[Glyph]) -> List[Glyph]:
    """Letters along the reading direction, paint order for "Other" words."""
    orientation = glyphs[0].orientation
    if orientation.is_axis_aligned and all(g.orientation is orientation for g in glyphs):
        direction, _ = reading_frame(orientation)
        return sorted(glyphs, key=lambda g: (g.start_baseline.dot(direction), g.text_sequence))
    return sorted(glyphs, key=lambda g: g.text_sequence)


class NearestNeighbourWordExtractor:
    """
    Usage:
        extractor = NearestNeighbourWordExtractor()
        words = extractor.get_words(glyphs)
    """

    def __init__(
        self,
        config: Optional[WordExtractorConfig] = None,
        clustering: Optional[NearestNeighbourClustering] = None,
        text_pool: Optional[TextPool] = None,
    ):
        self.config = config or WordExtractorConfig()
        self.clustering = clustering or NearestNeighbourClustering(ClusteringConfig())
        self.text_pool = text_pool if text_pool is not None else TextPool()
        self.strategy = WordStrategy(self.config)

    def get_words(
        self,
        glyphs: Sequence[Glyph],
        token: Optional[CancellationToken] = None,
    ) -> List[Word]:
        check_cancelled(token)
        if not glyphs:
            return []

        groups: Dict[TextOrientation, List[Glyph]] = {}
        for glyph in glyphs:
            groups.setdefault(glyph.orientation, []).append(glyph)

        words: List[Word] = []
        for orientation in ORIENTATION_ORDER:
            group = groups.get(orientation)
            if not group:
                continue

            if self.config.k > 1:
                clusters = self.clustering.k_nearest_neighbours(group, self.config.k, self.strategy, token)
            else:
                clusters = self.clustering.nearest_neighbours(group, self.strategy, token)

            for cluster in clusters:
                if all(g.is_whitespace for g in cluster):
                    continue
                words.append(Word(order_letters(cluster), self.text_pool))

        logger.debug("Extracted %d words from %d glyphs", len(words), len(glyphs))
        return words
