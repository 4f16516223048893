"""
Docstrum Layout Analysis
========================
Groups words into lines and lines into blocks with the nearest-neighbour
clustering engine, using spacings estimated from the page itself.

Pipeline per orientation group:
1. Pick the group's reading frame (direction, up). Canonical orientations
   use their fixed frame; "Other" words are linked on rotation and each
   group's rotation is fitted from the glyph baselines.
2. Estimate the within-line gap and between-line gap from the k nearest
   neighbours of every word (mode of rounded samples, median fallback).
3. Words -> lines: end of baseline to start of baseline, vertical offset
   penalised, angle bounded.
4. Lines -> blocks: baseline to top edge segment distance, overlap along
   the reading direction required.

Blocks are returned group by group (Horizontal, Rotate90, Rotate180,
Rotate270, Other), top to bottom then left to right within a group.
"""

import logging
import math
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from ..clustering import ClusteringConfig, ClusteringStrategy, NearestNeighbourClustering
from ..errors import CancellationToken, check_cancelled
from ..geometry import average_rotation, order_lines_by_reading_order, order_words_by_reading_order
from ..page_model import TextBlock, TextLine, Word
from ..spatial import KdTree, angle_difference, euclidean, segment_distance, weighted_euclidean
from ..types import (
    Point, TextOrientation, bound_angle_0_360, bound_angle_180,
    frame_from_rotation, mode, reading_frame,
)
from .word_extractor import ORIENTATION_ORDER


logger = logging.getLogger(__name__)


@dataclass
class DocstrumConfig:
    """Configuration for line and block building"""
    # Spacing estimation
    estimation_k: int = 2
    within_line_angle: float = 30.0  # +/- degrees around the reading direction
    between_line_angle_bounds: Tuple[float, float] = (45.0, 135.0)
    distance_precision: int = 1  # decimals kept before taking the mode
    default_within_line_ratio: float = 0.25  # of median word height, when no samples
    default_between_line_ratio: float = 0.3

    # Words -> lines
    within_line_k: int = 2
    within_line_multiplier: float = 3.0
    min_within_line_ratio: float = 0.2  # floor, in word heights
    vertical_weight: float = 5.0

    # Lines -> blocks
    between_line_multiplier: float = 1.3
    min_between_line_ratio: float = 0.25  # floor, in line heights
    min_overlap: float = 0.1
    angular_tolerance: float = 15.0

    # "Other" words split into separate groups where rotations are further apart
    other_angle_gap: float = 5.0


@dataclass
class SpacingEstimate:
    """Spacings measured for one orientation group"""
    orientation: TextOrientation
    rotation: float
    within_line: float
    between_line: float
    within_samples: int = 0
    between_samples: int = 0
    word_count: int = 0

    def summary(self) -> str:
        return (
            f"{self.orientation.value} ({self.rotation:.1f} deg, {self.word_count} words): "
            f"within-line {self.within_line:.2f} [{self.within_samples}], "
            f"between-line {self.between_line:.2f} [{self.between_samples}]"
        )


class LocalFrame(NamedTuple):
    """Reading frame of a group: u along ``direction``, v along ``up``"""
    direction: Point
    up: Point
    rotation: float

    def to_local(self, p: Point) -> Point:
        return Point(p.dot(self.direction), p.dot(self.up))

    def u_interval(self, rect) -> Tuple[float, float]:
        us = [p.dot(self.direction) for p in rect.corners]
        return min(us), max(us)

    def v_interval(self, rect) -> Tuple[float, float]:
        vs = [p.dot(self.up) for p in rect.corners]
        return min(vs), max(vs)


@dataclass
class WordGroup:
    orientation: TextOrientation
    frame: LocalFrame
    words: List[Word] = field(default_factory=list)


# ============================================================
# Grouping and Estimation
# ============================================================

def estimate_group_rotation(words: Sequence[Word]) -> float:
    """
    Rotation of a group of "Other" words.

    Least-squares slope of all glyph baseline points, each word centred on
    its own baseline midpoint; the direction (slope or slope + 180) is the
    one closer to the mean word rotation.
    """
    s_xx = 0.0
    s_xy = 0.0
    for word in words:
        mid = word.bbox.bottom_left.add(word.bbox.bottom_right).scale(0.5)
        for glyph in word.letters:
            for p in (glyph.start_baseline, glyph.end_baseline):
                dx = p.x - mid.x
                dy = p.y - mid.y
                s_xx += dx * dx
                s_xy += dx * dy

    rotation = 90.0 if s_xx <= 1e-3 else math.degrees(math.atan(s_xy / s_xx))
    mean_rotation = average_rotation(words)
    if angle_difference(rotation, mean_rotation) > 90:
        rotation = bound_angle_180(rotation + 180)
    return rotation


def split_by_rotation(words: Sequence[Word], max_gap: float) -> List[List[Word]]:
    """
    Single-linkage grouping of words on their rotation.

    Rotations are sorted around the circle and a new group starts wherever two
    consecutive rotations are more than ``max_gap`` degrees apart. Groups are
    returned by their smallest rotation in [0, 360).
    """
    ordered = sorted(words, key=lambda w: bound_angle_0_360(w.bbox.rotation))
    if len(ordered) < 2:
        return [list(ordered)] if ordered else []

    angles = [bound_angle_0_360(w.bbox.rotation) for w in ordered]
    gaps = [angles[i + 1] - angles[i] for i in range(len(angles) - 1)]
    gaps.append(angles[0] + 360.0 - angles[-1])

    widest = max(range(len(gaps)), key=lambda i: gaps[i])
    if gaps[widest] <= max_gap:
        return [ordered]

    # Cut the circle after the widest gap, then walk it once
    start = (widest + 1) % len(ordered)
    groups: List[List[Word]] = [[ordered[start]]]
    for step in range(1, len(ordered)):
        i = (start + step) % len(ordered)
        if gaps[(i - 1) % len(ordered)] > max_gap:
            groups.append([])
        groups[-1].append(ordered[i])

    groups.sort(key=lambda g: min(bound_angle_0_360(w.bbox.rotation) for w in g))
    return groups


def group_words(words: Sequence[Word], config: DocstrumConfig) -> List[WordGroup]:
    """Split words by orientation; "Other" words also by gaps in their rotation."""
    by_orientation: Dict[TextOrientation, List[Word]] = {}
    for word in words:
        by_orientation.setdefault(word.orientation, []).append(word)

    groups: List[WordGroup] = []
    for orientation in ORIENTATION_ORDER:
        members = by_orientation.get(orientation)
        if not members:
            continue

        if orientation.is_axis_aligned:
            direction, up = reading_frame(orientation)
            rotation = {
                TextOrientation.HORIZONTAL: 0.0,
                TextOrientation.ROTATE90: -90.0,
                TextOrientation.ROTATE180: 180.0,
                TextOrientation.ROTATE270: 90.0,
            }[orientation]
            groups.append(WordGroup(orientation, LocalFrame(direction, up, rotation), members))
            continue

        for cluster in split_by_rotation(members, config.other_angle_gap):
            rotation = estimate_group_rotation(cluster)
            direction, up = frame_from_rotation(rotation)
            groups.append(WordGroup(orientation, LocalFrame(direction, up, rotation), cluster))

    return groups


def _robust_mode(samples: List[float], fallback: float) -> float:
    if not samples:
        return fallback
    value = mode(samples)
    if math.isnan(value):
        return statistics.median(samples)
    return value


def estimate_spacing(group: WordGroup, config: DocstrumConfig) -> SpacingEstimate:
    """Within-line and between-line gaps of a group from k-NN word pairs."""
    frame = group.frame
    words = group.words
    median_height = statistics.median(w.bbox.height for w in words)

    within: List[float] = []
    between: List[float] = []

    if len(words) > 1:
        tree = KdTree(words, lambda w: frame.to_local(w.bbox.centroid))
        low, high = config.between_line_angle_bounds

        for word in words:
            centre = frame.to_local(word.bbox.centroid)
            for hit in tree.k_nearest(centre, config.estimation_k, euclidean, exclude=word):
                other = hit.element
                other_centre = frame.to_local(other.bbox.centroid)
                delta = other_centre.subtract(centre)
                pair_angle = math.degrees(math.atan2(delta.y, delta.x))

                if abs(pair_angle) <= config.within_line_angle:
                    gap = euclidean(
                        frame.to_local(word.bbox.bottom_right),
                        frame.to_local(other.bbox.bottom_left),
                    )
                    within.append(round(gap, config.distance_precision))
                elif low <= pair_angle <= high:
                    _, word_top = frame.v_interval(word.bbox)
                    other_bottom, _ = frame.v_interval(other.bbox)
                    gap = max(0.0, other_bottom - word_top)
                    between.append(round(gap, config.distance_precision))

    return SpacingEstimate(
        orientation=group.orientation,
        rotation=frame.rotation,
        within_line=_robust_mode(within, median_height * config.default_within_line_ratio),
        between_line=_robust_mode(between, median_height * config.default_between_line_ratio),
        within_samples=len(within),
        between_samples=len(between),
        word_count=len(words),
    )


# ============================================================
# Clustering Strategies
# ============================================================

class WithinLineStrategy(ClusteringStrategy):
    """Word pairing: end of one word's baseline to the start of the next."""

    def __init__(self, frame: LocalFrame, spacing: SpacingEstimate, config: DocstrumConfig):
        self.frame = frame
        self.spacing = spacing
        self.config = config

    def distance(self, a, b) -> float:
        return weighted_euclidean(a, b, 1.0, self.config.vertical_weight)

    def pivot_point(self, word: Word):
        return self.frame.to_local(word.bbox.bottom_right)

    def candidate_point(self, word: Word):
        return self.frame.to_local(word.bbox.bottom_left)

    def max_distance(self, pivot: Word, candidate: Word) -> float:
        floor = self.config.min_within_line_ratio * max(pivot.bbox.height, candidate.bbox.height)
        return self.config.within_line_multiplier * max(self.spacing.within_line, floor)

    def filter_final(self, pivot: Word, candidate: Word) -> bool:
        delta = self.candidate_point(candidate).subtract(self.pivot_point(pivot))
        pair_angle = math.degrees(math.atan2(delta.y, delta.x))
        return abs(pair_angle) <= self.config.within_line_angle


def overlap_fraction(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Overlap of two intervals relative to the shorter one."""
    overlap = min(a[1], b[1]) - max(a[0], b[0])
    if overlap < 0:
        return 0.0
    shortest = min(a[1] - a[0], b[1] - b[0])
    if shortest <= 0:
        return 1.0
    return overlap / shortest


class BetweenLineStrategy(ClusteringStrategy):
    """Line pairing: baseline of one line to the top edge of the next."""

    def __init__(self, frame: LocalFrame, spacing: SpacingEstimate, config: DocstrumConfig):
        self.frame = frame
        self.spacing = spacing
        self.config = config

    def distance(self, a, b) -> float:
        return segment_distance(a, b)

    def pivot_point(self, line: TextLine):
        return (line.bbox.bottom_left, line.bbox.bottom_right)

    def candidate_point(self, line: TextLine):
        return (line.bbox.top_left, line.bbox.top_right)

    def max_distance(self, pivot: TextLine, candidate: TextLine) -> float:
        floor = self.config.min_between_line_ratio * min(pivot.bbox.height, candidate.bbox.height)
        return self.config.between_line_multiplier * max(self.spacing.between_line, floor)

    def filter_final(self, pivot: TextLine, candidate: TextLine) -> bool:
        if angle_difference(pivot.bbox.rotation, candidate.bbox.rotation) > self.config.angular_tolerance:
            return False
        ratio = overlap_fraction(self.frame.u_interval(pivot.bbox), self.frame.u_interval(candidate.bbox))
        return ratio >= self.config.min_overlap


# ============================================================
# Analyzer
# ============================================================

class DocstrumLayoutAnalyzer:
    """
    Usage:
        analyzer = DocstrumLayoutAnalyzer()
        blocks = analyzer.get_blocks(words)
    """

    def __init__(
        self,
        config: Optional[DocstrumConfig] = None,
        clustering: Optional[NearestNeighbourClustering] = None,
    ):
        self.config = config or DocstrumConfig()
        self.clustering = clustering or NearestNeighbourClustering(ClusteringConfig())

    def get_blocks(
        self,
        words: Sequence[Word],
        token: Optional[CancellationToken] = None,
        estimates: Optional[List[SpacingEstimate]] = None,
    ) -> List[TextBlock]:
        """
        Build blocks from words.

        Args:
            words: Words of one page
            token: Optional cancellation token
            estimates: If given, receives the spacing estimate of every group
        """
        check_cancelled(token)
        if not words:
            return []

        blocks: List[TextBlock] = []
        for group in group_words(words, self.config):
            spacing = estimate_spacing(group, self.config)
            if estimates is not None:
                estimates.append(spacing)
            logger.debug("Docstrum group %s", spacing.summary())

            check_cancelled(token)
            lines = self.get_lines(group, spacing, token)

            check_cancelled(token)
            group_blocks = self._lines_to_blocks(lines, group.frame, spacing, token)
            blocks.extend(group_blocks)

        logger.debug("Built %d blocks from %d words", len(blocks), len(words))
        return blocks

    def get_lines(
        self,
        group: WordGroup,
        spacing: SpacingEstimate,
        token: Optional[CancellationToken] = None,
    ) -> List[TextLine]:
        strategy = WithinLineStrategy(group.frame, spacing, self.config)
        clusters = self.clustering.k_nearest_neighbours(group.words, self.config.within_line_k, strategy, token)
        return [TextLine(order_words_by_reading_order(cluster)) for cluster in clusters]

    def _lines_to_blocks(
        self,
        lines: List[TextLine],
        frame: LocalFrame,
        spacing: SpacingEstimate,
        token: Optional[CancellationToken],
    ) -> List[TextBlock]:
        strategy = BetweenLineStrategy(frame, spacing, self.config)
        clusters = self.clustering.nearest_segments(lines, strategy, token)
        blocks = [TextBlock(order_lines_by_reading_order(cluster)) for cluster in clusters]

        def position(block: TextBlock) -> Tuple[float, float]:
            _, top = frame.v_interval(block.bbox)
            left, _ = frame.u_interval(block.bbox)
            return (-top, left)

        return sorted(blocks, key=position)
