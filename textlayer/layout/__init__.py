"""
Layout Module
=============
Glyph deduplication, word extraction and Docstrum line/block analysis.
"""

from .dedup import DedupConfig, GlyphDeduplicator, remove_duplicate_glyphs
from .word_extractor import NearestNeighbourWordExtractor, WordExtractorConfig, WordStrategy, order_letters
from .docstrum import (
    DocstrumConfig,
    DocstrumLayoutAnalyzer,
    SpacingEstimate,
    estimate_spacing,
    group_words,
    overlap_fraction,
    split_by_rotation,
)

__all__ = [
    'DedupConfig',
    'GlyphDeduplicator',
    'remove_duplicate_glyphs',
    'NearestNeighbourWordExtractor',
    'WordExtractorConfig',
    'WordStrategy',
    'order_letters',
    'DocstrumConfig',
    'DocstrumLayoutAnalyzer',
    'SpacingEstimate',
    'estimate_spacing',
    'group_words',
    'overlap_fraction',
    'split_by_rotation',
]
