"""
Duplicate Glyph Removal
=======================
Some producers paint the same text twice (fake bold, shadow effects). A glyph
is dropped when an earlier kept glyph has the same value and a bottom-left
corner within a small tolerance box of its own.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..errors import CancellationToken, check_cancelled
from ..page_model import Glyph


logger = logging.getLogger(__name__)


@dataclass
class DedupConfig:
    """Configuration for duplicate glyph removal"""
    # tolerance = glyph width / len(value) / tolerance_divisor
    tolerance_divisor: float = 3.0
    cancel_check_interval: int = 1000


class GlyphDeduplicator:
    """
    Forward scan over the glyphs in paint order: the first occurrence of a
    duplicate cluster is kept, relative order is preserved.

    Usage:
        glyphs = GlyphDeduplicator().deduplicate(page_glyphs)
    """

    def __init__(self, config: Optional[DedupConfig] = None):
        self.config = config or DedupConfig()

    def tolerance(self, glyph: Glyph) -> float:
        length = len(glyph.value) or 1
        return glyph.width / length / self.config.tolerance_divisor

    def deduplicate(
        self,
        glyphs: Sequence[Glyph],
        token: Optional[CancellationToken] = None,
    ) -> List[Glyph]:
        if not glyphs:
            return []

        # Kept glyphs by value
        kept_by_value: Dict[str, List[Glyph]] = {}
        kept: List[Glyph] = []
        interval = self.config.cancel_check_interval

        for i, glyph in enumerate(glyphs):
            if i % interval == 0:
                check_cancelled(token)

            candidates = kept_by_value.get(glyph.value)
            if candidates and self._is_duplicate(glyph, candidates):
                continue

            kept.append(glyph)
            kept_by_value.setdefault(glyph.value, []).append(glyph)

        if len(kept) != len(glyphs):
            logger.debug("Removed %d duplicate glyphs", len(glyphs) - len(kept))
        return kept

    def _is_duplicate(self, glyph: Glyph, candidates: List[Glyph]) -> bool:
        tolerance = self.tolerance(glyph)
        x = glyph.start_baseline.x
        y = glyph.start_baseline.y
        for other in candidates:
            ox, oy = other.start_baseline
            if x - tolerance <= ox <= x + tolerance and y - tolerance <= oy <= y + tolerance:
                return True
        return False


def remove_duplicate_glyphs(
    glyphs: Sequence[Glyph],
    token: Optional[CancellationToken] = None,
    config: Optional[DedupConfig] = None,
) -> List[Glyph]:
    """Convenience wrapper around ``GlyphDeduplicator``."""
    return GlyphDeduplicator(config).deduplicate(glyphs, token)
