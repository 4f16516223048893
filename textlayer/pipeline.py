"""
Text Layer Pipeline
===================
Single entry point for building the text layer of a page.
Orchestrates: Glyphs -> Dedup -> Words -> Lines/Blocks -> Indexed TextLayer
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .clustering import ClusteringConfig, NearestNeighbourClustering
from .errors import CancellationToken, check_cancelled
from .layout import (
    DedupConfig, GlyphDeduplicator,
    NearestNeighbourWordExtractor, WordExtractorConfig,
    DocstrumConfig, DocstrumLayoutAnalyzer, SpacingEstimate,
)
from .logger import configure_logging
from .page_model import Annotation, Glyph, TextBlock, TextLayer
from .text_pool import TextPool


logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Complete pipeline configuration"""
    dedup: DedupConfig = field(default_factory=DedupConfig)
    words: WordExtractorConfig = field(default_factory=WordExtractorConfig)
    docstrum: DocstrumConfig = field(default_factory=DocstrumConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)

    # Feature toggles
    enable_dedup: bool = True

    # Pages built concurrently by build_pages / run_text_layer_pipeline
    page_workers: int = 1
    cancel_check_interval: int = 100

    # Debug
    debug: bool = False
    log_level: str = "WARNING"

    @classmethod
    def default(cls) -> 'PipelineConfig':
        """Sequential clustering, deduplication on"""
        return cls()

    @classmethod
    def sequential(cls) -> 'PipelineConfig':
        """Everything on the calling thread"""
        return cls(clustering=ClusteringConfig(max_workers=1), page_workers=1)

    @classmethod
    def parallel(cls, workers: int = 4) -> 'PipelineConfig':
        """Thread pool fan-out for the edge search and across pages"""
        return cls(clustering=ClusteringConfig(max_workers=workers), page_workers=workers)


@dataclass
class DebugBundle:
    """Debug information from a pipeline run"""
    glyphs_in: int = 0
    glyphs_after_dedup: int = 0
    words_count: int = 0
    lines_count: int = 0
    blocks_count: int = 0
    annotations_count: int = 0
    interactive_lines: int = 0

    spacing: List[SpacingEstimate] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def duplicates_removed(self) -> int:
        return self.glyphs_in - self.glyphs_after_dedup

    def summary(self) -> str:
        """Generate summary string"""
        lines = [
            "=" * 60,
            "TEXT LAYER DEBUG SUMMARY",
            "=" * 60,
            f"Glyphs: {self.glyphs_in}",
            f"Duplicates Removed: {self.duplicates_removed}",
            f"Words: {self.words_count}",
            f"Lines: {self.lines_count} ({self.interactive_lines} interactive)",
            f"Blocks: {self.blocks_count}",
            f"Annotations: {self.annotations_count}",
            "",
            "Spacing Estimates:",
        ]
        for estimate in self.spacing:
            lines.append(f"  {estimate.summary()}")

        if self.timings:
            lines.append("")
            lines.append("Timings (ms):")
            for phase, seconds in self.timings.items():
                lines.append(f"  {phase}: {seconds * 1000:.1f}")

        lines.append("=" * 60)
        return "\n".join(lines)


def assign_indices(
    blocks: Sequence[TextBlock],
    token: Optional[CancellationToken] = None,
    cancel_check_interval: int = 100,
) -> None:
    """
    Give every block, line and word its page-global index, in reading order.
    Also sets each line's word start index and interactive flag and each
    block's word range.
    """
    word_index = 0
    line_index = 0

    for block_index, block in enumerate(blocks):
        block_start_index = word_index

        for line in block.lines:
            line.is_interactive = bool(line.interactive_match())
            line_start_index = word_index

            for word in line.words:
                if word_index % cancel_check_interval == 0:
                    check_cancelled(token)
                word.index_in_page = word_index
                word.text_line_index = line_index
                word.text_block_index = block_index
                word_index += 1

            line.index_in_page = line_index
            line.text_block_index = block_index
            line.word_start_index = line_start_index
            line_index += 1

        block.index_in_page = block_index
        block.word_start_index = block_start_index
        block.word_end_index = word_index - 1


class TextLayerPipeline:
    """
    Main text layer pipeline.

    Usage:
        pipeline = TextLayerPipeline()
        layer, debug = pipeline.run(glyphs, annotations)
    """

    def __init__(self, config: Optional[PipelineConfig] = None, text_pool: Optional[TextPool] = None):
        self.config = config or PipelineConfig.default()
        self.text_pool = text_pool if text_pool is not None else TextPool()

        if self.config.debug:
            configure_logging(self.config.log_level)

        # Initialize components
        clustering = NearestNeighbourClustering(self.config.clustering)
        self.deduplicator = GlyphDeduplicator(self.config.dedup)
        self.word_extractor = NearestNeighbourWordExtractor(self.config.words, clustering, self.text_pool)
        self.layout_analyzer = DocstrumLayoutAnalyzer(self.config.docstrum, clustering)

    def run(
        self,
        glyphs: Sequence[Glyph],
        annotations: Sequence[Annotation] = (),
        token: Optional[CancellationToken] = None,
    ) -> Tuple[TextLayer, DebugBundle]:
        """
        Build the text layer of one page.

        Args:
            glyphs: Page glyphs in paint order
            annotations: Page annotations; only interactive, actionable or
                non-empty ones are kept
            token: Optional cancellation token

        Returns:
            Tuple of (text_layer, debug_bundle)

        Raises:
            OperationCancelled: the token fired
        """
        debug = DebugBundle(glyphs_in=len(glyphs))
        check_cancelled(token)

        if not glyphs:
            return TextLayer.empty(), debug

        kept_annotations = [a for a in annotations if a.is_meaningful]
        debug.annotations_count = len(kept_annotations)

        # 1. Remove duplicated glyphs
        started = time.perf_counter()
        if self.config.enable_dedup:
            glyphs = self.deduplicator.deduplicate(glyphs, token)
        debug.glyphs_after_dedup = len(glyphs)
        debug.timings['dedup'] = time.perf_counter() - started

        # 2. Glyphs -> words
        started = time.perf_counter()
        words = self.word_extractor.get_words(glyphs, token)
        debug.words_count = len(words)
        debug.timings['words'] = time.perf_counter() - started

        # 3. Words -> lines -> blocks
        started = time.perf_counter()
        blocks = self.layout_analyzer.get_blocks(words, token, debug.spacing)
        debug.blocks_count = len(blocks)
        debug.lines_count = sum(len(b.lines) for b in blocks)
        debug.timings['layout'] = time.perf_counter() - started

        # 4. Index assignment
        started = time.perf_counter()
        assign_indices(blocks, token, self.config.cancel_check_interval)
        layer = TextLayer(blocks, kept_annotations)
        debug.interactive_lines = sum(1 for line in layer.lines if line.is_interactive)
        debug.timings['index'] = time.perf_counter() - started

        if self.config.debug:
            logger.info(
                "Text layer: %d glyphs -> %d words, %d lines, %d blocks",
                debug.glyphs_in, debug.words_count, debug.lines_count, debug.blocks_count,
            )

        return layer, debug

    def build(
        self,
        glyphs: Sequence[Glyph],
        annotations: Sequence[Annotation] = (),
        token: Optional[CancellationToken] = None,
    ) -> TextLayer:
        return self.run(glyphs, annotations, token)[0]

    def build_pages(
        self,
        pages: Sequence[Tuple[Sequence[Glyph], Sequence[Annotation]]],
        token: Optional[CancellationToken] = None,
    ) -> List[Tuple[TextLayer, DebugBundle]]:
        """Build several pages, concurrently when ``page_workers`` > 1."""
        if self.config.page_workers <= 1 or len(pages) <= 1:
            return [self.run(glyphs, annotations, token) for glyphs, annotations in pages]

        with ThreadPoolExecutor(max_workers=self.config.page_workers) as executor:
            futures = [executor.submit(self.run, glyphs, annotations, token) for glyphs, annotations in pages]
            return [future.result() for future in futures]


def build_text_layer(
    glyphs: Sequence[Glyph],
    annotations: Sequence[Annotation] = (),
    token: Optional[CancellationToken] = None,
    config: Optional[PipelineConfig] = None,
) -> TextLayer:
    """Build one page's text layer with a fresh pipeline."""
    return TextLayerPipeline(config).build(glyphs, annotations, token)


# ============================================================
# pdfplumber Source
# ============================================================

def glyphs_from_chars(chars: Sequence[Dict[str, Any]]) -> List[Glyph]:
    """Glyphs from pdfplumber chars, paint order = list order."""
    return [Glyph.from_pdfplumber(char, sequence) for sequence, char in enumerate(chars)]


def annotations_from_page(page) -> List[Annotation]:
    """Annotations and hyperlinks of a pdfplumber page."""
    return [Annotation.from_pdfplumber(a) for a in (page.annots or [])]


def run_text_layer_pipeline(
    pdf_path: str,
    config: Optional[PipelineConfig] = None,
    page_numbers: Optional[Sequence[int]] = None,
    token: Optional[CancellationToken] = None,
) -> List[Tuple[TextLayer, DebugBundle]]:
    """
    Build the text layer of every page (or the given 1-indexed pages) of a PDF.
    """
    import pdfplumber

    cfg = config or PipelineConfig.default()
    pages: List[Tuple[List[Glyph], List[Annotation]]] = []

    with pdfplumber.open(pdf_path) as pdf:
        for i, page in enumerate(pdf.pages):
            page_num = i + 1
            if page_numbers is not None and page_num not in page_numbers:
                continue
            check_cancelled(token)
            pages.append((glyphs_from_chars(page.chars), annotations_from_page(page)))

    logger.debug("Loaded %d pages from %s", len(pages), pdf_path)
    pipeline = TextLayerPipeline(cfg)
    return pipeline.build_pages(pages, token)
