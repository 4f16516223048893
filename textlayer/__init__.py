"""
Page Text Layer Engine
======================
Turns a page's painted glyphs into reading-order words, lines and blocks, and
indexes them for hit-testing, random access and range selection.

Architecture:
- spatial: KD-tree index and distance functions
- clustering: Nearest-neighbour clustering engine
- geometry: Orientation, oriented bounding boxes, reading order
- page_model: Glyph / Word / TextLine / TextBlock / TextLayer
- layout: Duplicate removal, word extraction, Docstrum line/block analysis

Usage:
    from textlayer import TextLayerPipeline
    pipeline = TextLayerPipeline()
    layer, debug = pipeline.run(glyphs, annotations)
"""

from .types import Point, OrientedRect, TextOrientation
from .errors import (
    TextLayerError,
    DegenerateGeometryError,
    EmptyIndexError,
    OperationCancelled,
    CancellationToken,
)
from .text_pool import TextPool
from .page_model import Glyph, Word, TextLine, TextBlock, Annotation, TextLayer
from .pipeline import (
    TextLayerPipeline,
    PipelineConfig,
    DebugBundle,
    build_text_layer,
    run_text_layer_pipeline,
)

__all__ = [
    'Point',
    'OrientedRect',
    'TextOrientation',
    'TextLayerError',
    'DegenerateGeometryError',
    'EmptyIndexError',
    'OperationCancelled',
    'CancellationToken',
    'TextPool',
    'Glyph',
    'Word',
    'TextLine',
    'TextBlock',
    'Annotation',
    'TextLayer',
    'TextLayerPipeline',
    'PipelineConfig',
    'DebugBundle',
    'build_text_layer',
    'run_text_layer_pipeline',
]

__version__ = '1.0.0'
