"""
Page Model Module
=================
Glyph / word / line / block structures and the indexed text layer.
"""

from .model import Glyph, Word, TextLine, TextBlock, Annotation, URL_PATTERN
from .layer import TextLayer

__all__ = ['Glyph', 'Word', 'TextLine', 'TextBlock', 'Annotation', 'TextLayer', 'URL_PATTERN']
