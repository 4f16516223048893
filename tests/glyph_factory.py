"""
Synthetic glyph builders shared by the tests.

Default metrics: 5pt wide letters, 10pt tall, 2.5pt spaces, 14pt line pitch.
"""

import os
import sys
from typing import List, Optional, Sequence

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer.page_model import Glyph, Word  # noqa: E402
from textlayer.types import OrientedRect, Point, frame_from_rotation  # noqa: E402


CHAR_WIDTH = 5.0
CHAR_HEIGHT = 10.0
SPACE_WIDTH = 2.5
LINE_PITCH = 14.0


class Sequencer:
    """Hands out increasing paint order numbers."""

    def __init__(self, start: int = 0):
        self.value = start

    def next(self) -> int:
        value = self.value
        self.value += 1
        return value


def make_glyph(value: str, x: float, baseline: float, width: float = CHAR_WIDTH,
               height: float = CHAR_HEIGHT, seq: int = 0, size: float = 10.0,
               font: str = "Body") -> Glyph:
    """Upright glyph whose baseline starts at (x, baseline)."""
    return Glyph(
        value=value,
        bbox=OrientedRect.from_bounds(x, baseline - height, x + width, baseline),
        point_size=size,
        text_sequence=seq,
        font_name=font,
    )


def make_rotated_glyph(value: str, origin: Point, rotation: float, width: float = CHAR_WIDTH,
                       height: float = CHAR_HEIGHT, seq: int = 0, size: float = 10.0,
                       font: str = "Body") -> Glyph:
    """Glyph whose baseline starts at ``origin`` and runs at ``rotation`` degrees."""
    direction, up = frame_from_rotation(rotation)
    bl = origin
    br = bl.add(direction.scale(width))
    tl = bl.add(up.scale(height))
    tr = br.add(up.scale(height))
    return Glyph(
        value=value,
        bbox=OrientedRect(tl, tr, bl, br),
        point_size=size,
        text_sequence=seq,
        font_name=font,
    )


def make_line(words: Sequence[str], x: float, baseline: float,
              sequencer: Optional[Sequencer] = None, with_spaces: bool = True,
              font: str = "Body") -> List[Glyph]:
    """Glyphs of an upright line of words, spaces painted between words."""
    sequencer = sequencer or Sequencer()
    glyphs: List[Glyph] = []
    cursor = x
    for i, word in enumerate(words):
        if i > 0:
            if with_spaces:
                glyphs.append(make_glyph(' ', cursor, baseline, width=SPACE_WIDTH,
                                         seq=sequencer.next(), font=font))
            cursor += SPACE_WIDTH
        for char in word:
            glyphs.append(make_glyph(char, cursor, baseline, seq=sequencer.next(), font=font))
            cursor += CHAR_WIDTH
    return glyphs


def make_rotated_line(words: Sequence[str], origin: Point, rotation: float,
                      sequencer: Optional[Sequencer] = None) -> List[Glyph]:
    """Glyphs of a rotated line of words (no space glyphs)."""
    sequencer = sequencer or Sequencer()
    direction, _ = frame_from_rotation(rotation)
    glyphs: List[Glyph] = []
    offset = 0.0
    for i, word in enumerate(words):
        if i > 0:
            offset += SPACE_WIDTH
        for char in word:
            glyphs.append(make_rotated_glyph(char, origin.add(direction.scale(offset)), rotation,
                                             seq=sequencer.next()))
            offset += CHAR_WIDTH
    return glyphs


def make_paragraph(lines: Sequence[Sequence[str]], x: float, first_baseline: float,
                   sequencer: Optional[Sequencer] = None) -> List[Glyph]:
    sequencer = sequencer or Sequencer()
    glyphs: List[Glyph] = []
    for i, words in enumerate(lines):
        glyphs.extend(make_line(words, x, first_baseline + i * LINE_PITCH, sequencer))
    return glyphs


def two_paragraph_page() -> List[Glyph]:
    """Two 3-line paragraphs of 3 words each, 20pt blank gap between them."""
    sequencer = Sequencer()
    words = ["alpha", "beta", "gamma"]
    glyphs = make_paragraph([words, words, words], 50, 100, sequencer)
    glyphs += make_paragraph([words, words, words], 50, 100 + 2 * LINE_PITCH + 30, sequencer)
    return glyphs


def make_words(words: Sequence[str], x: float, baseline: float,
               sequencer: Optional[Sequencer] = None) -> List[Word]:
    """Words of one upright line, built directly (no extraction)."""
    glyphs = make_line(words, x, baseline, sequencer, with_spaces=False)
    result = []
    start = 0
    for word in words:
        result.append(Word(glyphs[start:start + len(word)]))
        start += len(word)
    return result
