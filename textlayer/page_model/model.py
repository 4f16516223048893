"""
Page Text Model
===============
Glyph -> Word -> TextLine -> TextBlock hierarchy of one page.

Containers own their children in reading order and compute their bounding
box and orientation on construction. The page-global index fields start at
-1 and are assigned once, in reading order, when the text layer is built.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..geometry import (
    container_bounding_box,
    glyph_orientation,
    orientation_from_rotation,
    bounding_box_in_frame,
    text_orientation_of,
    word_bounding_box,
)
from ..spatial import euclidean, project_point_on_line
from ..text_pool import TextPool
from ..types import OrientedRect, Point, TextOrientation, frame_from_rotation, reading_frame


# Matches http(s)/ftp(s) URLs and bare www. hosts
URL_PATTERN = re.compile(
    r"(?:(?:https?|ftps?)://|www\.)"
    r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}"
    r"(?::(?:0|[1-9]\d{0,3}|[1-5]\d{4}|6[0-4]\d{3}|65[0-4]\d{2}|655[0-2]\d|6553[0-5]))?"
    r"(?:/[-a-zA-Z0-9@%_+.~#?&=/]*)?"
)


# ============================================================
# Glyph
# ============================================================

@dataclass
class Glyph:
    """
    A single painted glyph.

    Attributes:
        value: Text of the glyph (more than one character for ligatures)
        bbox: Oriented bounding box, baseline on the bottom edge
        point_size: Font size in points
        text_sequence: Paint order on the page
        font_name: Font the glyph was painted with
        is_stroke: Stroked (outline) rather than filled text
        rotation_hint: Text matrix rotation in degrees, used when the box is degenerate
    """
    value: str
    bbox: OrientedRect
    point_size: float
    text_sequence: int
    font_name: str = ""
    is_stroke: bool = False
    rotation_hint: Optional[float] = None
    orientation: TextOrientation = field(init=False)

    def __post_init__(self):
        self.orientation = glyph_orientation(self.bbox, self.rotation_hint)

    @property
    def start_baseline(self) -> Point:
        return self.bbox.bottom_left

    @property
    def end_baseline(self) -> Point:
        return self.bbox.bottom_right

    @property
    def width(self) -> float:
        return self.bbox.width

    @property
    def is_whitespace(self) -> bool:
        return not self.value or self.value.isspace()

    @classmethod
    def from_pdfplumber(cls, char: Dict[str, Any], sequence: int) -> 'Glyph':
        """
        Create from a pdfplumber char dictionary.

        pdfplumber reports the axis aligned envelope (x0, top, x1, bottom) in
        the top-left-origin frame; the text matrix gives the baseline
        direction, so the corners are relabelled to put the baseline on the
        bottom edge.
        """
        x0 = float(char.get('x0', 0))
        x1 = float(char.get('x1', 0))
        top = float(char.get('top', 0))
        bottom = float(char.get('bottom', 0))

        matrix = char.get('matrix')
        if matrix:
            a, b = matrix[0], matrix[1]
            # PDF space is Y-up, page frame is Y-down
            rotation = math.degrees(math.atan2(-b, a)) if (a or b) else 0.0
        else:
            rotation = 0.0 if char.get('upright', True) else -90.0

        orientation = orientation_from_rotation(rotation)
        if orientation is TextOrientation.HORIZONTAL:
            bbox = OrientedRect.from_bounds(x0, top, x1, bottom)
        elif orientation is TextOrientation.ROTATE180:
            bbox = OrientedRect(Point(x1, bottom), Point(x0, bottom), Point(x1, top), Point(x0, top))
        elif orientation is TextOrientation.ROTATE90:
            bbox = OrientedRect(Point(x0, bottom), Point(x0, top), Point(x1, bottom), Point(x1, top))
        elif orientation is TextOrientation.ROTATE270:
            bbox = OrientedRect(Point(x1, top), Point(x1, bottom), Point(x0, top), Point(x0, bottom))
        else:
            direction, up = frame_from_rotation(rotation)
            envelope = OrientedRect.from_bounds(x0, top, x1, bottom)
            bbox = bounding_box_in_frame(envelope.corners, direction, up)

        fontname = char.get('fontname') or ""
        return cls(
            value=char.get('text', ''),
            bbox=bbox,
            point_size=float(char.get('size', 0) or 0),
            text_sequence=sequence,
            font_name=fontname,
            rotation_hint=rotation,
        )


# ============================================================
# Word
# ============================================================

class Word:
    """
    An ordered group of glyphs read as one word.

    Axis aligned words keep only the cumulative end offset of each letter
    along the baseline; "Other" words keep every letter box.
    """

    def __init__(self, letters: Sequence[Glyph], text_pool: Optional[TextPool] = None):
        if not letters:
            raise ValueError("Cannot construct word if no letters provided.")

        self.letters: Tuple[Glyph, ...] = tuple(letters)
        self.orientation = text_orientation_of(self.letters)
        self.bbox = word_bounding_box(self.letters, self.orientation)

        self.index_in_page = -1
        self.text_line_index = -1
        self.text_block_index = -1

        value = ''.join(letter.value for letter in self.letters)
        self.value = text_pool.get_or_add(value) if text_pool is not None else value

        # Character end offset of each letter, only when a letter is not one character
        self._to_char_index: Optional[List[int]] = None
        if len(value) != len(self.letters):
            ends = []
            position = 0
            for letter in self.letters:
                position += len(letter.value)
                ends.append(position)
            self._to_char_index = ends

        self._letter_positions: Optional[List[float]] = None
        self._letter_boxes: Optional[List[OrientedRect]] = None
        if len(self.letters) > 1:
            if self.orientation.is_axis_aligned:
                direction, _ = reading_frame(self.orientation)
                origin = self.bbox.bottom_left
                self._letter_positions = [
                    letter.end_baseline.subtract(origin).dot(direction)
                    for letter in self.letters[:-1]
                ]
            else:
                self._letter_boxes = [letter.bbox for letter in self.letters]

    def __repr__(self) -> str:
        return f"Word({self.value!r}, index_in_page={self.index_in_page})"

    @property
    def count(self) -> int:
        """Number of letters"""
        return len(self.letters)

    def __len__(self) -> int:
        return len(self.letters)

    def contains(self, x: float, y: float) -> bool:
        return self.bbox.contains((x, y), True)

    def get_char_index_from_bbox_index(self, bbox_index: int) -> int:
        """Index in ``value`` of the last character of letter ``bbox_index``."""
        if self._to_char_index is None:
            return bbox_index
        return self._to_char_index[bbox_index] - 1

    def letter_char_span(self, index: int) -> Tuple[int, int]:
        """(start, end) slice of ``value`` covered by letter ``index``."""
        if self._to_char_index is None:
            return index, index + 1
        start = self._to_char_index[index - 1] if index > 0 else 0
        return start, self._to_char_index[index]

    def _span(self, index: int) -> Tuple[float, float]:
        start = 0.0 if index == 0 else self._letter_positions[index - 1]
        end = self.bbox.width if index == self.count - 1 else self._letter_positions[index]
        return start, end

    def get_letter_bounding_box(self, index: int) -> OrientedRect:
        if not 0 <= index < self.count:
            raise IndexError(f"Letter index {index} out of range for word of {self.count} letters")
        if self.count == 1:
            return self.bbox
        if self._letter_boxes is not None:
            return self._letter_boxes[index]

        start, end = self._span(index)
        direction, _ = reading_frame(self.orientation)
        bl = self.bbox.bottom_left
        height = self.bbox.top_left.subtract(bl)
        left = bl.add(direction.scale(start))
        right = bl.add(direction.scale(end))
        return OrientedRect(
            top_left=left.add(height),
            top_right=right.add(height),
            bottom_left=left,
            bottom_right=right,
        )

    def _baseline_position(self, x: float, y: float) -> float:
        t = project_point_on_line(Point(x, y), self.bbox.bottom_left, self.bbox.bottom_right)
        return t * self.bbox.width

    def get_within_letter_offset(self, index: int, x: float, y: float) -> float:
        """Distance along the baseline from the start of letter ``index`` to the projection of (x, y)."""
        if self._letter_boxes is not None:
            box = self._letter_boxes[index]
            t = project_point_on_line(Point(x, y), box.bottom_left, box.bottom_right)
            return t * box.width

        position = self._baseline_position(x, y)
        if self.count == 1 or index == 0:
            return position
        return position - self._letter_positions[index - 1]

    def find_letter_index_over(self, x: float, y: float) -> int:
        """Letter under (x, y), -1 if the point is outside the word."""
        if not self.contains(x, y):
            return -1
        if self.count == 1:
            return 0

        if self._letter_positions is not None:
            position = self._baseline_position(x, y)
            for i, end in enumerate(self._letter_positions):
                if position <= end:
                    return i
            return self.count - 1

        for i, box in enumerate(self._letter_boxes):
            if box.contains((x, y), True):
                return i
        return -1

    def find_nearest_letter_index(self, x: float, y: float) -> int:
        """Letter whose end (along the baseline) is nearest to (x, y)."""
        if self.count == 1:
            return 0

        best_index = -1
        best = math.inf
        if self._letter_positions is not None:
            position = self._baseline_position(x, y)
            ends = self._letter_positions + [self.bbox.width]
            for i, end in enumerate(ends):
                d = abs(position - end)
                if d < best:
                    best = d
                    best_index = i
            return best_index

        point = Point(x, y)
        for i, box in enumerate(self._letter_boxes):
            d = euclidean(point, box.bottom_right)
            if d < best:
                best = d
                best_index = i
        return best_index


# ============================================================
# Lines and Blocks
# ============================================================

class TextLine:
    """Words sharing a baseline, in reading order."""

    def __init__(self, words: Sequence[Word]):
        if not words:
            raise ValueError("Cannot construct text line if no words provided.")

        self.words: Tuple[Word, ...] = tuple(words)
        self.orientation = text_orientation_of(self.words)
        self.bbox = container_bounding_box(self.words, self.orientation)

        self.index_in_page = -1
        self.text_block_index = -1
        self.word_start_index = -1
        self.is_interactive = False

    def __repr__(self) -> str:
        return f"TextLine({self.text!r}, index_in_page={self.index_in_page})"

    @property
    def text(self) -> str:
        return ' '.join(w.value for w in self.words)

    @property
    def compact_text(self) -> str:
        """Words concatenated without separators, as URL detection sees them"""
        return ''.join(w.value for w in self.words)

    def interactive_match(self) -> str:
        """First URL found in the line, empty string if none."""
        match = URL_PATTERN.search(self.compact_text)
        return match.group(0) if match else ""

    def contains(self, x: float, y: float) -> bool:
        return self.bbox.contains((x, y), True)

    def find_word_over(self, x: float, y: float) -> Optional[Word]:
        for word in self.words:
            if word.contains(x, y):
                return word
        return None

    def get_word_in_page_at(self, index_in_page: int) -> Word:
        index = index_in_page - self.word_start_index
        if not 0 <= index < len(self.words):
            raise IndexError(f"Word {index_in_page} is not in line {self.index_in_page}")
        return self.words[index]


class TextBlock:
    """Lines forming one block (paragraph), in reading order."""

    def __init__(self, lines: Sequence[TextLine]):
        if not lines:
            raise ValueError("Cannot construct text block if no lines provided.")

        self.lines: Tuple[TextLine, ...] = tuple(lines)
        self.orientation = text_orientation_of(self.lines)
        self.bbox = container_bounding_box(self.lines, self.orientation)

        self.index_in_page = -1
        self.word_start_index = -1
        self.word_end_index = -1

    def __repr__(self) -> str:
        return f"TextBlock(lines={len(self.lines)}, index_in_page={self.index_in_page})"

    @property
    def text(self) -> str:
        return '\n'.join(line.text for line in self.lines)

    @property
    def word_count(self) -> int:
        return sum(len(line.words) for line in self.lines)

    def iter_words(self):
        for line in self.lines:
            yield from line.words

    def contains(self, x: float, y: float) -> bool:
        return self.bbox.contains((x, y), True)

    def find_text_line_over(self, x: float, y: float) -> Optional[TextLine]:
        for line in self.lines:
            if line.contains(x, y):
                return line
        return None

    def find_word_over(self, x: float, y: float) -> Optional[Word]:
        line = self.find_text_line_over(x, y)
        if line is None:
            return None
        return line.find_word_over(x, y)

    def contains_word(self, index_in_page: int) -> bool:
        return self.word_start_index <= index_in_page <= self.word_end_index

    def get_word_in_page_at(self, index_in_page: int) -> Word:
        index = index_in_page - self.word_start_index
        if index < 0:
            raise IndexError(f"Word {index_in_page} is not in block {self.index_in_page}")

        count = 0
        for line in self.lines:
            count += len(line.words)
            if index < count:
                return line.get_word_in_page_at(index_in_page)

        raise IndexError(f"Word {index_in_page} is not in block {self.index_in_page}")


# ============================================================
# Annotation
# ============================================================

def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return str(value)


@dataclass
class Annotation:
    """
    A page annotation (link, note, ...).

    Attributes:
        bbox: Annotation rectangle
        content: Text content of the annotation, if any
        action_uri: Target URI of a link action, if any
        date: Modification date string as stored in the file
        is_interactive: Clicking it does something (follows a link)
    """
    bbox: OrientedRect
    content: Optional[str] = None
    action_uri: Optional[str] = None
    date: Optional[str] = None
    is_interactive: bool = False

    @property
    def has_action(self) -> bool:
        return bool(self.action_uri)

    @property
    def is_meaningful(self) -> bool:
        """Worth keeping in the text layer"""
        return self.is_interactive or self.has_action or bool(self.content)

    def contains(self, x: float, y: float) -> bool:
        return self.bbox.contains((x, y), True)

    @classmethod
    def from_pdfplumber(cls, annot: Dict[str, Any]) -> 'Annotation':
        """Create from a pdfplumber ``page.annots`` entry"""
        bbox = OrientedRect.from_bounds(
            float(annot.get('x0', 0)),
            float(annot.get('top', 0)),
            float(annot.get('x1', 0)),
            float(annot.get('bottom', 0)),
        )
        data = annot.get('data') or {}
        uri = _as_text(annot.get('uri'))
        return cls(
            bbox=bbox,
            content=_as_text(annot.get('contents')),
            action_uri=uri,
            date=_as_text(data.get('M')) if isinstance(data, dict) else None,
            is_interactive=bool(uri),
        )
