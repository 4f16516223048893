"""
Indexed Text Layer
==================
Read-only view of one page's text: blocks in reading order plus annotations.

Words are addressed by their page-global index. A word's index resolves
through the blocks' [word_start_index, word_end_index] ranges, then through
the lines' start indices, so no lookup scans every word.
"""

from typing import Iterator, List, Optional, Sequence

from .model import Annotation, TextBlock, TextLine, Word


class TextLayer:
    """
    Usage:
        layer = build_text_layer(glyphs)
        word = layer.find_word_over(x, y)
        words = list(layer.get_words(layer[0], word))
    """

    def __init__(self, blocks: Sequence[TextBlock], annotations: Sequence[Annotation] = ()):
        self.blocks: tuple = tuple(blocks)
        self.annotations: tuple = tuple(annotations)
        self.count = sum(block.word_count for block in self.blocks)

    @classmethod
    def empty(cls) -> 'TextLayer':
        return cls((), ())

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[Word]:
        for block in self.blocks:
            yield from block.iter_words()

    def __getitem__(self, index: int) -> Word:
        if index < 0:
            index += self.count
        if not 0 <= index < self.count:
            raise IndexError(f"Word index {index} out of range for page of {self.count} words")

        for block in self.blocks:
            if block.contains_word(index):
                return block.get_word_in_page_at(index)

        raise IndexError(f"Cannot find word at index {index}")

    @property
    def lines(self) -> List[TextLine]:
        return [line for block in self.blocks for line in block.lines]

    @property
    def text(self) -> str:
        """Page text: lines separated by newlines, blocks by a blank line"""
        return '\n\n'.join(block.text for block in self.blocks)

    # ------------------------------------------------------------
    # Hit testing
    # ------------------------------------------------------------

    def find_annotation_over(self, x: float, y: float) -> Optional[Annotation]:
        for annotation in self.annotations:
            if annotation.contains(x, y):
                return annotation
        return None

    def find_word_over(self, x: float, y: float) -> Optional[Word]:
        for block in self.blocks:
            if not block.contains(x, y):
                continue
            candidate = block.find_word_over(x, y)
            if candidate is not None:
                return candidate
        return None

    def find_line_over(self, x: float, y: float) -> Optional[TextLine]:
        for block in self.blocks:
            if not block.contains(x, y):
                continue
            candidate = block.find_text_line_over(x, y)
            if candidate is not None:
                return candidate
        return None

    def get_line(self, word: Word) -> TextLine:
        block = self.blocks[word.text_block_index]
        line_start_index = block.lines[0].index_in_page
        return block.lines[word.text_line_index - line_start_index]

    # ------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------

    def get_words(self, start: Word, end: Word) -> Iterator[Word]:
        """
        Words from ``start`` to ``end`` inclusive, in reading order.

        Raises:
            ValueError: start comes after end
        """
        if start.index_in_page > end.index_in_page:
            raise ValueError(
                f"Range start {start.index_in_page} is after range end {end.index_in_page}"
            )
        return self._iter_words(start, end)

    def _iter_words(self, start: Word, end: Word) -> Iterator[Word]:
        if not self.blocks:
            return

        # Single word
        if start is end or start.index_in_page == end.index_in_page:
            yield start
            return

        # Whole page
        if start.index_in_page == 0 and end.index_in_page == self.count - 1:
            yield from self
            return

        # Single block
        if start.text_block_index == end.text_block_index:
            block = self.blocks[start.text_block_index]
            line_start_index = block.lines[0].index_in_page
            first = start.text_line_index - line_start_index
            last = end.text_line_index - line_start_index

            for li in range(first, last + 1):
                line = block.lines[li]
                if li == first:
                    word_index = start.index_in_page - line.word_start_index
                    if first == last:
                        stop = end.index_in_page - line.word_start_index + 1
                    else:
                        stop = len(line.words)
                    yield from line.words[word_index:stop]
                elif li == last:
                    stop = end.index_in_page - line.word_start_index + 1
                    yield from line.words[:stop]
                else:
                    yield from line.words
            return

        # Several blocks
        for b in range(start.text_block_index, end.text_block_index + 1):
            block = self.blocks[b]
            line_start_index = block.lines[0].index_in_page

            if b == start.text_block_index:
                first = start.text_line_index - line_start_index
                for li in range(first, len(block.lines)):
                    line = block.lines[li]
                    if li == first:
                        yield from line.words[start.index_in_page - line.word_start_index:]
                    else:
                        yield from line.words
            elif b == end.text_block_index:
                last = end.text_line_index - line_start_index
                for li in range(last + 1):
                    line = block.lines[li]
                    if li == last:
                        yield from line.words[:end.index_in_page - line.word_start_index + 1]
                    else:
                        yield from line.words
            else:
                yield from block.iter_words()

    def get_selection_text(
        self,
        start: Word,
        end: Word,
        start_letter: int = -1,
        end_letter: int = -1,
    ) -> str:
        """
        Text of a selection from ``start`` to ``end``.

        ``start_letter`` / ``end_letter`` cut the first / last word at letter
        granularity (-1 keeps the whole word). Words on a line are joined by
        spaces, lines by newlines and blocks by a blank line.
        """
        parts: List[str] = []
        previous: Optional[Word] = None

        for word in self.get_words(start, end):
            value = word.value
            first_letter = start_letter if word is start and start_letter >= 0 else 0
            last_letter = end_letter if word is end and end_letter >= 0 else word.count - 1
            if first_letter > 0 or last_letter < word.count - 1:
                char_start = word.letter_char_span(first_letter)[0]
                char_end = word.letter_char_span(last_letter)[1]
                value = value[char_start:char_end]

            if previous is not None:
                if word.text_block_index != previous.text_block_index:
                    parts.append('\n\n')
                elif word.text_line_index != previous.text_line_index:
                    parts.append('\n')
                else:
                    parts.append(' ')
            parts.append(value)
            previous = word

        return ''.join(parts)
