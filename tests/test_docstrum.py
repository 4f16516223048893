import unittest
import sys
import os

# Add parent directory to path to allow importing modules from root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer import build_text_layer
from textlayer.errors import CancellationToken, OperationCancelled
from textlayer.layout import (
    DocstrumConfig,
    DocstrumLayoutAnalyzer,
    NearestNeighbourWordExtractor,
    estimate_spacing,
    group_words,
    overlap_fraction,
    split_by_rotation,
)
from textlayer.types import Point, TextOrientation, frame_from_rotation

from glyph_factory import (
    CHAR_WIDTH, LINE_PITCH, SPACE_WIDTH, Sequencer,
    make_paragraph, make_rotated_glyph, make_rotated_line, two_paragraph_page,
)


def words_of(glyphs):
    return NearestNeighbourWordExtractor().get_words(glyphs)


def block_texts(blocks):
    return [block.text for block in blocks]


def slanted_word(text, origin, rotation, sequencer):
    """Letters of one word laid along ``rotation`` starting at ``origin``."""
    direction, _ = frame_from_rotation(rotation)
    return [make_rotated_glyph(char, origin.add(direction.scale(i * CHAR_WIDTH)), rotation,
                               seq=sequencer.next())
            for i, char in enumerate(text)]


class TestSpacingEstimation(unittest.TestCase):
    def test_paragraph_spacing(self):
        words = words_of(make_paragraph([["alpha", "beta", "gamma"]] * 4, 0, 100))
        groups = group_words(words, DocstrumConfig())
        self.assertEqual(len(groups), 1)

        spacing = estimate_spacing(groups[0], DocstrumConfig())
        # 14pt pitch with 10pt tall words leaves a 4pt gap between lines
        self.assertAlmostEqual(spacing.between_line, 4.0)
        self.assertGreater(spacing.between_samples, 0)
        self.assertEqual(spacing.word_count, 12)
        self.assertIn("horizontal", spacing.summary())

    def test_single_word_falls_back_to_height(self):
        words = words_of(make_paragraph([["lonely"]], 0, 100))
        spacing = estimate_spacing(group_words(words, DocstrumConfig())[0], DocstrumConfig())
        self.assertAlmostEqual(spacing.within_line, 10 * 0.25)
        self.assertAlmostEqual(spacing.between_line, 10 * 0.3)
        self.assertEqual(spacing.within_samples, 0)

    def test_other_words_split_by_rotation(self):
        glyphs = (make_rotated_line(["tilt", "ed"], Point(100, 100), 30)
                  + make_rotated_line(["more"], Point(100, 300), 60))
        groups = group_words(words_of(glyphs), DocstrumConfig())
        self.assertEqual(len(groups), 2)
        for group in groups:
            self.assertIs(group.orientation, TextOrientation.OTHER)
        self.assertAlmostEqual(groups[0].frame.rotation, 30, places=4)
        self.assertAlmostEqual(groups[1].frame.rotation, 60, places=4)

    def test_nearby_rotations_share_a_group(self):
        sequencer = Sequencer()
        glyphs = (slanted_word("up", Point(100, 100), 1.0, sequencer)
                  + slanted_word("down", Point(100, 200), -1.0, sequencer))
        groups = group_words(words_of(glyphs), DocstrumConfig())
        self.assertEqual(len(groups), 1)
        self.assertEqual(len(groups[0].words), 2)

    def test_split_by_rotation(self):
        sequencer = Sequencer()
        words = words_of([glyph for i, rotation in enumerate([36, 30, 45, 33])
                          for glyph in slanted_word("ab", Point(100, 100 + 50 * i), rotation, sequencer)])
        groups = split_by_rotation(words, 5.0)
        rotations = [[round(w.bbox.rotation) for w in group] for group in groups]
        self.assertEqual(rotations, [[30, 33, 36], [45]])
        self.assertEqual(split_by_rotation([], 5.0), [])

    def test_overlap_fraction(self):
        self.assertAlmostEqual(overlap_fraction((0, 10), (5, 30)), 0.5)
        self.assertEqual(overlap_fraction((0, 10), (20, 30)), 0.0)
        self.assertEqual(overlap_fraction((0, 0), (0, 5)), 1.0)


class TestDocstrumLayoutAnalyzer(unittest.TestCase):
    def setUp(self):
        self.analyzer = DocstrumLayoutAnalyzer()

    def test_two_paragraphs(self):
        blocks = self.analyzer.get_blocks(words_of(two_paragraph_page()))
        self.assertEqual(len(blocks), 2)
        expected = "\n".join(["alpha beta gamma"] * 3)
        self.assertEqual(block_texts(blocks), [expected, expected])
        # Upper paragraph first
        self.assertLess(blocks[0].bbox.top, blocks[1].bbox.top)

    def test_lines_ordered_and_contained(self):
        blocks = self.analyzer.get_blocks(words_of(two_paragraph_page()))
        for block in blocks:
            tops = [line.bbox.top for line in block.lines]
            self.assertEqual(tops, sorted(tops))
            for line in block.lines:
                self.assertTrue(block.bbox.contains_rect(line.bbox))
                xs = [w.bbox.bottom_left.x for w in line.words]
                self.assertEqual(xs, sorted(xs))
                for word in line.words:
                    self.assertTrue(line.bbox.contains_rect(word.bbox))

    def test_two_columns(self):
        sequencer = Sequencer()
        left = make_paragraph([["left", "column"]] * 3, 50, 100, sequencer)
        right = make_paragraph([["right", "side"]] * 3, 300, 100, sequencer)
        blocks = self.analyzer.get_blocks(words_of(right + left))
        self.assertEqual(len(blocks), 2)
        # Same top: left column first
        self.assertTrue(blocks[0].text.startswith("left column"))
        self.assertTrue(blocks[1].text.startswith("right side"))

    def test_heading_gap(self):
        sequencer = Sequencer()
        glyphs = make_paragraph([["Heading"]], 0, 60, sequencer)
        glyphs += make_paragraph([["body", "text", "here"]] * 3, 0, 60 + 3 * LINE_PITCH, sequencer)
        blocks = self.analyzer.get_blocks(words_of(glyphs))
        self.assertEqual(block_texts(blocks)[0], "Heading")
        self.assertEqual(len(blocks), 2)

    def test_rotated_paragraph(self):
        rotation = 30
        _, up = frame_from_rotation(rotation)
        glyphs = []
        sequencer = Sequencer()
        for i in range(3):
            origin = Point(100, 100).add(up.scale(-LINE_PITCH * i))
            glyphs += make_rotated_line(["slanted", "text"], origin, rotation, sequencer)

        blocks = self.analyzer.get_blocks(words_of(glyphs))
        self.assertEqual(len(blocks), 1)
        self.assertIs(blocks[0].orientation, TextOrientation.OTHER)
        self.assertEqual(blocks[0].text, "\n".join(["slanted text"] * 3))
        for line in blocks[0].lines:
            for word in line.words:
                self.assertTrue(line.bbox.contains_rect(word.bbox))

    def test_slanted_line_across_angle_boundary(self):
        # Words a fraction of a degree apart either side of 32.5 degrees
        sequencer = Sequencer()
        direction, _ = frame_from_rotation(32.5)
        origin = Point(100, 300)
        glyphs = slanted_word("alpha", origin, 32.4, sequencer)
        glyphs += slanted_word("beta", origin.add(direction.scale(5 * CHAR_WIDTH + SPACE_WIDTH)), 32.6,
                               sequencer)

        layer = build_text_layer(glyphs)
        self.assertEqual(len(layer.blocks), 1)
        self.assertEqual(len(layer.lines), 1)
        self.assertEqual(layer.text, "alpha beta")

    def test_spacing_estimates_reported(self):
        estimates = []
        self.analyzer.get_blocks(words_of(two_paragraph_page()), estimates=estimates)
        self.assertEqual(len(estimates), 1)
        self.assertIs(estimates[0].orientation, TextOrientation.HORIZONTAL)

    def test_empty(self):
        self.assertEqual(self.analyzer.get_blocks([]), [])

    def test_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(OperationCancelled):
            self.analyzer.get_blocks(words_of(two_paragraph_page()), token)


if __name__ == '__main__':
    unittest.main()
