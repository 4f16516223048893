import unittest
import sys
import os
import random

# Add parent directory to path to allow importing modules from root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer.clustering import ClusteringConfig, NearestNeighbourClustering
from textlayer.layout import NearestNeighbourWordExtractor, WordExtractorConfig, order_letters
from textlayer.text_pool import TextPool
from textlayer.types import Point, TextOrientation

from glyph_factory import make_glyph, make_line, make_rotated_line, make_paragraph


def values(words):
    return sorted(w.value for w in words)


class TestWordExtractor(unittest.TestCase):
    def setUp(self):
        self.extractor = NearestNeighbourWordExtractor()

    def test_simple_line(self):
        words = self.extractor.get_words(make_line(["Hello", "world"], 10, 100))
        self.assertEqual(values(words), ["Hello", "world"])
        for word in words:
            self.assertIs(word.orientation, TextOrientation.HORIZONTAL)
            for letter in word.letters:
                self.assertTrue(word.bbox.contains_rect(letter.bbox))

    def test_no_space_glyphs(self):
        # Gap of 2.5pt is wider than 0.2 * 5pt, so the words still split
        words = self.extractor.get_words(make_line(["one", "two"], 0, 50, with_spaces=False))
        self.assertEqual(values(words), ["one", "two"])

    def test_letters_in_reading_order(self):
        glyphs = make_line(["reading"], 0, 50)
        shuffled = list(glyphs)
        random.Random(2).shuffle(shuffled)
        words = self.extractor.get_words(shuffled)
        self.assertEqual(len(words), 1)
        self.assertEqual(words[0].value, "reading")

    def test_font_change_splits(self):
        glyphs = make_line(["bold"], 0, 50, font="Bold") + make_line(["face"], 20, 50, font="Body")
        words = self.extractor.get_words(glyphs)
        self.assertEqual(values(words), ["bold", "face"])

    def test_font_change_ignored_when_disabled(self):
        glyphs = make_line(["bold"], 0, 50, font="Bold") + make_line(["face"], 20, 50, font="Body")
        extractor = NearestNeighbourWordExtractor(WordExtractorConfig(match_font=False))
        self.assertEqual(values(extractor.get_words(glyphs)), ["boldface"])

    def test_size_mismatch_splits(self):
        big = make_glyph('A', 0, 50, seq=0, size=30)
        small = make_glyph('b', 5, 50, seq=1, size=10)
        self.assertEqual(values(self.extractor.get_words([big, small])), ["A", "b"])

    def test_stroke_mismatch_splits(self):
        filled = make_glyph('A', 0, 50, seq=0)
        outlined = make_glyph('b', 5, 50, seq=1)
        outlined.is_stroke = True
        self.assertEqual(values(self.extractor.get_words([filled, outlined])), ["A", "b"])

    def test_whitespace_only_clusters_dropped(self):
        glyphs = [make_glyph(' ', 0, 50, seq=0), make_glyph(' ', 5, 50, seq=1)]
        self.assertEqual(self.extractor.get_words(glyphs), [])

    def test_empty(self):
        self.assertEqual(self.extractor.get_words([]), [])

    def test_separate_lines(self):
        glyphs = make_paragraph([["top"], ["bottom"]], 0, 50)
        self.assertEqual(values(self.extractor.get_words(glyphs)), ["bottom", "top"])

    def test_orientation_groups_in_order(self):
        rotated = make_rotated_line(["up"], Point(300, 300), -90)
        upright = make_line(["flat"], 0, 50)
        words = self.extractor.get_words(rotated + upright)
        # Horizontal words come before Rotate90 words
        self.assertEqual([w.value for w in words], ["flat", "up"])
        self.assertIs(words[1].orientation, TextOrientation.ROTATE90)

    def test_rotated_words(self):
        for rotation in (180, 90, 25):
            glyphs = make_rotated_line(["spin", "me"], Point(200, 200), rotation)
            words = self.extractor.get_words(glyphs)
            self.assertEqual(values(words), ["me", "spin"], rotation)

    def test_zero_width_glyphs_use_point_size(self):
        # Zero width: max gap falls back to 0.2 * (0.5 * size) = 1pt
        a = make_glyph('a', 0, 50, width=0, seq=0)
        b = make_glyph('b', 0.5, 50, width=0, seq=1)
        # The left edge still says upright
        self.assertIs(a.orientation, TextOrientation.HORIZONTAL)
        strategy = self.extractor.strategy
        self.assertAlmostEqual(strategy.max_distance(a, b), 1.0)

    def test_text_pool_interning(self):
        pool = TextPool()
        extractor = NearestNeighbourWordExtractor(text_pool=pool)
        glyphs = make_paragraph([["same"], ["same"]], 0, 50)
        words = extractor.get_words(glyphs)
        self.assertEqual(len(words), 2)
        self.assertIs(words[0].value, words[1].value)
        self.assertIn("same", pool)

    def test_parallel_and_k_nearest(self):
        glyphs = make_paragraph([["alpha", "beta", "gamma"]] * 30, 0, 50)
        sequential = NearestNeighbourWordExtractor()
        parallel = NearestNeighbourWordExtractor(
            WordExtractorConfig(k=2),
            NearestNeighbourClustering(ClusteringConfig(max_workers=4, chunk_size=64)),
        )
        self.assertEqual(values(sequential.get_words(glyphs)), values(parallel.get_words(glyphs)))
        self.assertEqual(len(sequential.get_words(glyphs)), 90)


class TestOrderLetters(unittest.TestCase):
    def test_other_orientation_uses_paint_order(self):
        glyphs = make_rotated_line(["abc"], Point(0, 0), 40)
        self.assertEqual(order_letters(list(reversed(glyphs))), glyphs)

    def test_axis_aligned_uses_position(self):
        glyphs = make_rotated_line(["abc"], Point(100, 100), 180)
        # Paint order reversed, position decides
        for seq, glyph in enumerate(reversed(glyphs)):
            glyph.text_sequence = seq
        self.assertEqual(order_letters(glyphs[::-1]), glyphs)


if __name__ == '__main__':
    unittest.main()
