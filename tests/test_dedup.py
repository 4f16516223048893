import unittest
import sys
import os

# Add parent directory to path to allow importing modules from root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer.errors import CancellationToken, OperationCancelled
from textlayer.layout import DedupConfig, GlyphDeduplicator, remove_duplicate_glyphs

from glyph_factory import make_glyph, make_line


class TestGlyphDeduplicator(unittest.TestCase):
    def test_same_value_within_tolerance(self):
        # Fake bold: the same 'A' painted twice, 0.5pt apart (tolerance 5 / 3)
        first = make_glyph('A', 10, 100, seq=0)
        second = make_glyph('A', 10.5, 100.5, seq=1)
        kept = remove_duplicate_glyphs([first, second])
        self.assertEqual(kept, [first])

    def test_different_values_overlapping(self):
        a = make_glyph('A', 10, 100, seq=0)
        b = make_glyph('B', 10, 100, seq=1)
        self.assertEqual(remove_duplicate_glyphs([a, b]), [a, b])

    def test_same_value_outside_tolerance(self):
        # "ll" in a word: same value, one letter width apart
        first = make_glyph('l', 10, 100, seq=0)
        second = make_glyph('l', 15, 100, seq=1)
        self.assertEqual(remove_duplicate_glyphs([first, second]), [first, second])

    def test_empty(self):
        self.assertEqual(remove_duplicate_glyphs([]), [])

    def test_order_preserved(self):
        line = make_line(["hello", "world"], 0, 50)
        shadow = [make_glyph(g.value, g.start_baseline.x + 0.3, 50.3, width=g.width, seq=100 + i)
                  for i, g in enumerate(line)]
        # Shadows interleaved after each original
        painted = [g for pair in zip(line, shadow) for g in pair]
        kept = remove_duplicate_glyphs(painted)
        self.assertEqual(kept, line)

    def test_first_occurrence_wins(self):
        shadow = make_glyph('x', 0.2, 50, seq=0)
        original = make_glyph('x', 0, 50, seq=1)
        self.assertEqual(remove_duplicate_glyphs([shadow, original]), [shadow])

    def test_output_duplicate_free(self):
        glyphs = [make_glyph('o', 0.1 * i, 50, seq=i) for i in range(30)]
        dedup = GlyphDeduplicator()
        kept = dedup.deduplicate(glyphs)
        for i, a in enumerate(kept):
            for b in kept[i + 1:]:
                tolerance = dedup.tolerance(b)
                close = (abs(a.start_baseline.x - b.start_baseline.x) <= tolerance
                         and abs(a.start_baseline.y - b.start_baseline.y) <= tolerance)
                self.assertFalse(close)

    def test_ligature_tolerance(self):
        # 'ffi' ligature: tolerance scales with the per-character width
        dedup = GlyphDeduplicator()
        ligature = make_glyph('ffi', 0, 10, width=12)
        self.assertAlmostEqual(dedup.tolerance(ligature), 12 / 3 / 3)

    def test_custom_divisor(self):
        loose = GlyphDeduplicator(DedupConfig(tolerance_divisor=1.0))
        first = make_glyph('A', 10, 100, seq=0)
        second = make_glyph('A', 13, 100, seq=1)
        self.assertEqual(loose.deduplicate([first, second]), [first])

    def test_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(OperationCancelled):
            remove_duplicate_glyphs(make_line(["abc"], 0, 10), token)


if __name__ == '__main__':
    unittest.main()
