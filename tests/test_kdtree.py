import unittest
import sys
import os
import random

# Add parent directory to path to allow importing modules from root
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer.errors import EmptyIndexError
from textlayer.spatial import KdTree, euclidean, manhattan
from textlayer.types import Point


class Item:
    def __init__(self, x, y):
        self.point = Point(x, y)

    def __repr__(self):
        return f"Item{tuple(self.point)}"


def brute_force(items, query, exclude, distance=euclidean):
    keyed = []
    for i, item in enumerate(items):
        if item is exclude:
            continue
        keyed.append((distance(query, item.point), item.point.x, item.point.y, i))
    return sorted(keyed)


class TestKdTreeBuild(unittest.TestCase):
    def test_empty_raises(self):
        with self.assertRaises(EmptyIndexError):
            KdTree([], lambda item: item.point)
        # Also a ValueError for callers that do not know the package errors
        with self.assertRaises(ValueError):
            KdTree([], lambda item: item.point)

    def test_single_and_pair(self):
        a = Item(1, 1)
        tree = KdTree([a], lambda item: item.point)
        self.assertTrue(tree.root.is_leaf)
        self.assertEqual(tree.depth(), 1)

        b = Item(3, 0)
        tree = KdTree([b, a], lambda item: item.point)
        # Node holds the larger x, the smaller one is its only child
        self.assertIs(tree.root.entry.element, b)
        self.assertIs(tree.root.left.entry.element, a)
        self.assertIsNone(tree.root.right)
        self.assertEqual(len(tree), 2)

    def test_balanced_depth(self):
        rng = random.Random(3)
        items = [Item(rng.uniform(0, 100), rng.uniform(0, 100)) for _ in range(1000)]
        tree = KdTree(items, lambda item: item.point)
        # Median splits keep the height logarithmic
        self.assertLessEqual(tree.depth(), 11)


class TestKdTreeQueries(unittest.TestCase):
    def setUp(self):
        rng = random.Random(11)
        # Integer coordinates produce plenty of distance ties
        self.items = [Item(rng.randint(0, 30), rng.randint(0, 30)) for _ in range(300)]
        self.tree = KdTree(self.items, lambda item: item.point)

    def test_nearest_matches_brute_force(self):
        for item in self.items:
            hit = self.tree.nearest(item.point, exclude=item)
            expected = brute_force(self.items, item.point, item)[0]
            self.assertAlmostEqual(hit.distance, expected[0])
            self.assertEqual(hit.index, expected[3])
            self.assertIsNot(hit.element, item)

    def test_nearest_with_manhattan(self):
        query = Point(12.5, 7.25)
        hit = self.tree.nearest(query, manhattan)
        expected = brute_force(self.items, query, None, manhattan)[0]
        self.assertAlmostEqual(hit.distance, expected[0])
        self.assertEqual(hit.index, expected[3])

    def test_nearest_only_excluded_element(self):
        a = Item(5, 5)
        tree = KdTree([a], lambda item: item.point)
        self.assertIsNone(tree.nearest(a.point, exclude=a))

    def test_k_nearest_matches_brute_force(self):
        for item in self.items[:60]:
            hits = self.tree.k_nearest(item.point, 3, exclude=item)
            expected = brute_force(self.items, item.point, item)
            radius = expected[2][0]
            expected_indexes = [e[3] for e in expected if e[0] <= radius]

            self.assertEqual([h.index for h in hits], expected_indexes)
            distances = [h.distance for h in hits]
            self.assertEqual(distances, sorted(distances))
            self.assertGreaterEqual(len(hits), 3)

    def test_k_nearest_keeps_ties(self):
        centre = Item(0, 0)
        ring = [Item(1, 0), Item(0, 1), Item(-1, 0), Item(0, -1)]
        far = [Item(5, 5), Item(-4, 3)]
        items = [centre] + ring + far
        tree = KdTree(items, lambda item: item.point)

        hits = tree.k_nearest(centre.point, 2, exclude=centre)
        # All four ring members share the 2nd distance
        self.assertEqual(len(hits), 4)
        self.assertEqual({id(h.element) for h in hits}, {id(r) for r in ring})
        # Ties ordered by x, then y
        self.assertEqual([tuple(h.element.point) for h in hits], [(-1, 0), (0, -1), (0, 1), (1, 0)])

    def test_k_nearest_more_than_available(self):
        items = [Item(0, 0), Item(1, 1), Item(2, 2)]
        tree = KdTree(items, lambda item: item.point)
        hits = tree.k_nearest(Point(0, 0), 10, exclude=items[0])
        self.assertEqual([h.index for h in hits], [1, 2])

    def test_k_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.tree.k_nearest(Point(0, 0), 0)

    def test_result_independent_of_input_order(self):
        query = Point(15, 15)
        shuffled = list(self.items)
        random.Random(5).shuffle(shuffled)
        other = KdTree(shuffled, lambda item: item.point)

        first = self.tree.nearest(query)
        second = other.nearest(query)
        self.assertEqual(tuple(first.element.point), tuple(second.element.point))
        self.assertAlmostEqual(first.distance, second.distance)


if __name__ == '__main__':
    unittest.main()
