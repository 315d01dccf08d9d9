import unittest

from blame_colors import assign_colors, author_color, interpolate, recency_shade
from blame_parser import parse_porcelain
from porcelain_samples import SHA_A, SHA_B, THREE_LINES, WITH_UNCOMMITTED, ZERO_SHA

DARK = (192, 203, 229)
LIGHT = (255, 255, 255)
UNCOMMITTED = (255, 236, 179)


class TestAuthorColor(unittest.TestCase):
    def test_same_name_same_color(self):
        self.assertEqual(author_color("Alice"), author_color("Alice"))

    def test_known_digest_bytes(self):
        # md5("Alice") starts with 64 48 9c
        self.assertEqual(author_color("Alice"), (0x64, 0x48, 0x9C))

    def test_channels_in_range(self):
        for name in ("", "Bob", "Zoë", "uncommitted"):
            r, g, b = author_color(name)
            for channel in (r, g, b):
                self.assertTrue(0 <= channel <= 255)


class TestRecencyShade(unittest.TestCase):
    def test_anchors_are_exact(self):
        self.assertEqual(recency_shade(0, 5, DARK, LIGHT), DARK)
        self.assertEqual(recency_shade(4, 5, DARK, LIGHT), LIGHT)

    def test_single_commit_takes_dark_anchor(self):
        self.assertEqual(recency_shade(0, 1, DARK, LIGHT), DARK)

    def test_monotonic_per_channel(self):
        count = 7
        shades = [recency_shade(rank, count, DARK, LIGHT) for rank in range(count)]
        for channel in range(3):
            values = [shade[channel] for shade in shades]
            self.assertEqual(values, sorted(values))

    def test_monotonic_when_anchor_channel_decreases(self):
        dark, light = (200, 10, 100), (20, 250, 100)
        shades = [recency_shade(rank, 5, dark, light) for rank in range(5)]
        self.assertEqual([s[0] for s in shades], sorted((s[0] for s in shades), reverse=True))
        self.assertEqual([s[1] for s in shades], sorted(s[1] for s in shades))
        self.assertEqual({s[2] for s in shades}, {100})

    def test_interpolate_midpoint(self):
        self.assertEqual(interpolate((0, 0, 0), (100, 200, 255), 0.5), (50, 100, 128))


class TestAssignColors(unittest.TestCase):
    def test_newest_commit_takes_dark_anchor(self):
        snapshot = assign_colors(parse_porcelain(THREE_LINES), DARK, LIGHT, UNCOMMITTED)

        self.assertEqual(snapshot.commits[SHA_B].color, DARK)
        self.assertEqual(snapshot.commits[SHA_A].color, LIGHT)
        self.assertEqual(snapshot.commits[SHA_B].author_color, author_color("Bob"))

    def test_uncommitted_uses_fixed_color(self):
        snapshot = assign_colors(parse_porcelain(WITH_UNCOMMITTED), DARK, LIGHT, UNCOMMITTED)

        self.assertEqual(snapshot.commits[ZERO_SHA].color, UNCOMMITTED)
        # the only committed commit is rank 0 of a gradient of one
        self.assertEqual(snapshot.commits[SHA_A].color, DARK)


def distance(color, anchor):
    return sum(abs(c - a) for c, a in zip(color, anchor))


class TestThreeLineFile(unittest.TestCase):
    """Lines 0-1 by B (newer), line 2 by A (older)."""

    def setUp(self):
        self.snapshot = assign_colors(parse_porcelain(THREE_LINES), DARK, LIGHT, UNCOMMITTED)
        self.commit_b = self.snapshot.commits[SHA_B]
        self.commit_a = self.snapshot.commits[SHA_A]

    def test_commits_and_lines(self):
        self.assertLess(self.commit_a.author_time, self.commit_b.author_time)
        self.assertEqual([c.sha for c in self.snapshot.sorted_commits], [SHA_B, SHA_A])
        self.assertEqual(
            {index: commit.sha for index, commit in self.snapshot.line_commits.items()},
            {0: SHA_B, 1: SHA_B, 2: SHA_A},
        )

    def test_newer_commit_is_dark_biased(self):
        # rank 0 (newest) takes the dark anchor, the oldest the light one
        self.assertLess(distance(self.commit_b.color, DARK), distance(self.commit_b.color, LIGHT))
        self.assertLess(distance(self.commit_a.color, LIGHT), distance(self.commit_a.color, DARK))


if __name__ == "__main__":
    unittest.main()
