import unittest
from datetime import datetime, timezone

from blame_parser import UNCOMMITTED_LABEL, UNCOMMITTED_SHA, ParseError, parse_porcelain
from porcelain_samples import (
    INTERLEAVED,
    SAME_TIME,
    SHA_A,
    SHA_B,
    SHA_C,
    T1,
    T2,
    THREE_LINES,
    WITH_UNCOMMITTED,
    commit_header,
)


class TestParsePorcelain(unittest.TestCase):
    def test_three_lines(self):
        snapshot = parse_porcelain(THREE_LINES)

        self.assertEqual(snapshot.lines, ("line one", "line two", "line three"))
        self.assertEqual([c.sha for c in snapshot.sorted_commits], [SHA_B, SHA_A])
        line_commits = snapshot.line_commits
        self.assertEqual({i: c.sha for i, c in line_commits.items()}, {0: SHA_B, 1: SHA_B, 2: SHA_A})

    def test_commit_metadata(self):
        snapshot = parse_porcelain(THREE_LINES)
        commit = snapshot.commits[SHA_B]

        self.assertEqual(commit.author, "Bob")
        self.assertEqual(commit.author_mail, "bob@example.com")
        self.assertEqual(commit.author_time, datetime.fromtimestamp(T2, tz=timezone.utc))
        self.assertEqual(commit.summary, "Rework greeting (#12)")
        self.assertEqual(commit.short_sha, "bbbbbbb")

    def test_line_count_matches_tab_lines(self):
        for raw in (THREE_LINES, INTERLEAVED, WITH_UNCOMMITTED, SAME_TIME):
            snapshot = parse_porcelain(raw)
            tab_lines = [line for line in raw.split("\n") if line.startswith("\t")]
            self.assertEqual(snapshot.line_count, len(tab_lines))
            self.assertEqual(set(snapshot.line_commits), set(range(len(tab_lines))))

    def test_repeated_commit_shares_interned_object(self):
        snapshot = parse_porcelain(INTERLEAVED)

        self.assertIs(snapshot.commit_at(0), snapshot.commit_at(2))
        # the second occurrence has no metadata but keeps what the first one set
        self.assertEqual(snapshot.commit_at(2).author, "Bob")
        self.assertEqual(len(snapshot.commits), 2)
        self.assertEqual(snapshot.line_shas, (SHA_B, SHA_A, SHA_B))

    def test_uncommitted_lines(self):
        snapshot = parse_porcelain(WITH_UNCOMMITTED)

        uncommitted = snapshot.commit_at(1)
        self.assertEqual(uncommitted.sha, UNCOMMITTED_SHA)
        self.assertTrue(uncommitted.is_uncommitted)
        self.assertEqual(uncommitted.author, UNCOMMITTED_LABEL)
        self.assertEqual([c.sha for c in snapshot.sorted_commits], [SHA_A])
        self.assertEqual(snapshot.newest_commit.sha, SHA_A)

    def test_stable_order_for_equal_times(self):
        snapshot = parse_porcelain(SAME_TIME)
        self.assertEqual([c.sha for c in snapshot.sorted_commits], [SHA_B, SHA_A, SHA_C])

    def test_empty_input(self):
        for raw in ("", "\n"):
            snapshot = parse_porcelain(raw)
            self.assertEqual(snapshot.lines, ())
            self.assertEqual(snapshot.line_commits, {})
            self.assertEqual(snapshot.sorted_commits, ())
            self.assertIsNone(snapshot.newest_commit)
            self.assertIsNone(snapshot.commit_at(0))

    def test_invalid_author_time(self):
        raw = commit_header(SHA_A, 1, 1, 1).replace(f"author-time {T1}", "author-time yesterday") + "\n\tx\n"
        with self.assertRaises(ParseError):
            parse_porcelain(raw)

    def test_content_before_header(self):
        with self.assertRaises(ParseError):
            parse_porcelain("\torphan line\n")

    def test_content_keeps_inner_tabs_and_spaces(self):
        raw = commit_header(SHA_A, 1, 1, 1) + "\n\t\tindented  text \n"
        snapshot = parse_porcelain(raw)
        self.assertEqual(snapshot.lines, ("\tindented  text ",))

    def test_revision_and_lookups(self):
        snapshot = parse_porcelain(INTERLEAVED, revision=SHA_B)

        self.assertEqual(snapshot.revision, SHA_B)
        self.assertEqual(snapshot.first_line_of(SHA_A), 1)
        self.assertIsNone(snapshot.first_line_of(SHA_C))
        self.assertEqual(snapshot.recency_rank(SHA_A), 1)


if __name__ == "__main__":
    unittest.main()
