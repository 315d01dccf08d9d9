import unittest

from revision_navigator import NavigationBoundary, RevisionNavigator

ZERO_SHA = "0" * 40
HISTORY = ["c3" * 20, "c2" * 20, "c1" * 20]  # newest first
C3, C2, C1 = HISTORY


class TestFileRevisions(unittest.TestCase):
    def setUp(self):
        self.navigator = RevisionNavigator(HISTORY)

    def test_previous_steps_into_the_past(self):
        self.assertEqual(self.navigator.previous_file_revision(C3), C2)
        self.assertEqual(self.navigator.previous_file_revision(C2), C1)

    def test_next_steps_toward_the_present(self):
        self.assertEqual(self.navigator.next_file_revision(C1), C2)
        self.assertEqual(self.navigator.next_file_revision(C2), C3)

    def test_previous_from_oldest_is_boundary(self):
        with self.assertRaisesRegex(NavigationBoundary, "oldest revision reached"):
            self.navigator.previous_file_revision(C1)

    def test_next_from_newest_is_boundary(self):
        with self.assertRaisesRegex(NavigationBoundary, "youngest revision reached"):
            self.navigator.next_file_revision(C3)

    def test_unknown_revision_is_boundary(self):
        with self.assertRaises(NavigationBoundary):
            self.navigator.previous_file_revision("f" * 40)
        with self.assertRaises(NavigationBoundary):
            self.navigator.next_file_revision("f" * 40)

    def test_properties(self):
        self.assertEqual(len(self.navigator), 3)
        self.assertEqual(self.navigator.newest, C3)
        self.assertEqual(self.navigator.oldest, C1)
        self.assertTrue(self.navigator.contains(C2))
        self.assertFalse(self.navigator.contains("f" * 40))

    def test_empty_history(self):
        navigator = RevisionNavigator([])
        self.assertIsNone(navigator.newest)
        with self.assertRaises(NavigationBoundary):
            navigator.previous_file_revision(C1)


class TestLineRevisions(unittest.TestCase):
    def setUp(self):
        parents = {C3: C2, C2: C1, C1: None, "d" * 40: C1}
        self.lookups = []

        def parent_lookup(sha):
            self.lookups.append(sha)
            return parents[sha]

        self.navigator = RevisionNavigator(HISTORY, parent_lookup)

    def test_before_line_is_parent(self):
        self.assertEqual(self.navigator.revision_before_line(C3), C2)
        self.assertEqual(self.lookups, [C3])

    def test_before_line_does_not_need_history(self):
        # e.g. a commit reached through a rename that the history does not list
        self.assertEqual(self.navigator.revision_before_line("d" * 40), C1)

    def test_before_root_commit_is_boundary(self):
        with self.assertRaisesRegex(NavigationBoundary, "no revision before"):
            self.navigator.revision_before_line(C1)

    def test_before_uncommitted_line_is_newest_revision(self):
        self.assertEqual(self.navigator.revision_before_line(ZERO_SHA), C3)
        self.assertEqual(self.lookups, [])

    def test_after_line_is_newer_entry(self):
        self.assertEqual(self.navigator.revision_after_line(C1), C2)

    def test_after_newest_is_boundary(self):
        with self.assertRaises(NavigationBoundary):
            self.navigator.revision_after_line(C3)

    def test_after_uncommitted_is_boundary(self):
        with self.assertRaises(NavigationBoundary):
            self.navigator.revision_after_line(ZERO_SHA)

    def test_after_unknown_is_boundary(self):
        with self.assertRaises(NavigationBoundary):
            self.navigator.revision_after_line("e" * 40)

    def test_before_oldest_revision_skips_lookup(self):
        with self.assertRaisesRegex(NavigationBoundary, "no revision before"):
            self.navigator.revision_before_line(C1)
        self.assertEqual(self.lookups, [])

    def test_before_line_without_lookup_uses_history(self):
        navigator = RevisionNavigator(HISTORY)
        self.assertEqual(navigator.revision_before_line(C2), C1)

    def test_known_revision_before_line(self):
        self.assertIsNone(self.navigator.known_revision_before_line(C3))
        self.assertEqual(self.navigator.known_revision_before_line(ZERO_SHA), C3)
        with self.assertRaises(NavigationBoundary):
            self.navigator.known_revision_before_line(C1)
        self.assertEqual(self.lookups, [])

    def test_remembered_parents_skip_lookup(self):
        self.navigator.remember_parent(C3, C2)
        self.navigator.remember_parent("d" * 40, None)

        self.assertEqual(self.navigator.known_revision_before_line(C3), C2)
        self.assertEqual(self.navigator.revision_before_line(C3), C2)
        with self.assertRaisesRegex(NavigationBoundary, "no revision before ddddddd"):
            self.navigator.known_revision_before_line("d" * 40)
        self.assertEqual(self.lookups, [])


if __name__ == "__main__":
    unittest.main()
