import logging
from typing import Callable, Dict, Optional, Sequence

from blame_parser import UNCOMMITTED_SHA


class NavigationBoundary(Exception):
    """已到达历史的边界（最老或最新的 revision）"""


class RevisionNavigator:
    """Walks the file's revision history.

    ``history`` is ordered newest first and never changes during a session.
    ``parent_lookup`` returns the parent sha of a commit, or None for a root
    commit; it may run git, so ``revision_before_line`` belongs in a
    background thread unless ``known_revision_before_line`` answers first.
    """

    def __init__(self, history: Sequence[str], parent_lookup: Optional[Callable[[str], Optional[str]]] = None):
        self.history = tuple(history)
        self.parent_lookup = parent_lookup
        self._positions = {sha: index for index, sha in enumerate(self.history)}
        # parents found by earlier lookups, filled on the Qt event loop
        self._parents: Dict[str, Optional[str]] = {}

    def __len__(self):
        return len(self.history)

    @property
    def newest(self) -> Optional[str]:
        return self.history[0] if self.history else None

    @property
    def oldest(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def contains(self, sha: str) -> bool:
        return sha in self._positions

    def _position(self, sha: str) -> int:
        position = self._positions.get(sha)
        if position is None:
            logging.debug("revision %s not found in file history", sha)
            raise NavigationBoundary(f"revision {sha[:7]} is not in the file history")
        return position

    def previous_file_revision(self, current_sha: str) -> str:
        """一步往过去走"""
        position = self._position(current_sha)
        if position == len(self.history) - 1:
            raise NavigationBoundary("oldest revision reached")
        return self.history[position + 1]

    def next_file_revision(self, current_sha: str) -> str:
        """一步往现在走"""
        position = self._position(current_sha)
        if position == 0:
            raise NavigationBoundary("youngest revision reached")
        return self.history[position - 1]

    def revision_before_line(self, line_sha: str) -> str:
        """The revision right before the commit that last touched a line."""
        if line_sha == UNCOMMITTED_SHA:
            if not self.history:
                raise NavigationBoundary("no committed revision")
            return self.history[0]
        if line_sha == self.oldest:
            # the file does not exist before the commit that added it
            raise NavigationBoundary(f"no revision before {line_sha[:7]}")
        if self.parent_lookup is None:
            # without git access fall back to the file history
            return self.previous_file_revision(line_sha)
        if line_sha in self._parents:
            parent = self._parents[line_sha]
        else:
            parent = self.parent_lookup(line_sha)
        if parent is None:
            raise NavigationBoundary(f"no revision before {line_sha[:7]}")
        return parent

    def known_revision_before_line(self, line_sha: str) -> Optional[str]:
        """revision_before_line without running git.

        Returns None when the parent still has to be looked up; boundaries
        are raised as usual.
        """
        if (
            line_sha == UNCOMMITTED_SHA
            or line_sha == self.oldest
            or self.parent_lookup is None
            or line_sha in self._parents
        ):
            return self.revision_before_line(line_sha)
        return None

    def remember_parent(self, sha: str, parent: Optional[str]):
        """记录查询到的父提交，之后不再运行 git"""
        self._parents[sha] = parent

    def revision_after_line(self, line_sha: str) -> str:
        """The revision right after the commit that last touched a line."""
        if line_sha == UNCOMMITTED_SHA:
            raise NavigationBoundary("youngest revision reached")
        return self.next_file_revision(line_sha)
