from typing import List, Optional, Sequence, Tuple

Match = Tuple[int, int]  # (line index, column offset)


def build_matches(lines: Sequence[str], query: str) -> List[Match]:
    """Case-sensitive literal search, non-overlapping, left to right."""
    matches: List[Match] = []
    if not query:
        return matches
    for line_index, line in enumerate(lines):
        column = line.find(query)
        while column != -1:
            matches.append((line_index, column))
            column = line.find(query, column + len(query))
    return matches


class SearchIndex:
    def __init__(self, lines: Sequence[str], query: str):
        self.query = query
        self.matches = build_matches(lines, query)
        self.index = 0

    def __len__(self):
        return len(self.matches)

    def __bool__(self):
        return bool(self.matches)

    def current(self) -> Optional[Match]:
        if not self.matches:
            return None
        return self.matches[self.index]

    def next_match(self) -> Optional[Match]:
        if not self.matches:
            return None
        self.index = (self.index + 1) % len(self.matches)
        return self.matches[self.index]

    def previous_match(self) -> Optional[Match]:
        if not self.matches:
            return None
        self.index = (self.index - 1 + len(self.matches)) % len(self.matches)
        return self.matches[self.index]

    def select_from_line(self, line_index: int) -> Optional[Match]:
        """选中第一个位于 line_index 及之后的匹配，没有则回到第一个"""
        if not self.matches:
            return None
        for position, (match_line, _) in enumerate(self.matches):
            if match_line >= line_index:
                self.index = position
                break
        else:
            self.index = 0
        return self.matches[self.index]

    def matches_on_line(self, line_index: int) -> List[int]:
        return [column for match_line, column in self.matches if match_line == line_index]
