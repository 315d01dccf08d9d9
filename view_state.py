from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from search_index import Match, SearchIndex


@dataclass(frozen=True)
class ViewConfig:
    margin: int = 3  # lines kept between the cursor and the viewport edge


class ViewState:
    """Cursor and scroll position shared by the annotation, line number and code panes."""

    def __init__(self, line_count: int = 0, viewport_height: int = 1, config: Optional[ViewConfig] = None):
        self.config = config or ViewConfig()
        self.line_count = max(0, line_count)
        self.viewport_height = max(1, viewport_height)
        self.current_line = 0
        self.scroll_offset = 0

        self.search_query: Optional[str] = None
        self.search_mode = False
        self.search: Optional[SearchIndex] = None

    @property
    def margin(self) -> int:
        # 视口太小时缩小 margin，保证光标可以移动
        return max(0, min(self.config.margin, (self.viewport_height - 1) // 2))

    @property
    def max_scroll(self) -> int:
        return max(0, self.line_count - self.viewport_height)

    @property
    def match_index(self) -> int:
        return self.search.index if self.search else 0

    def _clamp_scroll(self, offset: int) -> int:
        return max(0, min(offset, self.max_scroll))

    def reset(self, line_count: int):
        """新的 snapshot 替换旧的时调用"""
        self.line_count = max(0, line_count)
        self.current_line = 0
        self.scroll_offset = 0

    def set_viewport_height(self, height: int):
        self.viewport_height = max(1, height)
        self.scroll_offset = self._clamp_scroll(self.scroll_offset)
        # keep the cursor inside the viewport
        if self.current_line >= self.scroll_offset + self.viewport_height:
            self.scroll_offset = self._clamp_scroll(self.current_line - self.viewport_height + 1)

    def move_down(self):
        if self.line_count == 0:
            return
        self.current_line = min(self.line_count - 1, self.current_line + 1)
        if self.current_line >= self.scroll_offset + self.viewport_height - self.margin:
            self.scroll_offset = self._clamp_scroll(self.scroll_offset + 1)

    def move_up(self):
        if self.line_count == 0:
            return
        self.current_line = max(0, self.current_line - 1)
        if self.current_line < self.scroll_offset + self.margin:
            self.scroll_offset = self._clamp_scroll(self.scroll_offset - 1)

    def goto_line(self, line: int):
        if self.line_count == 0:
            return
        self.current_line = max(0, min(line, self.line_count - 1))
        self.scroll_offset = self._clamp_scroll(self.current_line - self.viewport_height // 2)

    def scroll_to(self, offset: int):
        """直接滚动（鼠标滚轮），光标跟随留在视口内"""
        self.scroll_offset = self._clamp_scroll(offset)
        last_visible = self.scroll_offset + self.viewport_height - 1
        self.current_line = max(self.scroll_offset, min(self.current_line, last_visible, max(0, self.line_count - 1)))

    def goto_top(self):
        self.goto_line(0)

    def goto_bottom(self):
        self.goto_line(self.line_count - 1)

    def page_down(self):
        self.goto_line(self.current_line + self.viewport_height)

    def page_up(self):
        self.goto_line(self.current_line - self.viewport_height)

    # search

    def enter_search(self, lines: Sequence[str], query: str) -> Optional[Match]:
        """用新的关键字重建索引，并跳到光标之后的第一个匹配"""
        self.search_query = query
        self.search_mode = True
        self.search = SearchIndex(lines, query)
        match = self.search.select_from_line(self.current_line)
        if match is not None:
            self.goto_line(match[0])
        return match

    def leave_search(self):
        self.search_query = None
        self.search_mode = False
        self.search = None

    def next_match(self) -> Optional[Match]:
        if not self.search:
            return None
        match = self.search.next_match()
        self.goto_line(match[0])
        return match

    def previous_match(self) -> Optional[Match]:
        if not self.search:
            return None
        match = self.search.previous_match()
        self.goto_line(match[0])
        return match


class GotoLineInput:
    """Collects a line number typed digit by digit."""

    class State(Enum):
        IDLE = "idle"
        ACCUMULATING = "accumulating"

    def __init__(self):
        self.state = GotoLineInput.State.IDLE
        self.digits = ""

    @property
    def is_accumulating(self) -> bool:
        return self.state is GotoLineInput.State.ACCUMULATING

    def feed_digit(self, digit: str):
        if not digit.isdigit() or len(digit) != 1:
            raise ValueError(f"not a digit: {digit!r}")
        self.state = GotoLineInput.State.ACCUMULATING
        self.digits += digit

    def commit(self) -> Optional[int]:
        """结束输入，返回 0 起始的行号；没有输入时返回 None"""
        if not self.is_accumulating:
            return None
        line = int(self.digits) - 1
        self.cancel()
        return max(0, line)

    def cancel(self):
        self.state = GotoLineInput.State.IDLE
        self.digits = ""
