import logging
from typing import TYPE_CHECKING, Callable, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from blame_colors import assign_colors
from blame_parser import ParseError, parse_porcelain
from git_manager import ExternalCommandError
from revision_navigator import NavigationBoundary
from settings import BLAME_DARK_ANCHOR, BLAME_LIGHT_ANCHOR, UNCOMMITTED_COLOR

if TYPE_CHECKING:
    from git_manager import GitManager

# error kinds carried by BlameLoadThread.error
ERROR_BOUNDARY = "boundary"
ERROR_COMMAND = "command"
ERROR_PARSE = "parse"


class BlameLoadThread(QThread):
    """在后台执行 git blame 并解析结果的线程

    ``resolve`` 在后台线程里计算目标 revision（例如需要查询父提交时），
    未提供时直接使用 ``revision``。
    """

    loaded = pyqtSignal(int, object)  # (request_id, BlameSnapshot)
    error = pyqtSignal(int, str, str)  # (request_id, kind, message)

    def __init__(
        self,
        request_id: int,
        git_manager: "GitManager",
        file_path: str,
        revision: Optional[str] = None,
        resolve: Optional[Callable[[], str]] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.request_id = request_id
        self.git_manager = git_manager
        self.file_path = file_path
        self.revision = revision
        self.resolve = resolve

    def load(self):
        """The work done by run(), callable directly for testing."""
        revision = self.resolve() if self.resolve else self.revision
        logging.debug("request %d: loading blame of %s at %s", self.request_id, self.file_path, revision or "worktree")
        raw_text = self.git_manager.get_blame_porcelain(self.file_path, revision)
        snapshot = parse_porcelain(raw_text, revision)
        return assign_colors(snapshot, BLAME_DARK_ANCHOR, BLAME_LIGHT_ANCHOR, UNCOMMITTED_COLOR)

    def run(self):
        try:
            snapshot = self.load()
        except NavigationBoundary as e:
            self.error.emit(self.request_id, ERROR_BOUNDARY, str(e))
        except ExternalCommandError as e:
            logging.error("request %d failed: %s", self.request_id, e)
            self.error.emit(self.request_id, ERROR_COMMAND, str(e))
        except ParseError as e:
            logging.exception("request %d: invalid blame output", self.request_id)
            self.error.emit(self.request_id, ERROR_PARSE, str(e))
        else:
            self.loaded.emit(self.request_id, snapshot)
