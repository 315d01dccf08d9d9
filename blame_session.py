import logging
import os
from typing import Dict, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from blame_parser import BlameSnapshot, Commit
from git_manager import ExternalCommandError, GitManager, StartupError, pull_request_url, web_base_url
from revision_navigator import NavigationBoundary, RevisionNavigator
from threads import ERROR_BOUNDARY, ERROR_PARSE, BlameLoadThread
from view_state import GotoLineInput, ViewConfig, ViewState


class BlameSession(QObject):
    """Owns the displayed snapshot and the view state.

    Lives on the Qt event loop, which is the only place the snapshot, the view
    state and the search index are changed. Every load runs in a
    BlameLoadThread; results of requests other than the latest one are dropped.
    """

    snapshot_changed = pyqtSignal(object)  # BlameSnapshot
    view_changed = pyqtSignal()
    status_changed = pyqtSignal(str)  # 空字符串表示清除
    loading_changed = pyqtSignal(bool)
    fatal_error = pyqtSignal(str)

    def __init__(
        self,
        git_manager: GitManager,
        file_path: str,
        navigator: RevisionNavigator,
        config: Optional[ViewConfig] = None,
        status_timeout_ms: int = 3000,
        repository_url: Optional[str] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.git_manager = git_manager
        self.file_path = file_path
        self.navigator = navigator
        self.repository_url = repository_url
        self.snapshot: Optional[BlameSnapshot] = None
        self.view_state = ViewState(config=config)
        self.goto_input = GotoLineInput()

        self._last_request_id = 0
        self._threads: Dict[int, BlameLoadThread] = {}
        # request id -> line sha whose parent the request looks up
        self._parent_requests: Dict[int, str] = {}

        self.status_message = ""
        self.status_timer = QTimer(self)
        self.status_timer.setSingleShot(True)
        self.status_timer.setInterval(status_timeout_ms)
        self.status_timer.timeout.connect(self.clear_status)

    # loading

    @property
    def is_loading(self) -> bool:
        return bool(self._threads)

    @property
    def latest_request_id(self) -> int:
        return self._last_request_id

    def start(self):
        """加载工作区版本的 blame"""
        return self.load_revision(None)

    def load_revision(self, revision: Optional[str] = None, resolve=None) -> int:
        self._last_request_id += 1
        request_id = self._last_request_id
        thread = BlameLoadThread(request_id, self.git_manager, self.file_path, revision=revision, resolve=resolve)
        thread.loaded.connect(self._on_loaded)
        thread.error.connect(self._on_error)
        thread.finished.connect(lambda: self._on_thread_finished(request_id))
        self._threads[request_id] = thread
        logging.info("request %d: load %s", request_id, revision or ("resolved revision" if resolve else "worktree"))
        self.loading_changed.emit(True)
        thread.start()
        return request_id

    def _on_thread_finished(self, request_id: int):
        thread = self._threads.pop(request_id, None)
        self._parent_requests.pop(request_id, None)
        if thread is not None:
            thread.deleteLater()
        if not self._threads:
            self.loading_changed.emit(False)

    def _is_stale(self, request_id: int) -> bool:
        if request_id != self._last_request_id:
            logging.debug("discarding stale result of request %d (latest is %d)", request_id, self._last_request_id)
            return True
        return False

    def _on_loaded(self, request_id: int, snapshot: BlameSnapshot):
        line_sha = self._parent_requests.pop(request_id, None)
        if line_sha is not None:
            self.navigator.remember_parent(line_sha, snapshot.revision)
        if self._is_stale(request_id):
            return
        self.apply_snapshot(snapshot)

    def _on_error(self, request_id: int, kind: str, message: str):
        line_sha = self._parent_requests.pop(request_id, None)
        if line_sha is not None and kind == ERROR_BOUNDARY:
            # 没有父提交
            self.navigator.remember_parent(line_sha, None)
        if self._is_stale(request_id):
            return
        if kind == ERROR_PARSE:
            self.fatal_error.emit(f"Invalid blame output: {message}")
        elif self.snapshot is None:
            # 初始加载失败
            self.fatal_error.emit(message)
        elif kind == ERROR_BOUNDARY:
            self.show_status(message)
        else:
            self.show_status(f"Load failed: {message.splitlines()[0] if message else ''}")

    def apply_snapshot(self, snapshot: BlameSnapshot):
        """用新的 snapshot 替换当前的 snapshot，并重置光标"""
        self.snapshot = snapshot
        self.view_state.reset(snapshot.line_count)
        self.goto_input.cancel()
        if self.view_state.search_mode and self.view_state.search_query:
            self.view_state.enter_search(snapshot.lines, self.view_state.search_query)
        logging.info(
            "showing %s: %d lines, %d commits",
            snapshot.revision or "worktree",
            snapshot.line_count,
            len(snapshot.sorted_commits),
        )
        self.snapshot_changed.emit(snapshot)
        self.view_changed.emit()

    # status

    def show_status(self, message: str):
        self.status_message = message
        self.status_changed.emit(message)
        self.status_timer.start()

    def clear_status(self):
        self.status_timer.stop()
        if self.status_message:
            self.status_message = ""
            self.status_changed.emit("")

    # revision navigation

    def current_revision(self) -> Optional[str]:
        """当前显示的 revision，取 snapshot 中最新的 commit

        The blamed revision itself may not have touched the file (e.g. the
        parent reached through ``<``), the newest commit always has.
        """
        if self.snapshot is None:
            return None
        newest = self.snapshot.newest_commit
        if newest is not None:
            return newest.sha
        return self.snapshot.revision

    def current_commit(self) -> Optional[Commit]:
        if self.snapshot is None:
            return None
        return self.snapshot.commit_at(self.view_state.current_line)

    def _navigate(self, compute) -> Optional[int]:
        try:
            target = compute()
        except NavigationBoundary as e:
            self.show_status(str(e))
            return None
        return self.load_revision(target)

    def previous_file_revision(self) -> Optional[int]:
        current = self.current_revision()
        if current is None:
            self.show_status("no revision to navigate from")
            return None
        return self._navigate(lambda: self.navigator.previous_file_revision(current))

    def next_file_revision(self) -> Optional[int]:
        current = self.current_revision()
        if current is None:
            self.show_status("no revision to navigate from")
            return None
        return self._navigate(lambda: self.navigator.next_file_revision(current))

    def revision_before_line(self) -> Optional[int]:
        commit = self.current_commit()
        if commit is None:
            self.show_status("no line selected")
            return None
        line_sha = commit.sha
        try:
            target = self.navigator.known_revision_before_line(line_sha)
        except NavigationBoundary as e:
            self.show_status(str(e))
            return None
        if target is not None:
            return self.load_revision(target)
        # the parent lookup runs git, so it is resolved in the load thread
        request_id = self.load_revision(resolve=lambda: self.navigator.revision_before_line(line_sha))
        self._parent_requests[request_id] = line_sha
        return request_id

    def revision_after_line(self) -> Optional[int]:
        commit = self.current_commit()
        if commit is None:
            self.show_status("no line selected")
            return None
        return self._navigate(lambda: self.navigator.revision_after_line(commit.sha))

    # cursor

    def _view_changed(self):
        self.view_changed.emit()

    def move_down(self):
        self.view_state.move_down()
        self._view_changed()

    def move_up(self):
        self.view_state.move_up()
        self._view_changed()

    def page_down(self):
        self.view_state.page_down()
        self._view_changed()

    def page_up(self):
        self.view_state.page_up()
        self._view_changed()

    def goto_top(self):
        self.view_state.goto_top()
        self._view_changed()

    def goto_bottom(self):
        self.view_state.goto_bottom()
        self._view_changed()

    def goto_line(self, line: int):
        self.view_state.goto_line(line)
        self._view_changed()

    def set_viewport_height(self, height: int):
        self.view_state.set_viewport_height(height)
        self._view_changed()

    def feed_digit(self, digit: str):
        self.goto_input.feed_digit(digit)
        self.show_status(f":{self.goto_input.digits}")

    def commit_goto(self) -> bool:
        line = self.goto_input.commit()
        self.clear_status()
        if line is None:
            return False
        self.goto_line(line)
        return True

    def cancel_goto(self):
        self.goto_input.cancel()
        self.clear_status()

    # search

    def search(self, query: str):
        if self.snapshot is None:
            return
        if not query:
            self.leave_search()
            return
        match = self.view_state.enter_search(self.snapshot.lines, query)
        if match is None:
            self.show_status(f"pattern not found: {query}")
        else:
            self.show_status(f"{len(self.view_state.search)} matches for {query}")
        self._view_changed()

    def leave_search(self):
        self.view_state.leave_search()
        self._view_changed()

    def next_match(self):
        if self.view_state.next_match() is None:
            return
        self._show_match_position()
        self._view_changed()

    def previous_match(self):
        if self.view_state.previous_match() is None:
            return
        self._show_match_position()
        self._view_changed()

    def _show_match_position(self):
        search = self.view_state.search
        self.show_status(f"match {search.index + 1}/{len(search)}")

    # pull request

    def pull_request_url(self) -> Optional[str]:
        commit = self.current_commit()
        if commit is None or commit.is_uncommitted:
            return None
        return pull_request_url(self.repository_url, commit.summary)


def create_session(file_path: str, config: Optional[ViewConfig] = None, status_timeout_ms: int = 3000) -> BlameSession:
    """检查输入并创建 session，失败时抛出 StartupError"""
    if not os.path.isfile(file_path):
        raise StartupError(f"can't open given file {file_path!r}")
    try:
        with open(file_path, "rb"):
            pass
    except OSError as e:
        raise StartupError(f"can't open given file {file_path!r}: {e.strerror}") from e

    git_manager = GitManager(os.path.dirname(os.path.abspath(file_path)))
    if not git_manager.initialize():
        raise StartupError(f"{file_path!r} is not inside a git repository")

    try:
        history = git_manager.get_file_revisions(file_path)
    except ExternalCommandError as e:
        raise StartupError(f"failed to read the history of {file_path!r}: {e!s}") from e

    navigator = RevisionNavigator(history, git_manager.get_parent_revision)
    repository_url = web_base_url(git_manager.get_origin_url())
    return BlameSession(
        git_manager,
        os.path.abspath(file_path),
        navigator,
        config=config,
        status_timeout_ms=status_timeout_ms,
        repository_url=repository_url,
    )
