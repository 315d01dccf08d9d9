import logging
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import QEvent, Qt, QUrl, pyqtSignal
from PyQt6.QtGui import QColor, QDesktopServices, QFont, QKeyEvent, QTextBlockFormat, QTextCharFormat, QTextCursor
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from settings import CURRENT_MATCH_COLOR, CURSOR_LINE_COLOR, SEARCH_MATCH_COLOR, settings

if TYPE_CHECKING:
    from blame_parser import BlameSnapshot, Commit
    from blame_session import BlameSession

AUTHOR_COLUMN_WIDTH = 15


def format_annotation(commit: "Commit") -> str:
    """注释栏中一行的文字：短 hash、作者、日期"""
    author_name = commit.author or "N/A"
    # Truncate author name if too long to fit well
    if len(author_name) > AUTHOR_COLUMN_WIDTH:
        author_name = author_name[: AUTHOR_COLUMN_WIDTH - 3] + "..."
    if commit.is_uncommitted or commit.author_time is None:
        committed_date = ""
    else:
        committed_date = commit.author_time.astimezone().strftime("%Y-%m-%d")
    return f"{commit.short_sha} {author_name:<{AUTHOR_COLUMN_WIDTH}} {committed_date}"


class BlameViewWidget(QWidget):
    """Annotation, line number and code panes kept on the same scroll offset."""

    quit_requested = pyqtSignal()
    legend_toggle_requested = pyqtSignal()

    def __init__(self, session: "BlameSession", parent=None):
        super().__init__(parent)
        self.session = session

        self.annotation_area = QPlainTextEdit()
        self.line_number_area = QPlainTextEdit()
        self.code_area = QPlainTextEdit()
        self.search_input = QLineEdit()
        self.search_label = QLabel("/")

        self.setup_ui()

        self.session.snapshot_changed.connect(self.load_data)
        self.session.view_changed.connect(self.refresh_view)

    def panes(self):
        return [self.annotation_area, self.line_number_area, self.code_area]

    def setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        panes_layout = QHBoxLayout()
        panes_layout.setContentsMargins(0, 0, 0, 0)
        panes_layout.setSpacing(0)

        font = QFont(settings.get_font_family(), settings.get_font_size())
        font.setStyleHint(QFont.StyleHint.Monospace)

        for pane in self.panes():
            pane.setReadOnly(True)
            pane.setFont(font)
            pane.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
            pane.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            pane.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        self.annotation_area.setFixedWidth(settings.get_annotation_width())
        self.annotation_area.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.line_number_area.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.line_number_area.setStyleSheet("color: #808080; background-color: #f0f0f0;")
        # Main scrollbar visible here
        self.code_area.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOn)

        panes_layout.addWidget(self.annotation_area)
        panes_layout.addWidget(self.line_number_area)
        panes_layout.addWidget(self.code_area, 1)
        main_layout.addLayout(panes_layout, 1)

        search_layout = QHBoxLayout()
        search_layout.setContentsMargins(4, 2, 4, 2)
        search_layout.addWidget(self.search_label)
        search_layout.addWidget(self.search_input)
        main_layout.addLayout(search_layout)
        self.search_input.setPlaceholderText("Enter text to find...")
        self.search_input.returnPressed.connect(self.on_search_submitted)
        self.search_input.installEventFilter(self)
        self.search_label.hide()
        self.search_input.hide()

        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.synchronize_scrollbars()

    def synchronize_scrollbars(self):
        code_scrollbar = self.code_area.verticalScrollBar()
        code_scrollbar.valueChanged.connect(self.annotation_area.verticalScrollBar().setValue)
        code_scrollbar.valueChanged.connect(self.line_number_area.verticalScrollBar().setValue)
        # wheel or scrollbar drag on the code pane moves the shared offset
        code_scrollbar.valueChanged.connect(self.on_code_scrolled)

    def on_code_scrolled(self, value: int):
        if value != self.session.view_state.scroll_offset:
            self.session.view_state.scroll_to(value)
            self.refresh_view()

    def viewport_lines(self) -> int:
        line_height = self.code_area.fontMetrics().lineSpacing()
        if line_height <= 0:
            return 1
        return max(1, self.code_area.viewport().height() // line_height)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.session.set_viewport_height(self.viewport_lines())

    def wheelEvent(self, event):
        # Forward wheel events from the side panes to code_area
        scrollbar = self.code_area.verticalScrollBar()
        scrollbar.setValue(scrollbar.value() - (event.angleDelta().y() // 120) * scrollbar.singleStep())
        event.accept()

    # data

    def load_data(self, snapshot: "BlameSnapshot"):
        for pane in self.panes():
            pane.clear()

        if snapshot.line_count == 0:
            self.annotation_area.setPlainText("No blame data available.")
            return

        self._fill_annotations(snapshot)
        width = len(str(snapshot.line_count))
        self.line_number_area.setPlainText("\n".join(str(n).rjust(width) for n in range(1, snapshot.line_count + 1)))
        self.line_number_area.setFixedWidth(
            self.line_number_area.fontMetrics().horizontalAdvance("9" * (width + 2))
        )
        self.code_area.setPlainText("\n".join(snapshot.lines))
        logging.debug("blame view loaded %d lines", snapshot.line_count)

    def _fill_annotations(self, snapshot: "BlameSnapshot"):
        cursor = QTextCursor(self.annotation_area.document())
        previous_sha = None
        for index, commit in enumerate(snapshot.commit_at(i) for i in range(snapshot.line_count)):
            if index:
                cursor.insertBlock()
            block_format = QTextBlockFormat()
            block_format.setBackground(QColor(*commit.color) if commit.color else QColor(Qt.GlobalColor.lightGray))
            cursor.setBlockFormat(block_format)
            # 连续属于同一个 commit 的行只显示一次注释
            if commit.sha == previous_sha:
                continue
            previous_sha = commit.sha
            text = format_annotation(commit)
            sha_part, rest = text[:8], text[8:]
            cursor.insertText(sha_part, QTextCharFormat())
            author_format = QTextCharFormat()
            if commit.author_color:
                author_format.setForeground(QColor(*commit.author_color).darker(150))
            cursor.insertText(rest, author_format)

    # view

    def _line_selection(self, pane: QPlainTextEdit, line: int, color: str) -> Optional[QTextEdit.ExtraSelection]:
        block = pane.document().findBlockByNumber(line)
        if not block.isValid():
            return None
        selection = QTextEdit.ExtraSelection()
        selection.format.setBackground(QColor(color))
        selection.format.setProperty(QTextCharFormat.Property.FullWidthSelection, True)
        selection.cursor = QTextCursor(block)
        return selection

    def _search_selections(self):
        selections = []
        search = self.session.view_state.search
        if not search:
            return selections
        current = search.current()
        length = len(search.query)
        document = self.code_area.document()
        for line, column in search.matches:
            block = document.findBlockByNumber(line)
            if not block.isValid():
                continue
            cursor = QTextCursor(block)
            cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.MoveAnchor, column)
            cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.KeepAnchor, length)
            selection = QTextEdit.ExtraSelection()
            selection.cursor = cursor
            selection.format.setBackground(
                QColor(CURRENT_MATCH_COLOR if (line, column) == current else SEARCH_MATCH_COLOR)
            )
            selections.append(selection)
        return selections

    def refresh_view(self):
        view_state = self.session.view_state
        for pane in self.panes():
            extra = []
            cursor_line = self._line_selection(pane, view_state.current_line, CURSOR_LINE_COLOR)
            if cursor_line is not None:
                extra.append(cursor_line)
            if pane is self.code_area:
                extra.extend(self._search_selections())
            pane.setExtraSelections(extra)
        # all panes share the same offset
        for pane in self.panes():
            pane.verticalScrollBar().setValue(view_state.scroll_offset)

    # keys

    def eventFilter(self, obj, event):
        if obj is self.search_input and event.type() == QEvent.Type.KeyPress:
            if event.key() == Qt.Key.Key_Escape:
                self.close_search_input()
                self.session.leave_search()
                return True
        return super().eventFilter(obj, event)

    def open_search_input(self):
        self.search_input.setText(self.session.view_state.search_query or "")
        self.search_input.selectAll()
        self.search_label.show()
        self.search_input.show()
        self.search_input.setFocus()

    def close_search_input(self):
        self.search_label.hide()
        self.search_input.hide()
        self.setFocus()

    def on_search_submitted(self):
        query = self.search_input.text()
        self.close_search_input()
        self.session.search(query)

    def open_pull_request(self):
        url = self.session.pull_request_url()
        if not url:
            self.session.show_status("no pull request referenced by this commit")
            return
        logging.info("opening %s", url)
        QDesktopServices.openUrl(QUrl(url))

    def keyPressEvent(self, event: QKeyEvent):
        key = event.key()
        text = event.text()
        session = self.session

        if text.isdigit() and len(text) == 1:
            session.feed_digit(text)
        elif session.goto_input.is_accumulating and (key in (Qt.Key.Key_Return, Qt.Key.Key_Enter) or text == "G"):
            session.commit_goto()
        elif session.goto_input.is_accumulating and key == Qt.Key.Key_Escape:
            session.cancel_goto()
        elif key == Qt.Key.Key_Down or text == "j":
            session.move_down()
        elif key == Qt.Key.Key_Up or text == "k":
            session.move_up()
        elif key == Qt.Key.Key_PageDown:
            session.page_down()
        elif key == Qt.Key.Key_PageUp:
            session.page_up()
        elif text == "g":
            session.goto_top()
        elif text == "G":
            session.goto_bottom()
        elif text == "/":
            self.open_search_input()
        elif text == "n":
            session.next_match()
        elif text == "N":
            session.previous_match()
        elif text == "[":
            session.previous_file_revision()
        elif text == "]":
            session.next_file_revision()
        elif text == "<":
            session.revision_before_line()
        elif text == ">":
            session.revision_after_line()
        elif text == "o":
            self.open_pull_request()
        elif text == "i":
            self.legend_toggle_requested.emit()
        elif key == Qt.Key.Key_Escape and session.view_state.search_mode:
            session.leave_search()
        elif text == "q" or key == Qt.Key.Key_Escape:
            self.quit_requested.emit()
        else:
            super().keyPressEvent(event)
            return
        event.accept()
