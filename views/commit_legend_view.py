import logging
from functools import partial
from typing import TYPE_CHECKING

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor
from PyQt6.QtWidgets import QApplication, QLabel, QMenu, QTreeWidget, QTreeWidgetItem, QVBoxLayout, QWidget

from blame_parser import UNCOMMITTED_SHA

if TYPE_CHECKING:
    from blame_parser import BlameSnapshot

SHA_ROLE = 256  # Qt.ItemDataRole.UserRole = 256


class CommitLegendView(QWidget):
    """按时间排列的 commit 列表，背景色与注释栏一致"""

    commit_selected = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()
        layout.setContentsMargins(5, 5, 5, 5)
        self.setLayout(layout)

        self.title_label = QLabel("Commits")
        layout.addWidget(self.title_label)

        self.commit_list = QTreeWidget()
        self.commit_list.setHeaderLabels(["提交 ID", "作者", "日期", "提交信息"])
        self.commit_list.setColumnWidth(0, 80)  # Hash
        self.commit_list.setColumnWidth(1, 120)  # Author
        self.commit_list.setColumnWidth(2, 100)  # Date
        self.commit_list.setRootIsDecorated(False)
        self.commit_list.itemClicked.connect(self.on_commit_clicked)
        self.commit_list.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        layout.addWidget(self.commit_list)

        self.commit_list.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.commit_list.customContextMenuRequested.connect(self.show_context_menu)

    def update_commits(self, snapshot: "BlameSnapshot"):
        self.commit_list.clear()
        self.title_label.setText(f"Commits at {snapshot.revision[:7] if snapshot.revision else 'working tree'}")

        commits = list(snapshot.sorted_commits)
        uncommitted = snapshot.commits.get(UNCOMMITTED_SHA)
        if uncommitted is not None:
            commits.insert(0, uncommitted)

        for commit in commits:
            item = QTreeWidgetItem()
            item.setText(0, commit.short_sha)
            item.setText(1, commit.author)
            if commit.author_time is not None and not commit.is_uncommitted:
                item.setText(2, commit.author_time.astimezone().strftime("%Y-%m-%d"))
            item.setText(3, commit.summary or "")
            item.setData(0, SHA_ROLE, commit.sha)
            if commit.color:
                brush = QBrush(QColor(*commit.color))
                for column in range(4):
                    item.setBackground(column, brush)
            self.commit_list.addTopLevelItem(item)
        logging.debug("legend shows %d commits", len(commits))

    def on_commit_clicked(self, item):
        sha = item.data(0, SHA_ROLE)
        if sha:
            self.commit_selected.emit(sha)

    def show_context_menu(self, position):
        item = self.commit_list.itemAt(position)
        if not item:
            logging.warning("legend item is None at position %s", position)
            return
        menu = QMenu(self)
        copy_commit_action = menu.addAction("copy commit")
        copy_commit_action.triggered.connect(partial(self.copy_to_clipboard, item.data(0, SHA_ROLE)))
        copy_message_action = menu.addAction("copy commit message")
        copy_message_action.triggered.connect(partial(self.copy_to_clipboard, item.text(3)))
        menu.exec(self.commit_list.viewport().mapToGlobal(position))

    def copy_to_clipboard(self, text):
        QApplication.clipboard().setText(text or "")
