import logging
import os
import sys
from typing import TYPE_CHECKING

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QApplication, QMainWindow, QSplitter

from blame_view_widget import BlameViewWidget
from notification_widget import NotificationWidget
from settings import settings
from views.commit_legend_view import CommitLegendView

if TYPE_CHECKING:
    from blame_parser import BlameSnapshot
    from blame_session import BlameSession


class BlameWindow(QMainWindow):
    def __init__(self, session: "BlameSession"):
        super().__init__()
        self.session = session
        self.exit_code = 0

        # Get screen geometry and set window size
        screen = QGuiApplication.primaryScreen()
        if screen:
            geometry = screen.availableGeometry()
            self.setGeometry(
                geometry.x() + int(geometry.width() * 0.1),
                geometry.y() + int(geometry.height() * 0.1),
                int(geometry.width() * 0.8),
                int(geometry.height() * 0.8),
            )
        else:
            self.resize(1024, 768)

        self.blame_view = BlameViewWidget(session)
        self.legend_view = CommitLegendView()
        self.legend_view.setVisible(settings.get_show_legend())

        # 主分割器：左边是 blame 视图，右边是 commit 图例
        self.splitter = QSplitter(Qt.Orientation.Horizontal)
        self.splitter.addWidget(self.blame_view)
        self.splitter.addWidget(self.legend_view)
        self.splitter.setStretchFactor(0, 3)
        self.splitter.setStretchFactor(1, 1)
        self.setCentralWidget(self.splitter)

        self.notification_widget = NotificationWidget(self)

        self.blame_view.quit_requested.connect(self.close)
        self.blame_view.legend_toggle_requested.connect(self.toggle_legend)
        self.legend_view.commit_selected.connect(self.on_legend_commit_selected)

        session.snapshot_changed.connect(self.on_snapshot_changed)
        session.snapshot_changed.connect(self.legend_view.update_commits)
        session.status_changed.connect(self.notification_widget.on_status_changed)
        session.loading_changed.connect(self.update_title)
        session.fatal_error.connect(self.on_fatal_error)

        self.update_title()
        self.blame_view.setFocus()

    def update_title(self, *_):
        relative_path = os.path.basename(self.session.file_path)
        snapshot = self.session.snapshot
        revision = "working tree"
        if snapshot is not None and snapshot.revision:
            revision = snapshot.revision[:7]
        title = f"{relative_path} @ {revision}"
        if self.session.is_loading:
            title += " (loading...)"
        self.setWindowTitle(title)

    def on_snapshot_changed(self, snapshot: "BlameSnapshot"):
        self.update_title()

    def toggle_legend(self):
        self.legend_view.setVisible(self.legend_view.isHidden())
        self.blame_view.setFocus()

    def on_legend_commit_selected(self, sha: str):
        snapshot = self.session.snapshot
        if snapshot is None:
            return
        line = snapshot.first_line_of(sha)
        if line is not None:
            self.session.goto_line(line)
        self.blame_view.setFocus()

    def on_fatal_error(self, message: str):
        logging.error("fatal: %s", message)
        print(message, file=sys.stderr)
        self.exit_code = 1
        QApplication.instance().exit(1)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.notification_widget.reposition()
