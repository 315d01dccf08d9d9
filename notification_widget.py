from PyQt6.QtWidgets import QFrame, QLabel, QSizePolicy, QVBoxLayout


class NotificationWidget(QFrame):
    """Shows the session's transient status message in a corner of its parent.

    The session decides when a message expires; this widget only follows
    ``status_changed``.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self.setFixedWidth(300)
        self.setMinimumHeight(30)
        self.setStyleSheet("""
            NotificationWidget {
                background-color: #f0f0f0;
                border: 1px solid #ccc;
                border-radius: 5px;
            }
        """)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.hide()

        layout = QVBoxLayout(self)
        self.setLayout(layout)

        self.message_label = QLabel()
        self.message_label.setWordWrap(True)
        self.message_label.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        layout.addWidget(self.message_label)

    def on_status_changed(self, message: str):
        if message:
            self.show_message(message)
        else:
            self.hide_widget()

    def show_message(self, message: str):
        self.message_label.setText(message)
        self.adjustSize()
        self.reposition()
        self.show()
        self.raise_()

    def reposition(self):
        # bottom-right of parent, 10px margin
        if self.parentWidget():
            parent_rect = self.parentWidget().rect()
            self.move(parent_rect.right() - self.width() - 10, parent_rect.bottom() - self.height() - 10)

    def hide_widget(self):
        self.message_label.clear()
        self.hide()
