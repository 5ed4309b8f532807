import os
from typing import Optional

from PySide6.QtCore import QTimer
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QDialog, QLabel, QPlainTextEdit, QVBoxLayout, QWidget


class LogTailWidget(QWidget):
    def __init__(self, path: Optional[str], parent=None) -> None:
        super().__init__(parent)
        self.path = path
        self._offset = 0

        layout = QVBoxLayout(self)
        self.status = QLabel(f"Log file: {self.path}" if self.path else "HTTP log disabled (LODESTONE_HTTP_LOG)")
        self.box = QPlainTextEdit()
        self.box.setReadOnly(True)
        layout.addWidget(self.status)
        layout.addWidget(self.box)

        self.timer = QTimer(self)
        self.timer.setInterval(1000)
        self.timer.timeout.connect(self._poll)
        if self.path:
            self.timer.start()

    def _poll(self) -> None:
        if not os.path.exists(self.path):
            self.status.setText(f"Log file not found: {self.path}")
            self._offset = 0
            return
        try:
            size = os.path.getsize(self.path)
            if size < self._offset:
                # Rotated or truncated.
                self._offset = 0
                self.box.clear()
            with open(self.path, "r", encoding="utf-8", errors="ignore") as handle:
                handle.seek(self._offset)
                data = handle.read()
                self._offset = handle.tell()
        except OSError as exc:
            self.status.setText(f"Log read error: {exc}")
            return
        if data:
            cursor = self.box.textCursor()
            cursor.movePosition(QTextCursor.End)
            cursor.insertText(data)
            self.box.setTextCursor(cursor)
            self.box.ensureCursorVisible()


class LogDialog(QDialog):
    def __init__(self, path: Optional[str], parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("HTTP log")
        self.resize(900, 500)
        layout = QVBoxLayout(self)
        layout.addWidget(LogTailWidget(path, self))
