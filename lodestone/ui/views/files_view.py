from pathlib import Path
from typing import Callable, Optional, Tuple

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from ...app import AppState
from ...models import DownloadedFile, FileRecord
from ...utils import safe_filename


def _format_kb(num: int) -> str:
    return f"{num / 1024:.1f} KB"


class FileCard(QFrame):
    def __init__(
        self,
        item: FileRecord,
        on_delete: Callable[[FileRecord], None],
        on_download: Callable[[FileRecord], None],
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.item = item

        self.setObjectName("fileCard")
        self.setStyleSheet(
            "#fileCard { background: #ffffff; border-radius: 10px; border: 1px solid #e6e6e6; }"
        )

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(12)

        meta = QVBoxLayout()
        name_value = QLabel(item.original_filename)
        name_value.setStyleSheet("font-weight: 600; color: #111111;")
        name_value.setWordWrap(True)
        meta.addWidget(name_value)
        detail = QLabel(f"{_format_kb(item.file_size)} • {item.upload_status}")
        detail.setStyleSheet("color: #666666;")
        meta.addWidget(detail)
        layout.addLayout(meta, 1)

        download_btn = QPushButton("Download")
        download_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        download_btn.clicked.connect(lambda: on_download(self.item))
        delete_btn = QPushButton("Delete")
        delete_btn.setStyleSheet("color: #c0392b;")
        delete_btn.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        delete_btn.clicked.connect(lambda: on_delete(self.item))
        layout.addWidget(download_btn)
        layout.addWidget(delete_btn)


class FilesView(QWidget):
    def __init__(
        self,
        state: AppState,
        status_cb: Optional[Callable[[str], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.state = state
        self._status = status_cb or (lambda _msg: None)
        self._shown: Optional[Tuple[FileRecord, ...]] = None

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        root.setSpacing(10)

        header = QHBoxLayout()
        title = QLabel("File Management")
        title.setStyleSheet("font-size: 20px; font-weight: 700;")
        header.addWidget(title)
        header.addStretch(1)
        self.refresh_btn = QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self.state.files.refresh)
        self.upload_btn = QPushButton("Upload File")
        self.upload_btn.clicked.connect(self._upload_dialog)
        header.addWidget(self.refresh_btn)
        header.addWidget(self.upload_btn)
        root.addLayout(header)

        self.empty_label = QLabel("No files uploaded yet. Upload your first file to get started.")
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.empty_label.setStyleSheet("color: #888888;")
        root.addWidget(self.empty_label)

        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        container = QWidget()
        self.list_layout = QVBoxLayout(container)
        self.list_layout.setSpacing(10)
        self.list_layout.addStretch(1)
        self.scroll.setWidget(container)
        root.addWidget(self.scroll)

    def render(self) -> None:
        records = self.state.files.records
        self.empty_label.setVisible(not records)
        if records is self._shown:
            return
        self._shown = records
        self._clear_cards()
        for item in records:
            card = FileCard(item, on_delete=self._delete_item, on_download=self._download_item)
            self.list_layout.insertWidget(self.list_layout.count() - 1, card)
        self._status(f"{len(records)} file(s) loaded.")

    def _clear_cards(self) -> None:
        while self.list_layout.count() > 1:
            item = self.list_layout.takeAt(0)
            widget = item.widget()
            if widget:
                widget.deleteLater()

    def _upload_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select file to upload")
        if not path:
            return
        self._status(f"Uploading {Path(path).name}...")
        self.state.files.upload(path)

    def _download_item(self, item: FileRecord) -> None:
        suggested = safe_filename(item.original_filename) or f"file-{item.id}"
        dest, _ = QFileDialog.getSaveFileName(self, "Save file as", suggested)
        if not dest:
            return

        def save(payload: DownloadedFile) -> None:
            try:
                Path(dest).write_bytes(payload.content)
            except OSError as exc:
                QMessageBox.warning(self, "Download", f"Could not save {dest}: {exc}")
                return
            self._status(f"Downloaded to {dest}")

        self.state.files.download(item.id, item.original_filename, save)

    def _delete_item(self, item: FileRecord) -> None:
        ok = QMessageBox.question(self, "Delete", f"Delete {item.original_filename}?")
        if ok != QMessageBox.StandardButton.Yes:
            return
        self.state.files.delete(item.id)
