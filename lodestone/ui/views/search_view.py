import json
from typing import Callable, Optional

from PySide6.QtWidgets import (
    QDoubleSpinBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ...app import AppState
from ...models import SearchQuery

# The threshold spin box shows "Any" at its minimum, which means "not set".
_NO_THRESHOLD = -0.1


class SearchView(QWidget):
    def __init__(
        self,
        state: AppState,
        status_cb: Optional[Callable[[str], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.state = state
        self._status = status_cb or (lambda _msg: None)

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 12, 12, 12)
        title = QLabel("Semantic Search")
        title.setStyleSheet("font-size: 20px; font-weight: 700;")
        root.addWidget(title)

        form = QFormLayout()
        self.query = QLineEdit()
        self.query.setPlaceholderText("Enter your search query...")
        self.query.returnPressed.connect(self._submit)
        self.collection = QLineEdit()
        self.collection.setPlaceholderText("Collection name (optional)")
        self.max_results = QSpinBox()
        self.max_results.setRange(1, 100)
        self.max_results.setValue(10)
        self.threshold = QDoubleSpinBox()
        self.threshold.setRange(_NO_THRESHOLD, 1.0)
        self.threshold.setSingleStep(0.1)
        self.threshold.setDecimals(2)
        self.threshold.setSpecialValueText("Any")
        self.threshold.setValue(_NO_THRESHOLD)
        form.addRow("Search Query", self.query)
        form.addRow("Collection Name", self.collection)
        form.addRow("Max Results", self.max_results)
        form.addRow("Score Threshold", self.threshold)
        root.addLayout(form)

        self.search_btn = QPushButton("Search")
        self.search_btn.clicked.connect(self._submit)
        root.addWidget(self.search_btn)

        self.results_box = QPlainTextEdit()
        self.results_box.setReadOnly(True)
        root.addWidget(self.results_box, 1)

    def _build_query(self) -> SearchQuery:
        threshold = self.threshold.value()
        return SearchQuery(
            query=self.query.text(),
            collection_name=self.collection.text().strip() or None,
            max_results=self.max_results.value(),
            score_threshold=None if threshold < 0 else threshold,
        )

    def _submit(self) -> None:
        if self.state.search.submit(self._build_query()):
            self._status("Searching...")

    def render(self) -> None:
        self.search_btn.setEnabled(not self.state.search.busy)
        results = self.state.search.results
        if not results:
            self.results_box.clear()
            return
        self.results_box.setPlainText(json.dumps(results, indent=2, ensure_ascii=False))
