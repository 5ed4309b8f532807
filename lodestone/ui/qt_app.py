from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from ..app import AppState
from ..models import ViewState
from .threads import TaskRunner
from .views.auth_view import AuthView
from .views.files_view import FilesView
from .views.home_view import HomeView
from .views.log_dialog import LogDialog
from .views.search_view import SearchView


class MainWindow(QMainWindow):
    def __init__(self, state: Optional[AppState] = None) -> None:
        super().__init__()
        self.setWindowTitle("Lodestone")
        self.resize(1100, 760)

        self.state = state or AppState.create(runner=TaskRunner())
        self._log_dialog: Optional[LogDialog] = None

        central = QWidget(self)
        root = QVBoxLayout(central)
        root.setContentsMargins(0, 0, 0, 0)
        root.addWidget(self._build_nav())
        root.addWidget(self._build_error_banner())

        self.stack = QStackedWidget()
        self.pages: Dict[ViewState, QWidget] = {
            ViewState.HOME: HomeView(self.state),
            ViewState.LOGIN: AuthView(self.state, ViewState.LOGIN, status_cb=self._set_status),
            ViewState.REGISTER: AuthView(self.state, ViewState.REGISTER, status_cb=self._set_status),
            ViewState.FILES: FilesView(self.state, status_cb=self._set_status),
            ViewState.SEARCH: SearchView(self.state, status_cb=self._set_status),
        }
        for page in self.pages.values():
            self.stack.addWidget(page)
        root.addWidget(self.stack, 1)
        self.setCentralWidget(central)

        self._build_menu()
        self._apply_pointer_cursors()
        self.statusBar().showMessage("Ready")

        self.state.subscribe(self._render)
        self._render()
        self.state.start()

    def _build_nav(self) -> QWidget:
        nav = QFrame()
        nav.setObjectName("nav")
        nav.setStyleSheet("#nav { background: #ffffff; border-bottom: 1px solid #e6e6e6; }")
        layout = QHBoxLayout(nav)
        brand = QLabel("Lodestone")
        brand.setStyleSheet("font-size: 20px; font-weight: 700; color: #1d4d8f;")
        layout.addWidget(brand)
        layout.addStretch(1)

        go = self.state.views.navigate
        self.nav_buttons: Dict[ViewState, QPushButton] = {}
        for view, label in ((ViewState.HOME, "Home"), (ViewState.FILES, "Files"), (ViewState.SEARCH, "Search")):
            btn = QPushButton(label)
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, v=view: go(v))
            self.nav_buttons[view] = btn
            layout.addWidget(btn)

        self.user_label = QLabel()
        self.logout_btn = QPushButton("Logout")
        self.logout_btn.clicked.connect(self.state.session.logout)
        self.sign_in_btn = QPushButton("Sign In")
        self.sign_in_btn.clicked.connect(lambda: go(ViewState.LOGIN))
        self.sign_up_btn = QPushButton("Sign Up")
        self.sign_up_btn.clicked.connect(lambda: go(ViewState.REGISTER))
        for widget in (self.user_label, self.logout_btn, self.sign_in_btn, self.sign_up_btn):
            layout.addWidget(widget)
        return nav

    def _build_error_banner(self) -> QWidget:
        self.error_banner = QFrame()
        self.error_banner.setObjectName("errorBanner")
        self.error_banner.setStyleSheet(
            "#errorBanner { background: #fdecea; border: 1px solid #e57373; border-radius: 6px; }"
        )
        layout = QHBoxLayout(self.error_banner)
        self.error_label = QLabel()
        self.error_label.setStyleSheet("color: #b71c1c;")
        self.error_label.setWordWrap(True)
        dismiss = QToolButton()
        dismiss.setText("×")
        dismiss.clicked.connect(self.state.errors.clear)
        layout.addWidget(self.error_label, 1)
        layout.addWidget(dismiss)
        return self.error_banner

    def _build_menu(self) -> None:
        menu = self.menuBar().addMenu("Session")
        act_log = QAction("Show HTTP log", self)
        act_log.triggered.connect(self._show_log)
        menu.addAction(act_log)

        act_logout = QAction("Sign out", self)
        act_logout.triggered.connect(self.state.session.logout)
        menu.addAction(act_logout)

    def _apply_pointer_cursors(self) -> None:
        for btn in self.findChildren(QPushButton):
            btn.setCursor(Qt.PointingHandCursor)
        for btn in self.findChildren(QToolButton):
            btn.setCursor(Qt.PointingHandCursor)

    def _show_log(self) -> None:
        if self._log_dialog is None:
            self._log_dialog = LogDialog(self.state.gateway.http_log_path, self)
        self._log_dialog.show()
        self._log_dialog.raise_()

    def _render(self) -> None:
        session = self.state.session
        signed_in = session.is_authenticated
        for view, btn in self.nav_buttons.items():
            btn.setVisible(signed_in)
            btn.setChecked(view is self.state.views.current)
        self.user_label.setVisible(signed_in)
        self.user_label.setText(session.identity.username if session.identity else "")
        self.logout_btn.setVisible(signed_in)
        self.sign_in_btn.setVisible(not signed_in)
        self.sign_up_btn.setVisible(not signed_in)

        self.error_banner.setVisible(bool(self.state.errors))
        self.error_label.setText(self.state.errors.message or "")

        if self.state.busy:
            self._set_status("Working...")
        elif self.statusBar().currentMessage() == "Working...":
            self.statusBar().clearMessage()

        current = self.state.views.current
        if not self.state.views.can_enter(current):
            current = ViewState.HOME
        page = self.pages[current]
        self.stack.setCurrentWidget(page)
        page.render()

    def _set_status(self, text: str) -> None:
        self.statusBar().showMessage(text)

    def closeEvent(self, event) -> None:
        self.state.close()
        super().closeEvent(event)
