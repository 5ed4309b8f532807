from typing import Callable, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFormLayout, QFrame, QLabel, QLineEdit, QPushButton, QVBoxLayout, QWidget

from ...app import AppState
from ...models import AuthFlow, LoginRequest, RegisterRequest, ViewState


class AuthView(QWidget):
    """Sign-in or account creation form, fixed at construction."""

    def __init__(
        self,
        state: AppState,
        view: ViewState,
        status_cb: Optional[Callable[[str], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.state = state
        self.view = view
        self._status = status_cb or (lambda _msg: None)
        registering = view is ViewState.REGISTER

        root = QVBoxLayout(self)
        root.setContentsMargins(24, 24, 24, 24)
        panel = QFrame()
        panel.setFixedWidth(420)
        root.addWidget(panel, alignment=Qt.AlignHCenter)
        root.addStretch(1)

        layout = QVBoxLayout(panel)
        title = QLabel("Create Account" if registering else "Sign In")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 20px; font-weight: 700;")
        layout.addWidget(title)

        form = QFormLayout()
        self.email = QLineEdit()
        self.username = QLineEdit()
        self.password = QLineEdit()
        self.password.setEchoMode(QLineEdit.Password)
        if registering:
            form.addRow("Email", self.email)
        form.addRow("Username", self.username)
        form.addRow("Password", self.password)
        layout.addLayout(form)
        self.password.returnPressed.connect(self._submit)

        self.submit_btn = QPushButton("Create Account" if registering else "Sign In")
        self.submit_btn.clicked.connect(self._submit)
        layout.addWidget(self.submit_btn)

        switch = QPushButton("Already have an account? Sign in" if registering
                             else "Don't have an account? Sign up")
        switch.setFlat(True)
        switch.clicked.connect(
            lambda: self.state.views.navigate(ViewState.LOGIN if registering else ViewState.REGISTER)
        )
        layout.addWidget(switch)

    def _flow(self) -> AuthFlow:
        if self.view is ViewState.REGISTER:
            return RegisterRequest(
                email=self.email.text().strip(),
                username=self.username.text().strip(),
                password=self.password.text(),
            )
        return LoginRequest(username=self.username.text().strip(), password=self.password.text())

    def _submit(self) -> None:
        flow = self._flow()
        if not flow.username or not flow.password or (isinstance(flow, RegisterRequest) and not flow.email):
            self._status("Fill in every field.")
            return
        self._status("Creating account..." if isinstance(flow, RegisterRequest) else "Signing in...")
        self.state.session.submit(flow)

    def render(self) -> None:
        self.submit_btn.setEnabled(not self.state.session.busy)
        if self.state.session.credential is not None:
            self.password.clear()
