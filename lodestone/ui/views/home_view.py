from typing import Callable, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from ...app import AppState
from ...models import ViewState


def _card(title: str, text: str, button: str, on_click: Callable[[], None]) -> QFrame:
    card = QFrame()
    card.setObjectName("homeCard")
    card.setStyleSheet("#homeCard { background: #ffffff; border-radius: 10px; border: 1px solid #e6e6e6; }")
    layout = QVBoxLayout(card)
    layout.setContentsMargins(16, 16, 16, 16)
    heading = QLabel(title)
    heading.setStyleSheet("font-size: 16px; font-weight: 600;")
    body = QLabel(text)
    body.setWordWrap(True)
    body.setStyleSheet("color: #555555;")
    btn = QPushButton(button)
    btn.clicked.connect(on_click)
    layout.addWidget(heading)
    layout.addWidget(body)
    layout.addStretch(1)
    layout.addWidget(btn)
    return card


class HomeView(QWidget):
    def __init__(self, state: AppState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state

        root = QVBoxLayout(self)
        root.setContentsMargins(24, 24, 24, 24)
        title = QLabel("Welcome to Lodestone")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 26px; font-weight: 700;")
        blurb = QLabel(
            "A file management system with semantic search. Upload your documents "
            "and find what is in them with natural language queries."
        )
        blurb.setAlignment(Qt.AlignCenter)
        blurb.setWordWrap(True)
        root.addWidget(title)
        root.addWidget(blurb)

        go = self.state.views.navigate
        self.member_panel = QWidget()
        cards = QHBoxLayout(self.member_panel)
        cards.addWidget(_card("Upload Files", "Upload and manage your documents.", "Manage Files",
                              lambda: go(ViewState.FILES)))
        cards.addWidget(_card("Semantic Search", "Find relevant content using natural language.", "Start Searching",
                              lambda: go(ViewState.SEARCH)))
        cards.addWidget(_card("Document Library", "Access all your uploaded documents.", "View Library",
                              lambda: go(ViewState.FILES)))

        self.guest_panel = QWidget()
        guest = QVBoxLayout(self.guest_panel)
        hint = QLabel("Sign in to access your files and start using semantic search.")
        hint.setAlignment(Qt.AlignCenter)
        guest.addWidget(hint)
        buttons = QHBoxLayout()
        buttons.addStretch(1)
        sign_in = QPushButton("Sign In")
        sign_in.clicked.connect(lambda: go(ViewState.LOGIN))
        sign_up = QPushButton("Create Account")
        sign_up.clicked.connect(lambda: go(ViewState.REGISTER))
        buttons.addWidget(sign_in)
        buttons.addWidget(sign_up)
        buttons.addStretch(1)
        guest.addLayout(buttons)

        root.addSpacing(16)
        root.addWidget(self.member_panel)
        root.addWidget(self.guest_panel)
        root.addStretch(1)

    def render(self) -> None:
        signed_in = self.state.session.is_authenticated
        self.member_panel.setVisible(signed_in)
        self.guest_panel.setVisible(not signed_in)
