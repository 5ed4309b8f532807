from typing import Optional

from .files import FileRegistry
from .models import ViewState
from .session import SessionManager
from .state import Observable
from .utils import get_logger

GUARDED_VIEWS = frozenset({ViewState.FILES, ViewState.SEARCH})


class ViewController(Observable):
    def __init__(self, session: SessionManager, files: Optional[FileRegistry] = None) -> None:
        super().__init__()
        self.session = session
        self.files = files
        self.logger = get_logger("lodestone.views")
        self.current = ViewState.HOME
        session.on_logout(self._force_home)

    def can_enter(self, view: ViewState) -> bool:
        return view not in GUARDED_VIEWS or self.session.is_authenticated

    def navigate(self, view: ViewState) -> ViewState:
        view = ViewState(view)
        if not self.can_enter(view):
            self.logger.warning("Refusing %s view without a signed-in user", view.value)
            return self.current
        self.current = view
        self._notify()
        if view is ViewState.FILES and self.files is not None:
            self.files.refresh()
        return self.current

    def _force_home(self) -> None:
        if self.current is ViewState.HOME:
            return
        self.current = ViewState.HOME
        self._notify()
