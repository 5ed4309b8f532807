from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from endpoints import BASE_URL
from .client import ApiGateway
from .files import FileRegistry
from .models import ViewState
from .runner import ImmediateRunner
from .search import SearchController
from .session import SessionManager
from .session_store import DEFAULT_SESSION_PATH
from .state import ErrorState
from .views import ViewController


@dataclass
class AppState:
    gateway: ApiGateway
    errors: ErrorState
    session: SessionManager
    files: FileRegistry
    search: SearchController
    views: ViewController

    @classmethod
    def create(
        cls,
        base_url: str = BASE_URL,
        session_path: str = DEFAULT_SESSION_PATH,
        runner: Any = None,
        transport: Optional[httpx.BaseTransport] = None,
        http_log_path: Optional[str] = "",
    ) -> "AppState":
        runner = runner or ImmediateRunner()
        gateway = ApiGateway(base_url=base_url, transport=transport, http_log_path=http_log_path)
        errors = ErrorState()
        session = SessionManager(gateway, errors, session_path=session_path, runner=runner)
        files = FileRegistry(gateway, session, errors, runner=runner)
        search = SearchController(gateway, session, errors, runner=runner)
        views = ViewController(session, files)
        # Nothing from the previous account may outlive its session.
        session.on_logout(files.clear)
        session.on_logout(search.clear)
        session.on_login(lambda: views.navigate(ViewState.HOME))
        return cls(gateway=gateway, errors=errors, session=session, files=files, search=search, views=views)

    @property
    def busy(self) -> bool:
        return any(flow.busy for flow in (self.session, self.files, self.search))

    def subscribe(self, listener: Callable[[], None]) -> None:
        for part in (self.errors, self.session, self.files, self.search, self.views):
            part.subscribe(listener)

    def start(self) -> None:
        self.session.restore()

    def close(self) -> None:
        self.gateway.close()
