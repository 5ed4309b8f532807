from typing import Any, Callable, List, Optional

from endpoints import AUTH
from .client import ApiGateway
from .errors import AuthError, NetworkError
from .models import AuthFlow, LoginRequest, RegisterRequest, User
from .runner import ImmediateRunner
from .session_store import DEFAULT_SESSION_PATH, clear_credential, load_credential, save_credential
from .state import ErrorState, Flow
from .utils import get_logger

LOGIN_FAILED = "Login failed"


class SessionManager(Flow):
    """Owns the bearer credential and the user it resolves to.

    ``identity`` is only ever set from a profile response obtained with the
    credential that is still current, so an anonymous session never carries a
    user and a stale response can not resurrect one after logout.
    """

    def __init__(
        self,
        gateway: ApiGateway,
        errors: ErrorState,
        session_path: str = DEFAULT_SESSION_PATH,
        runner: Any = None,
    ) -> None:
        super().__init__()
        self.gateway = gateway
        self.errors = errors
        self.session_path = session_path
        self.runner = runner or ImmediateRunner()
        self.logger = get_logger("lodestone.session")
        self.credential: Optional[str] = None
        self.identity: Optional[User] = None
        self._login_listeners: List[Callable[[], None]] = []
        self._logout_listeners: List[Callable[[], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    def on_login(self, listener: Callable[[], None]) -> None:
        self._login_listeners.append(listener)

    def on_logout(self, listener: Callable[[], None]) -> None:
        self._logout_listeners.append(listener)

    def restore(self) -> None:
        try:
            token = load_credential(self.session_path)
        except (OSError, ValueError) as exc:
            self.logger.warning("Ignoring unreadable session %s: %s", self.session_path, exc)
            token = None
        if not token:
            return
        self.logger.info("Session restored from %s, validating", self.session_path)
        self.credential = token
        self._notify()
        self.fetch_profile()

    def submit(self, flow: AuthFlow) -> None:
        if isinstance(flow, RegisterRequest):
            self.register(flow.email, flow.username, flow.password)
        elif isinstance(flow, LoginRequest):
            self.login(flow.username, flow.password)
        else:
            raise TypeError(f"Unknown auth flow: {flow!r}")

    def login(self, username: str, password: str) -> None:
        if not self._may_start_auth():
            return
        self.errors.clear()
        self._login(LoginRequest(username=username, password=password))

    def register(self, email: str, username: str, password: str) -> None:
        if not self._may_start_auth():
            return
        self.errors.clear()
        request = RegisterRequest(email=email, username=username, password=password)

        def work():
            return self.gateway.call(
                AUTH["register"]["path"],
                AUTH["register"]["method"],
                json={"email": request.email, "username": request.username, "password": request.password},
            )

        def done(_account) -> None:
            self.logger.info("Account created for %s", request.username)
            # No retry if this login fails: the account exists but stays signed out.
            self._login(request.login_request())

        def err(exc: Exception) -> None:
            if isinstance(exc, NetworkError):
                self.errors.report(exc)
            else:
                self.errors.report(AuthError(str(exc)))

        self._dispatch(self.runner, work, on_result=done, on_error=err)

    def fetch_profile(self) -> None:
        credential = self.credential
        if not credential:
            return

        def work() -> User:
            body = self.gateway.call(AUTH["me"]["path"], AUTH["me"]["method"], credential=credential)
            return User.from_json(body)

        def done(user: User) -> None:
            if self.credential != credential:
                self.logger.debug("Dropping profile for a replaced credential")
                return
            self.identity = user
            self._notify()

        def err(exc: Exception) -> None:
            if self.credential != credential:
                return
            self.logger.warning("Profile fetch failed, signing out: %s", exc)
            self.logout()

        self._dispatch(self.runner, work, on_result=done, on_error=err)

    def logout(self) -> None:
        self.credential = None
        self.identity = None
        try:
            clear_credential(self.session_path)
        except OSError as exc:
            self.logger.warning("Could not remove %s: %s", self.session_path, exc)
        for listener in list(self._logout_listeners):
            listener()
        self._notify()

    def _may_start_auth(self) -> bool:
        if self.credential is None:
            return True
        self.errors.report(AuthError("Already signed in. Log out first."))
        return False

    def _login(self, request: LoginRequest) -> None:
        def work() -> str:
            body = self.gateway.call(AUTH["login"]["path"], AUTH["login"]["method"], files=request.form())
            token = body.get("access_token") if isinstance(body, dict) else None
            if not token:
                raise AuthError(LOGIN_FAILED)
            return str(token)

        def err(exc: Exception) -> None:
            self.logger.info("Login failed for %s: %s", request.username, exc)
            if isinstance(exc, NetworkError):
                self.errors.report(exc)
            else:
                self.errors.report(AuthError(LOGIN_FAILED))

        self._dispatch(self.runner, work, on_result=self._accept_credential, on_error=err)

    def _accept_credential(self, token: str) -> None:
        self.credential = token
        self.identity = None
        try:
            save_credential(self.session_path, token)
        except OSError as exc:
            self.logger.warning("Could not persist session to %s: %s", self.session_path, exc)
        self._notify()
        for listener in list(self._login_listeners):
            listener()
        self.fetch_profile()
