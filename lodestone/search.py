from typing import Any

from endpoints import SEMANTIC
from .client import ApiGateway
from .errors import ApiError, AuthError, ValidationError
from .models import SearchQuery, SearchResultSet
from .runner import ImmediateRunner
from .session import SessionManager
from .state import ErrorState, Flow
from .utils import get_logger


class SearchController(Flow):
    """Submits semantic queries and keeps the last result set.

    Overlapping submissions are not sequenced: whichever response completes
    last replaces ``results``.
    """

    def __init__(
        self,
        gateway: ApiGateway,
        session: SessionManager,
        errors: ErrorState,
        runner: Any = None,
    ) -> None:
        super().__init__()
        self.gateway = gateway
        self.session = session
        self.errors = errors
        self.runner = runner or ImmediateRunner()
        self.logger = get_logger("lodestone.search")
        self.results: SearchResultSet = None

    def submit(self, query: SearchQuery) -> bool:
        if not (query.query or "").strip():
            self.errors.report(ValidationError("Search query is required"))
            return False
        credential = self.session.credential
        if not credential:
            self.errors.report(AuthError("Sign in to search"))
            return False
        self.errors.clear()
        payload = query.to_payload()

        def work() -> SearchResultSet:
            return self.gateway.call(
                SEMANTIC["query"]["path"],
                SEMANTIC["query"]["method"],
                credential=credential,
                json=payload,
            )

        def done(results: SearchResultSet) -> None:
            self.results = results
            self._notify()

        def err(exc: Exception) -> None:
            self.logger.info("Search failed: %s", exc)
            status = exc.status if isinstance(exc, ApiError) else None
            self.errors.report(ApiError(status, "Search failed"))

        self.logger.debug("Search dispatch %s", payload)
        self._dispatch(self.runner, work, on_result=done, on_error=err)
        return True

    def clear(self) -> None:
        self.results = None
        self._notify()
