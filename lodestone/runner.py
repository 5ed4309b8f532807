from typing import Any, Callable, Optional

import httpx

from .errors import LodestoneError
from .utils import get_logger

# Failures a flow is expected to translate into ErrorState. Anything else is a
# programming error and is re-raised.
EXPECTED_ERRORS = (LodestoneError, httpx.HTTPError, ValueError, KeyError, OSError)


class ImmediateRunner:
    """Runs work inline on the calling thread.

    Mirrors ``ui.threads.TaskRunner.run`` so flows can be driven without an
    event loop (command line, tests).
    """

    def __init__(self) -> None:
        self.logger = get_logger("lodestone.runner")

    def run(
        self,
        fn: Callable[[], Any],
        on_result: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        try:
            result = fn()
        except EXPECTED_ERRORS as exc:
            self.logger.debug("Task error: %r", exc)
            if on_error is None:
                raise
            on_error(exc)
        else:
            if on_result:
                on_result(result)
        finally:
            if on_finished:
                on_finished()
