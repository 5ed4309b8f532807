from typing import Any, Callable, List, Optional

from .utils import get_logger

Listener = Callable[[], None]


class Observable:
    """Minimal change notification for the rendering layer."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class Flow(Observable):
    """Observable that counts its requests still running.

    ``in_flight`` goes up when work is handed to the runner and back down when
    the runner reports it finished, whatever the outcome.
    """

    def __init__(self) -> None:
        super().__init__()
        self.in_flight = 0

    @property
    def busy(self) -> bool:
        return self.in_flight > 0

    def _dispatch(
        self,
        runner: Any,
        fn: Callable[[], Any],
        on_result: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        def finished() -> None:
            self.in_flight -= 1
            self._notify()

        self.in_flight += 1
        self._notify()
        runner.run(fn, on_result=on_result, on_error=on_error, on_finished=finished)


class ErrorState(Observable):
    """The single user-facing error slot shared by every flow."""

    def __init__(self) -> None:
        super().__init__()
        self.logger = get_logger("lodestone.errors")
        self.message: Optional[str] = None
        self.error: Optional[Exception] = None

    def __bool__(self) -> bool:
        return self.message is not None

    def report(self, error: Exception) -> None:
        self.message = str(error)
        self.error = error
        self.logger.info("Error: %s", self.message)
        self._notify()

    def clear(self) -> None:
        if self.message is None:
            return
        self.message = None
        self.error = None
        self._notify()
