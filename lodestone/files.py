from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple, Union

from endpoints import FILES
from .client import ApiGateway
from .errors import ApiError, AuthError, UploadError
from .models import DownloadedFile, FileBlob, FileRecord
from .runner import ImmediateRunner
from .session import SessionManager
from .state import ErrorState, Flow
from .utils import get_logger

SIGN_IN_REQUIRED = "Sign in to manage files"


def parse_listing(payload: Any) -> Tuple[FileRecord, ...]:
    if not isinstance(payload, list):
        raise ValueError(f"Unexpected file listing: {payload!r}")
    seen: Dict[str, FileRecord] = {}
    items: List[FileRecord] = []
    for row in payload:
        record = FileRecord.from_json(row)
        if record.id in seen:
            continue
        seen[record.id] = record
        items.append(record)
    return tuple(items)


class FileRegistry(Flow):
    """Client-side mirror of the user's files.

    The mirror is never patched: every successful upload or delete is followed
    by a full re-fetch, and any failure leaves the previous listing in place.
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
        self.logger = get_logger("lodestone.files")
        self.records: Tuple[FileRecord, ...] = ()

    def get(self, file_id: str) -> FileRecord:
        for record in self.records:
            if record.id == str(file_id):
                return record
        raise KeyError(file_id)

    def refresh(self) -> None:
        credential = self._credential()
        if credential is None:
            return

        def work() -> Tuple[FileRecord, ...]:
            return parse_listing(
                self.gateway.call(FILES["list"]["path"], FILES["list"]["method"], credential=credential)
            )

        def done(records: Tuple[FileRecord, ...]) -> None:
            self.records = records
            self.logger.info("%d file(s) loaded", len(records))
            self._notify()

        self._dispatch(self.runner, work, on_result=done, on_error=self._failed("Failed to fetch files"))

    def upload(self, blob: Union[FileBlob, str, Path]) -> None:
        credential = self._credential()
        if credential is None:
            return

        def work() -> Any:
            item = blob if isinstance(blob, FileBlob) else FileBlob.from_path(blob)
            return self.gateway.call(
                FILES["upload"]["path"],
                FILES["upload"]["method"],
                credential=credential,
                files={"file": (item.name, item.content, item.content_type)},
            )

        def done(_record) -> None:
            self.logger.info("Upload ok")
            self.refresh()

        def err(exc: Exception) -> None:
            status = exc.status if isinstance(exc, ApiError) else None
            self.logger.info("Upload failed: %s", exc)
            self.errors.report(UploadError(status, "File upload failed"))

        self._dispatch(self.runner, work, on_result=done, on_error=err)

    def delete(self, file_id: str) -> None:
        credential = self._credential()
        if credential is None:
            return
        path = FILES["delete"]["path"].format(file_id=file_id)

        def work() -> Any:
            return self.gateway.call(path, FILES["delete"]["method"], credential=credential)

        def done(_) -> None:
            self.logger.info("Deleted id=%s", file_id)
            self.refresh()

        self._dispatch(self.runner, work, on_result=done, on_error=self._failed("Failed to delete file"))

    def download(self, file_id: str, filename: str, save: Callable[[DownloadedFile], None]) -> None:
        credential = self._credential()
        if credential is None:
            return
        path = FILES["download"]["path"].format(file_id=file_id)

        def work() -> DownloadedFile:
            payload = self.gateway.call_binary(path, credential=credential, filename=filename)
            # The name the user picked wins over the server's suggestion.
            return DownloadedFile(filename=filename or payload.filename, content=payload.content)

        def done(payload: DownloadedFile) -> None:
            self.logger.info("Downloaded id=%s (%d bytes)", file_id, len(payload.content))
            save(payload)

        self._dispatch(self.runner, work, on_result=done, on_error=self._failed("Download failed"))

    def clear(self) -> None:
        self.records = ()
        self._notify()

    def _credential(self):
        if not self.session.credential:
            self.errors.report(AuthError(SIGN_IN_REQUIRED))
            return None
        return self.session.credential

    def _failed(self, message: str) -> Callable[[Exception], None]:
        def err(exc: Exception) -> None:
            self.logger.info("%s: %s", message, exc)
            status = exc.status if isinstance(exc, ApiError) else None
            self.errors.report(ApiError(status, message))

        return err
