from typing import Any, Dict, Optional
from urllib.parse import unquote
import json
import os
import re

try:
    import httpx
except ModuleNotFoundError as exc:  # pragma: no cover - user environment dependency
    raise ModuleNotFoundError(
        "Missing dependency 'httpx'. Install with: pip install httpx"
    ) from exc

from endpoints import BASE_URL
from .errors import ApiError, NetworkError
from .models import DownloadedFile
from .utils import (
    append_log_line,
    env_flag,
    get_logger,
    redact_payload,
    redacted_headers,
    safe_filename,
    truncate_text,
)

_DISPOSITION_EXT = re.compile(r"filename\*\s*=\s*[^']*'[^']*'([^;]+)", re.IGNORECASE)
_DISPOSITION = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


def _default_timeout() -> float:
    try:
        return float(os.getenv("LODESTONE_TIMEOUT", "30"))
    except ValueError:
        return 30.0


def _default_http_log() -> Optional[str]:
    path = os.getenv("LODESTONE_HTTP_LOG")
    if path is None:
        return os.path.join(os.getcwd(), "lodestone_http.log")
    return path or None


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    match = _DISPOSITION_EXT.search(header)
    if match:
        return safe_filename(unquote(match.group(1).strip()))
    match = _DISPOSITION.search(header)
    if match:
        return safe_filename(match.group(1).strip())
    return None


class ApiGateway:
    """Single entry point for every request to the Lodestone API.

    The gateway never looks up a credential by itself: callers pass the
    current bearer token with each call. Failures come back as ``ApiError``
    (non-success status) or ``NetworkError`` (transport failure); session and
    error state are left to the caller.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        http_log_path: Optional[str] = "",
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = _default_timeout() if timeout is None else timeout
        self.logger = get_logger('lodestone.http')
        self._client = httpx.Client(
            base_url=self.base_url, timeout=self.timeout, transport=transport, follow_redirects=True
        )
        self.http_log_path = _default_http_log() if http_log_path == "" else http_log_path
        self._rotate_log = env_flag("LODESTONE_HTTP_LOG_ROTATE")

    def _default_headers(self, credential: Optional[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        return headers

    def _log_line(self, line: str) -> None:
        if not self.http_log_path:
            return
        try:
            append_log_line(self.http_log_path, line, rotate_daily=self._rotate_log)
        except OSError as exc:
            self.logger.debug("HTTP log write failed: %s", exc)

    def request(self, method: str, path: str, credential: Optional[str] = None, **kwargs: Any) -> httpx.Response:
        url = path if path.startswith('http') else f"{self.base_url}{path}"
        headers = self._default_headers(credential)
        headers.update(kwargs.get('headers', {}) or {})
        kwargs['headers'] = headers
        redacted = redacted_headers(headers)
        payload = None
        if "json" in kwargs:
            payload = redact_payload(kwargs.get("json"))
        elif "data" in kwargs:
            payload = redact_payload(kwargs.get("data"))
        if kwargs.get("files"):
            payload = {"files": sorted(kwargs["files"]), "data": payload}
        self.logger.debug('HTTP %s %s headers=%s', method, url, redacted)
        if payload is not None:
            self._log_line(f"{method} {url} headers={redacted} payload={payload}")
        else:
            self._log_line(f"{method} {url} headers={redacted}")
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self.logger.debug('HTTP %s %s failed: %s', method, url, exc)
            self._log_line(f"{method} {url} error={exc!r}")
            raise NetworkError(f"Network error: {exc}") from exc

        content_type = resp.headers.get("content-type", "")
        if "json" in content_type:
            try:
                response_body: Any = redact_payload(resp.json())
            except ValueError:
                response_body = truncate_text(resp.text or "")
        elif content_type.startswith("text/") or not resp.content:
            response_body = truncate_text(resp.text or "")
        else:
            response_body = f"<{len(resp.content)} bytes {content_type}>"
        self._log_line(
            f"{method} {url} status={resp.status_code} response={json.dumps(response_body, ensure_ascii=True)}",
        )
        if resp.is_error:
            raise ApiError(resp.status_code, resp.text)
        return resp

    def call(
        self,
        path: str,
        method: str = "GET",
        *,
        credential: Optional[str] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        kwargs: Dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if data is not None:
            kwargs["data"] = data
        if files is not None:
            kwargs["files"] = files
        resp = self.request(method, path, credential=credential, **kwargs)
        if not resp.content.strip():
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(resp.status_code, f"Non-JSON response: {resp.text[:200]}") from exc

    def call_binary(
        self,
        path: str,
        *,
        credential: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> DownloadedFile:
        resp = self.request("GET", path, credential=credential, headers={"Accept": "*/*"})
        suggested = filename_from_disposition(resp.headers.get("content-disposition"))
        name = suggested or safe_filename(filename) or path.rstrip("/").split("/")[-1]
        return DownloadedFile(filename=name, content=resp.content)

    def close(self) -> None:
        self._client.close()
