"""Fake implementations for testing the client core."""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

BASE_URL = "http://lodestone.test"
_FILE_PATH = re.compile(r"^/api/v1/files/(?P<id>[^/]+)(?P<download>/download)?$")


def _json(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, json=payload)


def _detail(status: int, detail: str) -> httpx.Response:
    return httpx.Response(status, json={"detail": detail})


def _multipart_parts(request: httpx.Request) -> Dict[str, Tuple[Optional[str], bytes]]:
    """Map each multipart field name to its (filename, content)."""
    boundary = request.headers["content-type"].split("boundary=", 1)[1].encode("ascii")
    parts: Dict[str, Tuple[Optional[str], bytes]] = {}
    for part in request.content.split(b"--" + boundary):
        head, _, body = part.partition(b"\r\n\r\n")
        name = re.search(rb'; name="([^"]*)"', head)
        if name is None:
            continue
        filename = re.search(rb'filename="([^"]*)"', head)
        parts[name.group(1).decode("utf-8")] = (
            filename.group(1).decode("utf-8") if filename else None,
            body[: -len(b"\r\n")] if body.endswith(b"\r\n") else body,
        )
    return parts


def _multipart_file(request: httpx.Request) -> Tuple[str, bytes]:
    """Extract (filename, content) of the ``file`` field of a multipart body."""
    parts = _multipart_parts(request)
    if "file" not in parts:
        raise AssertionError("multipart body has no 'file' field")
    filename, content = parts["file"]
    return filename or "", content


class FakeService:
    """In-memory stand-in for the Lodestone API.

    Implements the REST contract behind an ``httpx.MockTransport`` and records
    every request for assertions. ``fail`` forces a response for one route.
    """

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.files: Dict[str, List[Dict[str, Any]]] = {}
        self.blobs: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        self.search_results: Dict[str, Any] = {}
        self.default_search_result: Any = {"matches": []}
        self._overrides: Dict[Tuple[str, str], httpx.Response] = {}
        self._next_id = 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add_user(self, username: str, password: str, email: Optional[str] = None) -> Dict[str, Any]:
        user = {
            "id": self._new_id(),
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        }
        self.users[username] = user
        self.files.setdefault(username, [])
        return user

    def issue_token(self, username: str) -> str:
        token = f"token-{username}-{len(self.tokens) + 1}"
        self.tokens[token] = username
        return token

    def add_file(self, username: str, name: str, content: bytes = b"data", status: str = "completed") -> Dict[str, Any]:
        record = {
            "id": self._new_id(),
            "original_filename": name,
            "file_size": len(content),
            "upload_status": status,
        }
        self.files.setdefault(username, []).append(record)
        self.blobs[str(record["id"])] = content
        return record

    def fail(self, method: str, path: str, status: int, text: str = "") -> None:
        self._overrides[(method, path)] = httpx.Response(status, text=text)

    def fail_network(self, method: str, path: str) -> None:
        self._overrides[(method, path)] = None

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self._overrides:
            forced = self._overrides[key]
            if forced is None:
                raise httpx.ConnectError("connection refused", request=request)
            return forced
        route = self._route(request)
        if route is None:
            return _detail(404, "Not Found")
        return route(request)

    def _route(self, request: httpx.Request) -> Optional[Callable[[httpx.Request], httpx.Response]]:
        path = request.url.path
        routes = {
            ("POST", "/api/v1/auth/register"): self._register,
            ("POST", "/api/v1/auth/login"): self._login,
            ("GET", "/api/v1/auth/me"): self._me,
            ("GET", "/api/v1/files/"): self._list,
            ("POST", "/api/v1/files/upload"): self._upload,
            ("POST", "/api/v1/semantic/query"): self._search,
        }
        if (request.method, path) in routes:
            return routes[(request.method, path)]
        match = _FILE_PATH.match(path)
        if match and match.group("download") and request.method == "GET":
            return lambda req: self._download(req, match.group("id"))
        if match and not match.group("download") and request.method == "DELETE":
            return lambda req: self._delete(req, match.group("id"))
        return None

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _current_user(self, request: httpx.Request) -> Optional[str]:
        header = request.headers.get("authorization", "")
        if not header.startswith("Bearer "):
            return None
        return self.tokens.get(header[len("Bearer "):])

    def _register(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["username"] in self.users:
            return httpx.Response(400, text="Username already registered")
        user = self.add_user(body["username"], body["password"], body["email"])
        return _json(201, {k: v for k, v in user.items() if k != "password"})

    def _login(self, request: httpx.Request) -> httpx.Response:
        form = {name: content.decode("utf-8") for name, (_, content) in _multipart_parts(request).items()}
        user = self.users.get(form.get("username", ""))
        if user is None or user["password"] != form.get("password"):
            return _detail(401, "Incorrect username or password")
        return _json(200, {"access_token": self.issue_token(user["username"]), "token_type": "bearer"})

    def _me(self, request: httpx.Request) -> httpx.Response:
        username = self._current_user(request)
        if username is None:
            return _detail(401, "Could not validate credentials")
        user = self.users[username]
        return _json(200, {"id": user["id"], "username": user["username"], "email": user["email"]})

    def _list(self, request: httpx.Request) -> httpx.Response:
        username = self._current_user(request)
        if username is None:
            return _detail(401, "Could not validate credentials")
        return _json(200, self.files[username])

    def _upload(self, request: httpx.Request) -> httpx.Response:
        username = self._current_user(request)
        if username is None:
            return _detail(401, "Could not validate credentials")
        filename, content = _multipart_file(request)
        return _json(200, self.add_file(username, filename, content, status="uploaded"))

    def _delete(self, request: httpx.Request, file_id: str) -> httpx.Response:
        username = self._current_user(request)
        if username is None:
            return _detail(401, "Could not validate credentials")
        records = self.files[username]
        for record in records:
            if str(record["id"]) == file_id:
                records.remove(record)
                return httpx.Response(204)
        return _detail(404, "File not found")

    def _download(self, request: httpx.Request, file_id: str) -> httpx.Response:
        username = self._current_user(request)
        if username is None:
            return _detail(401, "Could not validate credentials")
        for record in self.files[username]:
            if str(record["id"]) == file_id:
                return httpx.Response(
                    200,
                    content=self.blobs[file_id],
                    headers={
                        "content-type": "application/octet-stream",
                        "content-disposition": f'attachment; filename="{record["original_filename"]}"',
                    },
                )
        return _detail(404, "File not found")

    def _search(self, request: httpx.Request) -> httpx.Response:
        if self._current_user(request) is None:
            return _detail(401, "Could not validate credentials")
        body = json.loads(request.content)
        return _json(200, self.search_results.get(body["query"], self.default_search_result))


class DeferredRunner:
    """Runner that holds tasks until the test completes them, in any order."""

    def __init__(self) -> None:
        self.pending: List[Tuple[Callable[[], Any], Any, Any, Any]] = []

    def run(self, fn, on_result=None, on_error=None, on_finished=None) -> None:
        self.pending.append((fn, on_result, on_error, on_finished))

    def complete(self, index: int = 0) -> None:
        fn, on_result, on_error, on_finished = self.pending.pop(index)
        try:
            result = fn()
        except Exception as exc:  # noqa: BLE001 - routed like the real runners
            if on_error:
                on_error(exc)
        else:
            if on_result:
                on_result(result)
        finally:
            if on_finished:
                on_finished()

    def complete_all(self) -> None:
        while self.pending:
            self.complete(0)
