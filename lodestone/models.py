import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

# Opaque JSON value returned by the semantic query endpoint.
SearchResultSet = Any


class ViewState(str, Enum):
    HOME = "home"
    LOGIN = "login"
    REGISTER = "register"
    FILES = "files"
    SEARCH = "search"


@dataclass(frozen=True)
class User:
    id: str
    username: str
    email: str

    @classmethod
    def from_json(cls, row: Dict[str, Any]) -> "User":
        if not isinstance(row, dict) or row.get("id") is None:
            raise ValueError(f"Unexpected profile payload: {row!r}")
        return cls(
            id=str(row.get("id")),
            username=row.get("username") or "",
            email=row.get("email") or "",
        )


@dataclass(frozen=True)
class FileRecord:
    id: str
    original_filename: str
    file_size: int
    upload_status: str

    @classmethod
    def from_json(cls, row: Dict[str, Any]) -> "FileRecord":
        if not isinstance(row, dict):
            raise ValueError(f"Unexpected file row: {row!r}")
        try:
            size = int(row.get("file_size") or 0)
        except TypeError as exc:
            raise ValueError(f"Unexpected file size in {row!r}") from exc
        return cls(
            id=str(row.get("id")),
            original_filename=row.get("original_filename") or row.get("filename") or "",
            file_size=size,
            upload_status=str(row.get("upload_status") or ""),
        )


@dataclass(frozen=True)
class FileBlob:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileBlob":
        p = Path(path)
        content_type = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(name=p.name, content=p.read_bytes(), content_type=content_type)


@dataclass(frozen=True)
class DownloadedFile:
    filename: str
    content: bytes


@dataclass
class SearchQuery:
    query: str
    collection_name: Optional[str] = None
    max_results: int = 10
    score_threshold: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"query": self.query, "max_results": self.max_results}
        if self.collection_name:
            payload["collection_name"] = self.collection_name
        if self.score_threshold is not None:
            payload["score_threshold"] = self.score_threshold
        return payload


@dataclass(frozen=True)
class LoginRequest:
    username: str
    password: str

    def form(self) -> Dict[str, Tuple[None, bytes]]:
        """Multipart form fields, sent without a filename."""
        return {
            "username": (None, self.username.encode("utf-8")),
            "password": (None, self.password.encode("utf-8")),
        }


@dataclass(frozen=True)
class RegisterRequest:
    email: str
    username: str
    password: str

    def login_request(self) -> LoginRequest:
        return LoginRequest(username=self.username, password=self.password)


AuthFlow = Union[LoginRequest, RegisterRequest]
