"""Tests for logging and formatting helpers."""

import os
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from lodestone.utils import (
    append_log_line,
    format_bytes,
    prune_archives,
    redact_payload,
    redacted_headers,
    rotate_log,
    safe_filename,
    truncate_text,
)


def _age(path: Path, days: int) -> None:
    stamp = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (stamp, stamp))


def test_redact_payload_nested() -> None:
    payload = {"username": "alice", "password": "pw", "inner": [{"access_token": "t", "n": 1}]}

    assert redact_payload(payload) == {"username": "alice", "password": "***", "inner": [{"access_token": "***", "n": 1}]}


def test_redacted_headers_hides_authorization() -> None:
    assert redacted_headers({"Authorization": "Bearer x", "Accept": "*/*"}) == {
        "Authorization": "[REDACTED]",
        "Accept": "*/*",
    }


def test_truncate_text() -> None:
    assert truncate_text(None) == ""
    assert truncate_text("short") == "short"
    assert truncate_text("x" * 12, limit=10) == "xxxxxxxxxx...[truncated 2 chars]"


def test_format_bytes() -> None:
    assert format_bytes(512) == "512.00B"
    assert format_bytes(2048) == "2.00KB"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("report.pdf", "report.pdf"),
        ("../../escaped.bin", "escaped.bin"),
        ("/etc/passwd", "passwd"),
        ("..\\..\\win.ini", "win.ini"),
        ("dir/", "dir"),
        ("..", None),
        ("", None),
        (None, None),
    ],
)
def test_safe_filename(name, expected) -> None:
    assert safe_filename(name) == expected


def test_append_log_line(tmp_path: Path) -> None:
    path = tmp_path / "http.log"

    append_log_line(str(path), "GET /x\n")
    append_log_line(str(path), "GET /y")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[") and lines[0].endswith("] GET /x")


def test_rotate_log_archives_previous_day(tmp_path: Path) -> None:
    log = tmp_path / "http.log"
    log.write_text("old\n", encoding="utf-8")
    _age(log, 1)
    today = date.today()

    archive = rotate_log(str(log), today)

    assert archive == tmp_path / f"http.log.{(today - timedelta(days=1)).isoformat()}.log"
    assert archive.read_text(encoding="utf-8") == "old\n"
    assert not log.exists()


def test_rotate_log_leaves_current_log(tmp_path: Path) -> None:
    log = tmp_path / "http.log"
    log.write_text("fresh\n", encoding="utf-8")

    assert rotate_log(str(log), date.today()) is None
    assert log.read_text(encoding="utf-8") == "fresh\n"


def test_rotate_log_does_not_overwrite_an_archive(tmp_path: Path) -> None:
    log = tmp_path / "http.log"
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    (tmp_path / f"http.log.{yesterday}.log").write_text("first\n", encoding="utf-8")
    log.write_text("second\n", encoding="utf-8")
    _age(log, 1)

    archive = rotate_log(str(log), date.today())

    assert archive.name == f"http.log.{yesterday}-1.log"
    assert (tmp_path / f"http.log.{yesterday}.log").read_text(encoding="utf-8") == "first\n"


def test_append_log_line_rotates_daily(tmp_path: Path) -> None:
    log = tmp_path / "http.log"
    log.write_text("yesterday\n", encoding="utf-8")
    _age(log, 1)

    append_log_line(str(log), "GET /today", rotate_daily=True)

    assert log.read_text(encoding="utf-8").endswith("] GET /today\n")
    assert len(list(tmp_path.glob("http.log.*.log"))) == 1


def test_prune_archives_drops_only_expired_archives(tmp_path: Path) -> None:
    for name in (
        "http.log.2024-05-01.log",
        "http.log.2024-05-02-1.log",
        "http.log.2024-05-09.log",
        "http.log.notes.log",
        "other.log.2024-05-01.log",
    ):
        (tmp_path / name).write_text("x", encoding="utf-8")

    removed = prune_archives(str(tmp_path / "http.log"), date(2024, 5, 10), keep_days=7)

    assert sorted(path.name for path in removed) == ["http.log.2024-05-01.log", "http.log.2024-05-02-1.log"]
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        "http.log.2024-05-09.log",
        "http.log.notes.log",
        "other.log.2024-05-01.log",
    ]


def test_rotation_prunes_old_archives(tmp_path: Path) -> None:
    log = tmp_path / "http.log"
    expired = tmp_path / "http.log.2000-01-01.log"
    expired.write_text("ancient\n", encoding="utf-8")
    log.write_text("old\n", encoding="utf-8")
    _age(log, 1)

    rotate_log(str(log), date.today(), keep_days=7)

    assert not expired.exists()
    assert len(list(tmp_path.glob("http.log.*.log"))) == 1
