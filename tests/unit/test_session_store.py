"""Tests for the persisted credential store."""

import json
import os
import stat
from pathlib import Path

import pytest

from lodestone.session_store import TOKEN_KEY, clear_credential, load_credential, save_credential


def test_save_then_load(tmp_path: Path) -> None:
    path = str(tmp_path / "nested" / "session.json")

    save_credential(path, "abc")

    assert load_credential(path) == "abc"
    assert json.loads(Path(path).read_text(encoding="utf-8")) == {TOKEN_KEY: "abc"}


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_saved_file_is_private(tmp_path: Path) -> None:
    path = tmp_path / "session.json"

    save_credential(str(path), "abc")

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_missing_file_loads_as_none(tmp_path: Path) -> None:
    assert load_credential(str(tmp_path / "nope.json")) is None


def test_empty_token_loads_as_none(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text('{"token": ""}', encoding="utf-8")

    assert load_credential(str(path)) is None


@pytest.mark.parametrize("content", ["[1, 2]", '{"token": 5}', "{broken"])
def test_malformed_store_raises_value_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "session.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        load_credential(str(path))


def test_clear_is_idempotent(tmp_path: Path) -> None:
    path = str(tmp_path / "session.json")
    save_credential(path, "abc")

    clear_credential(path)
    clear_credential(path)

    assert not Path(path).exists()
