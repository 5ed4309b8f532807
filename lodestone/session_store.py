import json
import os
from pathlib import Path
from typing import Optional

DEFAULT_SESSION_PATH = os.getenv("LODESTONE_SESSION_PATH", ".lodestone/session.json")
TOKEN_KEY = "token"


def load_credential(path: str) -> Optional[str]:
    session_path = Path(path)
    if not session_path.exists():
        return None
    data = json.loads(session_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Session file must be a JSON object")
    token = data.get(TOKEN_KEY)
    if token is not None and not isinstance(token, str):
        raise ValueError(f"Session key {TOKEN_KEY!r} must be a string")
    return token or None


def save_credential(path: str, token: str) -> None:
    session_path = Path(path)
    session_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {TOKEN_KEY: token}
    session_path.write_text(json.dumps(payload, indent=2, ensure_ascii=True) + "\n", encoding="utf-8")
    os.chmod(session_path, 0o600)


def clear_credential(path: str) -> None:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
