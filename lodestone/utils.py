import logging
import os
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value in ("1", "true", "TRUE")


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(levelname)s %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if env_flag("LODESTONE_DEBUG") else logging.INFO)
    return logger


def redacted_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for k, v in headers.items():
        if k.lower() in ('authorization', 'cookie'):
            redacted[k] = '[REDACTED]'
        else:
            redacted[k] = v
    return redacted


def redact_payload(payload: Any) -> Any:
    if not isinstance(payload, (dict, list)):
        return payload
    secret_keys = (
        "password",
        "token",
        "authorization",
        "cookie",
        "secret",
    )
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        key_l = str(key).lower()
        if any(k in key_l for k in secret_keys):
            redacted[key] = "***"
        else:
            redacted[key] = redact_payload(value)
    return redacted


# Day of the last line written per log path; avoids a stat on every append.
_LAST_WRITE: Dict[str, date] = {}
_ARCHIVE_DAY = re.compile(r"\.(\d{4}-\d{2}-\d{2})(?:-\d+)?\.log")


def _last_write_day(log: Path) -> Optional[date]:
    cached = _LAST_WRITE.get(str(log))
    if cached is not None:
        return cached
    try:
        return date.fromtimestamp(log.stat().st_mtime)
    except OSError:
        return None


def _archive_path(log: Path, day: date) -> Path:
    archive = log.with_name(f"{log.name}.{day.isoformat()}.log")
    suffix = 1
    while archive.exists():
        archive = log.with_name(f"{log.name}.{day.isoformat()}-{suffix}.log")
        suffix += 1
    return archive


def rotate_log(path: str, today: date, keep_days: int = 7) -> Optional[Path]:
    """Move yesterday's (or older) log aside as ``<name>.<YYYY-MM-DD>.log``.

    Returns the archive path, or None when the log is current or missing.
    Archives older than ``keep_days`` are pruned afterwards; 0 keeps all.
    """
    log = Path(path)
    day = _last_write_day(log)
    if day is None or day >= today:
        return None
    archive = _archive_path(log, day)
    try:
        log.replace(archive)
    except OSError:
        return None
    if keep_days > 0:
        prune_archives(path, today, keep_days)
    return archive


def prune_archives(path: str, today: date, keep_days: int) -> List[Path]:
    log = Path(path)
    cutoff = today.toordinal() - keep_days
    removed: List[Path] = []
    for archive in log.parent.glob(f"{log.name}.*.log"):
        match = _ARCHIVE_DAY.fullmatch(archive.name[len(log.name):])
        if not match:
            continue
        try:
            day = date.fromisoformat(match.group(1))
        except ValueError:
            continue
        if day.toordinal() > cutoff:
            continue
        try:
            archive.unlink()
        except OSError:
            continue
        removed.append(archive)
    return removed


def append_log_line(path: str, line: str, *, rotate_daily: bool = False, keep_days: int = 7) -> None:
    now = datetime.now()
    if rotate_daily:
        rotate_log(path, now.date(), keep_days)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"[{now:%Y-%m-%d %H:%M:%S}] {line.rstrip()}\n")
    _LAST_WRITE[path] = now.date()


def truncate_text(text: Optional[str], limit: int = 2000) -> str:
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[truncated {len(text) - limit} chars]"


def format_bytes(num: int) -> str:
    step = 1024.0
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    size = float(num)
    for unit in units:
        if size < step:
            return f"{size:.2f}{unit}"
        size /= step
    return f"{size:.2f}PB"


def safe_filename(name: Optional[str]) -> Optional[str]:
    """Reduce a server-supplied name to its last path component.

    Returns None when nothing usable is left (empty, ``.`` or ``..``).
    """
    if not name:
        return None
    base = name.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1].strip()
    if base in ("", ".", ".."):
        return None
    return base
