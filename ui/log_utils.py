"""Shared logging utilities."""

import json
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "relay.log"

_SENSITIVE_MARKERS = ("key", "token", "secret", "password", "auth")


def write_relay_log(
    route: str,
    target: str,
    status: int,
    *,
    used_fallback: bool = False,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single relay log entry."""
    payload = {
        "timestamp": _utc_now(),
        "route": route,
        "target": redact_url(target),
        "status": status,
        "used_fallback": used_fallback,
    }
    return _write_json(log_root / "relay" / _safe_folder(route), payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with CLI_LOG_FILE.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove per-request logs from a previous run."""
    shutil.rmtree(log_root / "relay", ignore_errors=True)


def redact_url(url: str) -> str:
    """Mask query parameters that look like credentials."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    query = [
        (key, "***" if _is_sensitive(key) else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*.^")))


def _is_sensitive(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _safe_folder(route: str) -> str:
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in route) or "unknown"


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
