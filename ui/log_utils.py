"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "gateway.log"

SENSITIVE_MARKERS = ("authorization", "token", "key", "cookie", "password")


def summarize_body(body: Any) -> Any:
    """Make a request body loggable; raw bytes and file payloads are summarized."""
    if body is None:
        return None
    if isinstance(body, bytes):
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return f"<{len(body)} bytes>"
    return body


def summarize_files(files: dict[str, Any] | None) -> dict[str, dict[str, Any]]:
    """Describe uploaded files by name, type and size."""
    return {
        field: {
            "filename": upload.filename,
            "content_type": upload.content_type,
            "size": len(upload.content),
        }
        for field, upload in (files or {}).items()
    }


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: Any,
    *,
    files: dict[str, Any] | None = None,
    log_root: Path | None = None,
) -> Path:
    """Write a single incoming request log entry."""
    log_root = log_root or LOG_ROOT
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "headers": _redact_headers(headers),
        "body": summarize_body(body),
    }
    if files:
        payload["files"] = summarize_files(files)
    return _write_json(log_root / "incoming", payload)


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


def clear_logs(log_root: Path | None = None) -> int:
    """Remove incoming request logs from a previous run."""
    incoming = (log_root or LOG_ROOT) / "incoming"
    if not incoming.exists():
        return 0

    deleted = 0
    for old_file in incoming.glob("*.json"):
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in SENSITIVE_MARKERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
