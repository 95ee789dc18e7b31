"""Shared logging utilities."""

import json
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"


def write_relay_log(
    route: str,
    target: str,
    status: int,
    content_type: str,
    *,
    rewritten: bool,
    base_injected: bool = False,
    links_rewritten: int = 0,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single relayed-request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "route": route,
        "target": target,
        "status": status,
        "content_type": content_type,
        "rewritten": rewritten,
        "base_injected": base_injected,
        "links_rewritten": links_rewritten,
    }
    return _write_json(_host_folder(log_root / "relay", target), payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> None:
    """Remove logs from previous runs."""
    if log_root.exists():
        shutil.rmtree(log_root, ignore_errors=True)


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(base: Path, target: str) -> Path:
    host = _extract_host(target)
    if host:
        return base / host
    return base


def _extract_host(target: str) -> str | None:
    try:
        host = urlsplit(target).hostname
    except ValueError:
        return None
    if not host:
        return None
    # Keep folder names filesystem-safe (IPv6 literals contain ':')
    return host.replace(":", "_") or None


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
