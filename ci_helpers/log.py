"""
Script: ci_helpers/log.py
What: Logging helpers for CI step output.
Doing: Prints one line per message to stderr with a UTC timestamp and a severity tag.
Why: CI logs are read by people scrolling a web page, so plain aligned lines work best.
Goal: Give every helper the same log line format.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import NoReturn, TextIO


def timestamp() -> str:
    """Current UTC time, for example `2026-02-27T10:15:00Z`."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def log(message: str, *, stream: TextIO | None = None) -> None:
    # Resolve stderr at call time so redirected/captured stderr is honored.
    print(f"{timestamp()} {message}", file=stream or sys.stderr)


def log_info(message: str) -> None:
    log(f"[INFO]  {message}")


def log_warn(message: str) -> None:
    log(f"[WARN]  {message}")


def log_error(message: str) -> None:
    log(f"[ERROR] {message}")


def die(message: str) -> NoReturn:
    """
    Log an error and stop the current program with exit code 1.

    Use sparingly: helpers return result codes so the caller can decide.
    """
    log_error(message)
    raise SystemExit(1)
