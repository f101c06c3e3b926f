"""
Script: ci_helpers/retry.py
What: Retries a command a fixed number of times with a fixed delay.
Doing: Runs one attempt at a time, logs each retriable failure, and returns the last exit code.
Why: Network calls and registry lookups in CI fail now and then and usually work a few seconds later.
Goal: Keep retry behavior predictable and logs linear (no jitter, no backoff).
"""

from __future__ import annotations

import time
from typing import Callable, Sequence, Union

from ci_helpers.common import CiHelperError, format_argv, require_argv, run_status
from ci_helpers.log import log_error, log_warn

# An attempt is either an argv list or a Python callable. Callables may return
# an exit code or a bool (True means success).
Attempt = Union[Sequence[str], Callable[[], Union[int, bool]]]


def _attempt_runner(command: Attempt) -> tuple[Callable[[], int], str]:
    """Return a zero-argument function that runs one attempt, plus a log label."""
    if callable(command):
        func = command
        label = getattr(func, "__name__", repr(func))

        def run_callable() -> int:
            try:
                result = func()
            except Exception as exc:
                # An exception is a failed attempt like any other; it is retried.
                log_warn(f"{label} raised {type(exc).__name__}: {exc}")
                return 1
            if isinstance(result, bool):
                return 0 if result else 1
            if isinstance(result, int):
                return result
            log_warn(f"{label} returned {result!r}, expected an exit code or bool")
            return 1

        return run_callable, label

    argv = require_argv(command)
    return (lambda: run_status(argv)), format_argv(argv)


def retry(
    max_attempts: int,
    delay_seconds: float,
    command: Attempt,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Run `command` up to `max_attempts` times and return the final exit code.

    - Returns 0 as soon as one attempt succeeds.
    - Waits `delay_seconds` between attempts, never after the last one.
    - When all attempts fail, returns the exit code of the LAST attempt.

    `sleep` is passed in to keep this function easy to test.
    """
    if max_attempts < 1:
        raise CiHelperError(f"max_attempts must be at least 1, got {max_attempts}")
    if delay_seconds < 0:
        raise CiHelperError(f"delay_seconds must not be negative, got {delay_seconds}")

    run_once, label = _attempt_runner(command)
    rc = 1
    for attempt in range(1, max_attempts + 1):
        rc = run_once()
        if rc == 0:
            return 0
        if attempt < max_attempts:
            log_warn(
                f"Attempt {attempt}/{max_attempts} failed (rc={rc}). "
                f"Retrying in {delay_seconds:g}s…"
            )
            sleep(delay_seconds)

    log_error(f"All {max_attempts} attempts failed for: {label}")
    return rc
