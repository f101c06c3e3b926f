"""
Script: ci_helpers/common.py
What: Shared helper functions used by all `ci_helpers` modules.
Doing: Wraps env reads, argv validation, and plain command execution that returns result codes.
Why: Avoids duplicated subprocess and error-handling code.
Goal: Keep behavior consistent across all helper modules.
"""

from __future__ import annotations

import os
import subprocess
from typing import Mapping, Sequence


class CiHelperError(RuntimeError):
    """Raised when a helper is called with arguments it cannot work with."""


# Result codes shared with coreutils `timeout` and POSIX shells.
TIMEOUT_RC = 124
NOT_EXECUTABLE_RC = 126
NOT_FOUND_RC = 127


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise CiHelperError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def require_argv(args: Sequence[str]) -> list[str]:
    """
    Return `args` as a list, rejecting empty or non-string commands.

    A command is always a program plus its arguments. We never join it into a
    single string and hand it to a shell, so quoting cannot change its meaning.
    """
    if isinstance(args, (str, bytes)):
        raise CiHelperError(f"Command must be an argument list, not a string: {args!r}")
    argv = list(args)
    if not argv:
        raise CiHelperError("Command must not be empty")
    for item in argv:
        if not isinstance(item, str):
            raise CiHelperError(f"Command arguments must be strings: {argv!r}")
    return argv


def format_argv(args: Sequence[str]) -> str:
    """Render a command for log lines, like `"$*"` in a shell."""
    return " ".join(args)


def shell_rc(returncode: int) -> int:
    """
    Report a child killed by a signal the way a shell does (128 + signal number).

    `subprocess` reports those as negative numbers, which are not valid exit codes.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def launch_failure_rc(exc: OSError) -> int:
    """Map a spawn failure to the code a shell would report."""
    if isinstance(exc, FileNotFoundError):
        return NOT_FOUND_RC
    return NOT_EXECUTABLE_RC


def run_status(
    args: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> int:
    """
    Run a command with inherited stdout/stderr and return its exit code.

    Unlike a checked run, a non-zero exit is a normal outcome here, so it is
    returned instead of raised. Launch failures become 127/126.
    """
    argv = require_argv(args)
    try:
        result = subprocess.run(argv, check=False, env=env, cwd=cwd)
    except OSError as exc:
        return launch_failure_rc(exc)
    return shell_rc(result.returncode)


def run_capture(args: Sequence[str]) -> tuple[int, str]:
    """
    Run a command and return `(rc, output)` with stderr folded into stdout.

    Trailing newlines are removed, matching shell `$(...)` capture.
    """
    argv = require_argv(args)
    try:
        result = subprocess.run(
            argv,
            check=False,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as exc:
        return launch_failure_rc(exc), str(exc)
    return shell_rc(result.returncode), (result.stdout or "").rstrip("\n")
