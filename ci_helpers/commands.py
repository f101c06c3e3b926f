"""
Script: ci_helpers/commands.py
What: Command execution checks used by CI steps.
Doing: Runs argv commands, reports return codes, captures output, and checks output text.
Why: Pipelines often need "run this and make sure it said X" without re-writing the same code.
Goal: Return result codes and log readable failure lines.
"""

from __future__ import annotations

import re
import shutil
from typing import Sequence

from ci_helpers.common import format_argv, run_capture, run_status
from ci_helpers.log import log_error


def check_command_rc(args: Sequence[str]) -> int:
    """Run a command and return its exit code, logging when it fails."""
    rc = run_status(args)
    if rc != 0:
        log_error(f"Command failed ({rc}): {format_argv(args)}")
    return rc


def capture(args: Sequence[str]) -> tuple[int, str]:
    """
    Run a command and return `(rc, output)`.

    Output holds stdout and stderr together. It is returned even on failure so
    callers can log it.
    """
    return run_capture(args)


def _checked_output(args: Sequence[str], purpose: str) -> tuple[int, str]:
    rc, output = run_capture(args)
    if rc != 0:
        log_error(f"Command failed while checking {purpose}: {format_argv(args)}")
        log_error(f"Output:\n{output}")
    return rc, output


def check_output_contains(needle: str, args: Sequence[str]) -> int:
    """
    Return 0 when the command succeeds and its output contains `needle`.

    A failing command returns its own exit code; a missing needle returns 1.
    """
    rc, output = _checked_output(args, "output")
    if rc != 0:
        return rc
    if needle in output:
        return 0
    log_error(f"Expected substring not found: {needle}")
    log_error(f"Output:\n{output}")
    return 1


def check_output_matches(pattern: str, args: Sequence[str]) -> int:
    """Like `check_output_contains`, but with a regular expression search."""
    rc, output = _checked_output(args, "regex")
    if rc != 0:
        return rc
    if re.search(pattern, output):
        return 0
    log_error(f"Output did not match regex: {pattern}")
    log_error(f"Output:\n{output}")
    return 1


def require_cmd(name: str) -> bool:
    """True when `name` resolves to an executable on PATH."""
    if shutil.which(name):
        return True
    log_error(f"Required command not found in PATH: {name}")
    return False
