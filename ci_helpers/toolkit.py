"""
Script: ci_helpers/toolkit.py
What: One handle that exposes every helper to a consuming program.
Doing: `init()` builds a `CiHelpers` object bound to a process host and a sleep function.
Why: Each CI step process sets up its own helpers explicitly instead of inheriting them from a shared startup file.
Goal: Give steps a single object to call, and tests a single place to inject fakes.
"""

from __future__ import annotations

import time
from typing import Callable, Sequence

from ci_helpers import commands, env, files, log
from ci_helpers.retry import Attempt, retry
from ci_helpers.timeout import ProcessHost, default_process_host, run_with_timeout


class CiHelpers:
    """Helper operations for one process. Create it with `init()`."""

    log_info = staticmethod(log.log_info)
    log_warn = staticmethod(log.log_warn)
    log_error = staticmethod(log.log_error)
    die = staticmethod(log.die)

    assert_var_set = staticmethod(env.assert_var_set)
    with_env = staticmethod(env.with_env)

    check_file = staticmethod(files.check_file)
    check_dir = staticmethod(files.check_dir)
    require_files = staticmethod(files.require_files)
    check_grep = staticmethod(files.check_grep)
    ensure_line_in_file = staticmethod(files.ensure_line_in_file)

    check_command_rc = staticmethod(commands.check_command_rc)
    capture = staticmethod(commands.capture)
    check_output_contains = staticmethod(commands.check_output_contains)
    check_output_matches = staticmethod(commands.check_output_matches)
    require_cmd = staticmethod(commands.require_cmd)

    def __init__(self, host: ProcessHost, sleep: Callable[[float], None]) -> None:
        self.host = host
        self.sleep = sleep

    def retry(self, max_attempts: int, delay_seconds: float, command: Attempt) -> int:
        return retry(max_attempts, delay_seconds, command, sleep=self.sleep)

    def run_with_timeout(self, deadline_seconds: int, command: Sequence[str]) -> int:
        return run_with_timeout(deadline_seconds, command, host=self.host, sleep=self.sleep)


def init(
    *,
    host: ProcessHost | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CiHelpers:
    """Set up helpers for the current process and return the handle."""
    return CiHelpers(host or default_process_host(), sleep)
