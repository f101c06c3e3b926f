"""
Script: ci_helpers package
What: Holds small Python helpers for CI pipeline steps.
Doing: Groups file/command/output checks, retry, timeout, logging, and the CLI in one importable package.
Why: Keeps pipeline checks readable and testable instead of spreading them across shell snippets.
Goal: Give every step the same predictable checks and log format.
"""

from ci_helpers.commands import (
    capture,
    check_command_rc,
    check_output_contains,
    check_output_matches,
    require_cmd,
)
from ci_helpers.common import TIMEOUT_RC, CiHelperError
from ci_helpers.env import assert_var_set, with_env
from ci_helpers.files import (
    check_dir,
    check_file,
    check_grep,
    ensure_line_in_file,
    require_files,
)
from ci_helpers.log import die, log_error, log_info, log_warn
from ci_helpers.retry import retry
from ci_helpers.timeout import run_with_timeout
from ci_helpers.toolkit import CiHelpers, init

__all__ = [
    "TIMEOUT_RC",
    "CiHelperError",
    "CiHelpers",
    "assert_var_set",
    "capture",
    "check_command_rc",
    "check_dir",
    "check_file",
    "check_grep",
    "check_output_contains",
    "check_output_matches",
    "die",
    "ensure_line_in_file",
    "init",
    "log_error",
    "log_info",
    "log_warn",
    "require_cmd",
    "require_files",
    "retry",
    "run_with_timeout",
    "with_env",
]
