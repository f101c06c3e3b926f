"""
Script: ci_helpers/env.py
What: Environment variable helpers for CI steps.
Doing: Asserts required variables are set and runs commands with extra `KEY=VAL` variables.
Why: Missing variables are a common cause of confusing pipeline failures.
Goal: Fail with one clear log line that names the missing variable.
"""

from __future__ import annotations

import os
from typing import Sequence

from ci_helpers.common import CiHelperError, optional_env, run_status
from ci_helpers.log import log_error


def assert_var_set(name: str) -> bool:
    """True when the environment variable exists and is non-empty."""
    if optional_env(name):
        return True
    log_error(f"Required env var not set: {name}")
    return False


def parse_env_pairs(pairs: Sequence[str]) -> dict[str, str]:
    """Turn `["FOO=bar", "BAZ=qux"]` into a dict. The value may contain `=`."""
    overrides: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise CiHelperError(f"Expected KEY=VAL environment pair, got: {pair}")
        overrides[key] = value
    return overrides


def with_env(pairs: Sequence[str], args: Sequence[str]) -> int:
    """
    Run a command with extra environment variables and return its exit code.

    Only the child sees the overrides; this process's environment is untouched.
    """
    env = dict(os.environ)
    env.update(parse_env_pairs(pairs))
    return run_status(args, env=env)
