"""
Script: ci_helpers/sample_step.py
What: Example CI step built from the helpers.
Doing: Checks for README.md and git, runs a command, checks its output, and greps a scratch file.
Why: Shows new pipelines how the helpers fit together in a real step.
Goal: Pass on any normal checkout; stop with a clear error otherwise.
"""

from __future__ import annotations

from pathlib import Path

from ci_helpers.toolkit import init


SCRATCH_FILE = Path("tmp.txt")


def main() -> None:
    ci = init()
    ci.log_info("Starting sample CI step...")

    if not ci.check_file("README.md"):
        ci.die("README.md is required")

    if not ci.require_cmd("git"):
        ci.die("git must be available")

    if ci.check_command_rc(["echo", "Hello, world"]) != 0:
        ci.die("echo failed")

    if ci.check_output_contains("world", ["echo", "Hello, world"]) != 0:
        ci.die("Did not find expected string in output")

    SCRATCH_FILE.write_text("expected_value\n", encoding="utf-8")
    if not ci.check_grep("expected_value", SCRATCH_FILE):
        ci.die("expected_value missing")

    ci.log_info("All checks passed!")


if __name__ == "__main__":
    main()
