"""
Script: ci_helpers/files.py
What: Filesystem checks used by CI steps.
Doing: Checks files and directories exist, searches files for fixed strings, and appends missing lines.
Why: These checks show up in almost every pipeline and should log the same way everywhere.
Goal: Return a clear True/False and leave the stop/continue decision to the caller.
"""

from __future__ import annotations

from pathlib import Path

from ci_helpers.log import log_error


def check_file(path: str | Path) -> bool:
    """True when `path` is an existing regular file."""
    if Path(path).is_file():
        return True
    log_error(f"File not found: {path}")
    return False


def check_dir(path: str | Path) -> bool:
    """True when `path` is an existing directory."""
    if Path(path).is_dir():
        return True
    log_error(f"Directory not found: {path}")
    return False


def require_files(*paths: str | Path) -> bool:
    """
    True only when ALL given files exist.

    Every path is checked (no early stop) so the log lists each missing file.
    """
    results = [check_file(path) for path in paths]
    return all(results)


def _read_lines(path: str | Path) -> list[str] | None:
    """Lines split on newline only, like grep. Carriage returns and form feeds stay in the line."""
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            content = handle.read()
    except OSError:
        return None
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def check_grep(needle: str, path: str | Path) -> bool:
    """True when the file contains `needle` as a fixed string (like `grep -F`)."""
    lines = _read_lines(path)
    if lines is not None and any(needle in line for line in lines):
        return True
    log_error(f"String not found in {path}: {needle}")
    return False


def ensure_line_in_file(line: str, path: str | Path) -> bool:
    """
    Append `line` to the file unless an identical full line is already there.

    Missing files are created.
    """
    lines = _read_lines(path)
    if lines is not None and line in lines:
        return True
    try:
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(f"{line}\n")
    except OSError:
        log_error(f"Failed to append to {path}")
        return False
    return True
