"""
Script: ci_helpers/timeout.py
What: Runs a command with a hard wall-clock deadline.
Doing: Starts the command in its own process group, polls once per second, and on timeout signals the whole group (graceful, then forceful).
Why: Killing only the direct child leaves grandchildren (test servers, build workers) running after the step ends.
Goal: Make sure a timed-out step leaves no processes behind and reports a distinct result code.
"""

from __future__ import annotations

import csv
import io
import os
import signal
import subprocess
import time
from typing import Callable, Sequence

from ci_helpers.common import (
    TIMEOUT_RC,
    CiHelperError,
    format_argv,
    launch_failure_rc,
    require_argv,
    shell_rc,
)
from ci_helpers.log import log_error

POLL_INTERVAL_SECONDS = 1.0
GRACE_PERIOD_SECONDS = 2.0
GRACE_STEP_SECONDS = 0.1


class ProcessHost:
    """
    Process-control operations the timeout runner needs from the OS.

    Signal numbers and group semantics differ between platforms, so each
    platform gets its own subclass. Tests pass in fakes with the same methods.
    """

    def spawn(self, argv: list[str]) -> subprocess.Popen:
        raise NotImplementedError

    def wait(self, proc: subprocess.Popen, timeout: float) -> int | None:
        """Block up to `timeout` seconds; return the exit code, or None if still running."""
        try:
            return shell_rc(proc.wait(timeout=timeout))
        except subprocess.TimeoutExpired:
            return None

    def poll(self, proc: subprocess.Popen) -> int | None:
        rc = proc.poll()
        return None if rc is None else shell_rc(rc)

    def signal_group(self, proc: subprocess.Popen, *, forceful: bool) -> None:
        raise NotImplementedError

    def group_alive(self, proc: subprocess.Popen) -> bool:
        raise NotImplementedError


class PosixProcessHost(ProcessHost):
    """Uses a new session per command, so the child's pid is also its group id."""

    def spawn(self, argv: list[str]) -> subprocess.Popen:
        return subprocess.Popen(argv, start_new_session=True)

    def signal_group(self, proc: subprocess.Popen, *, forceful: bool) -> None:
        sig = signal.SIGKILL if forceful else signal.SIGTERM
        try:
            os.killpg(proc.pid, sig)
        except OSError:
            # Group already gone (or not ours to signal); delivery is best-effort.
            pass

    def group_alive(self, proc: subprocess.Popen) -> bool:
        try:
            os.killpg(proc.pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            return True
        return True


# One "<pid> <parent pid>" line per process.
PROCESS_TABLE_COMMAND = [
    "powershell",
    "-NoProfile",
    "-Command",
    'Get-CimInstance Win32_Process | ForEach-Object { "$($_.ProcessId) $($_.ParentProcessId)" }',
]
TASKLIST_COMMAND = ["tasklist", "/FO", "CSV", "/NH"]


def _run_output(args: list[str]) -> str:
    """Return a tool's stdout, or an empty string when it cannot run."""
    try:
        result = subprocess.run(args, check=False, text=True, capture_output=True)
    except OSError:
        return ""
    return result.stdout or ""


def descendant_pids(table: str, root: int) -> list[int]:
    """Walk `<pid> <parent pid>` lines and return every process below `root`."""
    children: dict[int, list[int]] = {}
    for line in table.splitlines():
        parts = line.split()
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            continue
        pid, parent = int(parts[0]), int(parts[1])
        if pid != parent:
            children.setdefault(parent, []).append(pid)

    found: list[int] = []
    seen = {root}
    pending = [root]
    while pending:
        for child in children.get(pending.pop(), []):
            if child not in seen:
                seen.add(child)
                found.append(child)
                pending.append(child)
    return found


def running_pids(tasklist_csv: str) -> set[int]:
    """Pids from `tasklist /FO CSV /NH` output (second column)."""
    pids: set[int] = set()
    for row in csv.reader(io.StringIO(tasklist_csv)):
        if len(row) > 1 and row[1].isdigit():
            pids.add(int(row[1]))
    return pids


class WindowsProcessHost(ProcessHost):
    """
    Uses `CREATE_NEW_PROCESS_GROUP`.

    Graceful stop is CTRL_BREAK_EVENT (delivered to the whole group); forceful
    stop is `taskkill /T /F`, which walks the child's process tree. Windows can
    only walk the tree from a live leader, so the descendants are recorded at
    the graceful step and checked and killed by pid afterwards.
    """

    def __init__(self, run_output: Callable[[list[str]], str] = _run_output) -> None:
        self.run_output = run_output
        self.descendants: dict[int, list[int]] = {}

    def spawn(self, argv: list[str]) -> subprocess.Popen:
        flags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        return subprocess.Popen(argv, creationflags=flags)

    def signal_group(self, proc: subprocess.Popen, *, forceful: bool) -> None:
        if not forceful:
            table = self.run_output(PROCESS_TABLE_COMMAND)
            self.descendants[proc.pid] = descendant_pids(table, proc.pid)
            try:
                proc.send_signal(getattr(signal, "CTRL_BREAK_EVENT", signal.SIGTERM))
            except OSError:
                pass
            return

        self.run_output(["taskkill", "/T", "/F", "/PID", str(proc.pid)])
        for pid in self._surviving_descendants(proc):
            self.run_output(["taskkill", "/T", "/F", "/PID", str(pid)])
        try:
            proc.kill()
        except OSError:
            pass

    def _surviving_descendants(self, proc: subprocess.Popen) -> list[int]:
        recorded = self.descendants.get(proc.pid, [])
        if not recorded:
            return []
        running = running_pids(self.run_output(TASKLIST_COMMAND))
        return [pid for pid in recorded if pid in running]

    def group_alive(self, proc: subprocess.Popen) -> bool:
        return proc.poll() is None or bool(self._surviving_descendants(proc))


def default_process_host() -> ProcessHost:
    """Pick the process host for the current operating system."""
    if os.name == "nt":
        return WindowsProcessHost()
    return PosixProcessHost()


def terminate_group(
    host: ProcessHost,
    proc: subprocess.Popen,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Stop every process in the command's group.

    Sends the graceful signal, gives the group up to GRACE_PERIOD_SECONDS to
    exit, then sends the forceful signal if any member is still alive.
    """
    host.signal_group(proc, forceful=False)

    steps = round(GRACE_PERIOD_SECONDS / GRACE_STEP_SECONDS)
    for _ in range(steps):
        # Reap the direct child first so a zombie leader does not look alive.
        host.poll(proc)
        if not host.group_alive(proc):
            break
        sleep(GRACE_STEP_SECONDS)
    else:
        host.signal_group(proc, forceful=True)

    host.wait(proc, GRACE_PERIOD_SECONDS)


def run_with_timeout(
    deadline_seconds: int,
    command: Sequence[str],
    *,
    host: ProcessHost | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Run `command` and return its exit code, or TIMEOUT_RC (124) on timeout.

    The child is checked once per second, so the effective deadline can be up
    to one second off. A command that exits early returns right away.
    """
    if isinstance(deadline_seconds, bool) or not isinstance(deadline_seconds, int):
        raise CiHelperError(f"deadline_seconds must be an integer, got {deadline_seconds!r}")
    if deadline_seconds < 1:
        raise CiHelperError(f"deadline_seconds must be at least 1, got {deadline_seconds}")

    argv = require_argv(command)
    host = host or default_process_host()

    try:
        proc = host.spawn(argv)
    except OSError as exc:
        log_error(f"Failed to start {format_argv(argv)}: {exc}")
        return launch_failure_rc(exc)

    try:
        for _ in range(deadline_seconds):
            rc = host.wait(proc, POLL_INTERVAL_SECONDS)
            if rc is not None:
                return rc
    except KeyboardInterrupt:
        # The group lives in its own session, so Ctrl-C never reaches it.
        host.signal_group(proc, forceful=True)
        host.wait(proc, GRACE_PERIOD_SECONDS)
        raise

    log_error(f"Timeout after {deadline_seconds}s: {format_argv(argv)}")
    terminate_group(host, proc, sleep=sleep)
    return TIMEOUT_RC
