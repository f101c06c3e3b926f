from __future__ import annotations

import contextlib
import io
import unittest

from ci_helpers import files
from ci_helpers.common import TIMEOUT_RC
from ci_helpers.timeout import PosixProcessHost, ProcessHost, WindowsProcessHost
from ci_helpers.toolkit import CiHelpers, init


class _NeverExitsHost(ProcessHost):
    def __init__(self) -> None:
        self.signals: list[bool] = []

    def spawn(self, argv: list[str]) -> object:
        return object()

    def wait(self, proc, timeout: float) -> None:
        return None

    def poll(self, proc) -> None:
        return None

    def signal_group(self, proc, *, forceful: bool) -> None:
        self.signals.append(forceful)

    def group_alive(self, proc) -> bool:
        return not self.signals or not self.signals[-1]


class ToolkitTests(unittest.TestCase):
    def test_init_picks_platform_host(self) -> None:
        ci = init()
        self.assertIsInstance(ci, CiHelpers)
        self.assertIsInstance(ci.host, (PosixProcessHost, WindowsProcessHost))

    def test_each_init_returns_a_new_handle(self) -> None:
        self.assertIsNot(init(), init())

    def test_handle_exposes_check_helpers(self) -> None:
        ci = init()
        self.assertIs(ci.check_file, files.check_file)
        for name in (
            "log_info",
            "log_warn",
            "log_error",
            "die",
            "assert_var_set",
            "with_env",
            "check_dir",
            "require_files",
            "check_grep",
            "ensure_line_in_file",
            "check_command_rc",
            "capture",
            "check_output_contains",
            "check_output_matches",
            "require_cmd",
        ):
            self.assertTrue(callable(getattr(ci, name)), name)

    def test_retry_uses_injected_sleep(self) -> None:
        sleeps: list[float] = []
        ci = init(sleep=sleeps.append)
        results = iter([1, 1, 0])
        with contextlib.redirect_stderr(io.StringIO()):
            self.assertEqual(ci.retry(3, 4, lambda: next(results)), 0)
        self.assertEqual(sleeps, [4, 4])

    def test_run_with_timeout_uses_injected_host(self) -> None:
        host = _NeverExitsHost()
        sleeps: list[float] = []
        ci = init(host=host, sleep=sleeps.append)
        with contextlib.redirect_stderr(io.StringIO()):
            self.assertEqual(ci.run_with_timeout(2, ["hang"]), TIMEOUT_RC)
        self.assertEqual(host.signals, [False, True])


if __name__ == "__main__":
    unittest.main()
