from __future__ import annotations

import contextlib
import io
import os
import sys
import unittest
from unittest import mock

from ci_helpers.common import CiHelperError, optional_env, require_env
from ci_helpers.env import assert_var_set, parse_env_pairs, with_env


class EnvTests(unittest.TestCase):
    def test_assert_var_set(self) -> None:
        stderr = io.StringIO()
        with mock.patch.dict(os.environ, {"CI_HELPERS_SET": "1", "CI_HELPERS_EMPTY": ""}):
            with contextlib.redirect_stderr(stderr):
                self.assertTrue(assert_var_set("CI_HELPERS_SET"))
                self.assertFalse(assert_var_set("CI_HELPERS_EMPTY"))
                self.assertFalse(assert_var_set("CI_HELPERS_UNSET_VARIABLE"))
        self.assertIn("Required env var not set: CI_HELPERS_EMPTY", stderr.getvalue())

    def test_require_env_raises_for_missing_value(self) -> None:
        with mock.patch.dict(os.environ, {"CI_HELPERS_EMPTY": ""}):
            with self.assertRaises(CiHelperError):
                require_env("CI_HELPERS_EMPTY")
            self.assertEqual(optional_env("CI_HELPERS_EMPTY", "x"), "")
            self.assertEqual(optional_env("CI_HELPERS_UNSET_VARIABLE", "x"), "x")

    def test_parse_env_pairs(self) -> None:
        self.assertEqual(
            parse_env_pairs(["FOO=bar", "URL=a=b", "EMPTY="]),
            {"FOO": "bar", "URL": "a=b", "EMPTY": ""},
        )
        with self.assertRaises(CiHelperError):
            parse_env_pairs(["NOEQUALS"])
        with self.assertRaises(CiHelperError):
            parse_env_pairs(["=value"])

    def test_with_env_only_changes_child_environment(self) -> None:
        code = "import os, sys; sys.exit(0 if os.environ.get('CI_HELPERS_FOO') == 'bar' else 9)"
        self.assertEqual(with_env(["CI_HELPERS_FOO=bar"], [sys.executable, "-c", code]), 0)
        self.assertEqual(with_env([], [sys.executable, "-c", code]), 9)
        self.assertNotIn("CI_HELPERS_FOO", os.environ)


if __name__ == "__main__":
    unittest.main()
