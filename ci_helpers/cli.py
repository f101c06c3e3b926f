from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from ci_helpers import commands as command_checks
from ci_helpers import env, files
from ci_helpers.common import CiHelperError
from ci_helpers.retry import retry
from ci_helpers.timeout import run_with_timeout

CommandFunc = Callable[[list[str]], int]


def _rc(ok: bool) -> int:
    return 0 if ok else 1


def _take(args: list[str], count: int, usage: str) -> tuple[list[str], list[str]]:
    """
    Split `args` into `count` leading values and the rest.

    A `--` right after the leading values is dropped, so both
    `retry 3 5 -- curl ...` and `retry 3 5 curl ...` work.
    """
    if len(args) < count:
        raise CiHelperError(f"Usage: {usage}")
    head, rest = args[:count], args[count:]
    if rest and rest[0] == "--":
        rest = rest[1:]
    return head, rest


def _exactly(args: list[str], count: int, usage: str) -> list[str]:
    if len(args) != count:
        raise CiHelperError(f"Usage: {usage}")
    return args


def _command(args: list[str], usage: str) -> list[str]:
    if not args:
        raise CiHelperError(f"Usage: {usage}")
    return args


def _number(value: str, name: str, kind: Callable[[str], float | int]) -> float | int:
    try:
        return kind(value)
    except ValueError as exc:
        raise CiHelperError(f"{name} must be a number, got: {value}") from exc


def cmd_check_file(args: list[str]) -> int:
    (path,) = _exactly(args, 1, "check-file PATH")
    return _rc(files.check_file(path))


def cmd_check_dir(args: list[str]) -> int:
    (path,) = _exactly(args, 1, "check-dir PATH")
    return _rc(files.check_dir(path))


def cmd_require_files(args: list[str]) -> int:
    return _rc(files.require_files(*_command(args, "require-files PATH...")))


def cmd_check_grep(args: list[str]) -> int:
    needle, path = _exactly(args, 2, "check-grep NEEDLE FILE")
    return _rc(files.check_grep(needle, path))


def cmd_ensure_line_in_file(args: list[str]) -> int:
    line, path = _exactly(args, 2, "ensure-line-in-file LINE FILE")
    return _rc(files.ensure_line_in_file(line, path))


def cmd_check_command_rc(args: list[str]) -> int:
    _, rest = _take(args, 0, "check-command-rc -- CMD...")
    return command_checks.check_command_rc(_command(rest, "check-command-rc -- CMD..."))


def cmd_capture(args: list[str]) -> int:
    _, rest = _take(args, 0, "capture -- CMD...")
    rc, output = command_checks.capture(_command(rest, "capture -- CMD..."))
    print(output)
    return rc


def cmd_check_output_contains(args: list[str]) -> int:
    usage = "check-output-contains NEEDLE -- CMD..."
    (needle,), rest = _take(args, 1, usage)
    return command_checks.check_output_contains(needle, _command(rest, usage))


def cmd_check_output_matches(args: list[str]) -> int:
    usage = "check-output-matches REGEX -- CMD..."
    (pattern,), rest = _take(args, 1, usage)
    return command_checks.check_output_matches(pattern, _command(rest, usage))


def cmd_require_cmd(args: list[str]) -> int:
    (name,) = _exactly(args, 1, "require-cmd NAME")
    return _rc(command_checks.require_cmd(name))


def cmd_assert_var_set(args: list[str]) -> int:
    (name,) = _exactly(args, 1, "assert-var-set NAME")
    return _rc(env.assert_var_set(name))


def cmd_with_env(args: list[str]) -> int:
    usage = "with-env KEY=VAL... -- CMD..."
    if "--" not in args:
        raise CiHelperError(f"Usage: {usage}")
    split_at = args.index("--")
    pairs, rest = args[:split_at], args[split_at + 1 :]
    return env.with_env(pairs, _command(rest, usage))


def cmd_retry(args: list[str]) -> int:
    usage = "retry MAX_ATTEMPTS DELAY_SECONDS -- CMD..."
    (attempts, delay), rest = _take(args, 2, usage)
    return retry(
        int(_number(attempts, "MAX_ATTEMPTS", int)),
        _number(delay, "DELAY_SECONDS", float),
        _command(rest, usage),
    )


def cmd_run_with_timeout(args: list[str]) -> int:
    usage = "run-with-timeout SECONDS -- CMD..."
    (seconds,), rest = _take(args, 1, usage)
    return run_with_timeout(int(_number(seconds, "SECONDS", int)), _command(rest, usage))


def cmd_sample_step(args: list[str]) -> int:
    from ci_helpers.sample_step import main as sample_step

    _exactly(args, 0, "sample-step")
    sample_step()
    return 0


def command_map() -> dict[str, CommandFunc]:
    """
    Map CLI command names to helper entry functions.

    Each value takes the remaining CLI arguments and returns the exit code.
    """
    return {
        "check-file": cmd_check_file,
        "check-dir": cmd_check_dir,
        "require-files": cmd_require_files,
        "check-grep": cmd_check_grep,
        "ensure-line-in-file": cmd_ensure_line_in_file,
        "check-command-rc": cmd_check_command_rc,
        "capture": cmd_capture,
        "check-output-contains": cmd_check_output_contains,
        "check-output-matches": cmd_check_output_matches,
        "require-cmd": cmd_require_cmd,
        "assert-var-set": cmd_assert_var_set,
        "with-env": cmd_with_env,
        "retry": cmd_retry,
        "run-with-timeout": cmd_run_with_timeout,
        "sample-step": cmd_sample_step,
    }


def build_parser(commands: Mapping[str, CommandFunc]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m ci_helpers.cli",
        description="Run one CI helper command. The exit status is the helper's result code.",
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    return parser


def run_command(command: str, args: list[str], commands: Mapping[str, CommandFunc]) -> int:
    """
    Run one registered command and return its exit code.

    `commands` is passed in to keep this function easy to test.
    """
    return commands[command](args)


def main(argv: list[str] | None = None) -> None:
    # Build command registry once so parser and dispatcher use the same keys.
    commands = command_map()
    parser = build_parser(commands)
    argv = sys.argv[1:] if argv is None else list(argv)
    # Only the command name goes through argparse; the rest belongs to the
    # helper and may contain `--` and option-like words for a child command.
    args = parser.parse_args(argv[:1])

    try:
        rc = run_command(args.command, argv[1:], commands)
    except CiHelperError as exc:
        # Keep failures short and readable in workflow logs.
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
