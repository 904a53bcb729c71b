import io
import os
import time
from pathlib import Path
from typing import Callable

from console_bridge.execution import (
    ArgvCommandBuilder,
    CommandExecutor,
    CommandSpec,
    ExecutionFailure,
    ExecutionResult,
    ShellCommandBuilder,
)
from console_bridge.execution.executor import (
    DRAIN_GRACE_SECONDS,
    INVALID_ARGUMENTS_EXIT_CODE,
    SPAWN_FAILED_EXIT_CODE,
)


def _executor(echo: io.BytesIO, **kwargs) -> CommandExecutor:
    return CommandExecutor(echo=echo, **kwargs)


def test_zero_exit_produces_result_with_full_output(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf 'ok\\n'\n")
    echo = io.BytesIO()

    outcome = _executor(echo).execute(CommandSpec(handler, "--dry-run"), timeout_seconds=10)

    assert outcome == ExecutionResult(exit_code=0, output="ok\n")
    assert outcome.to_payload() == {"exitCode": 0, "output": "ok\n"}
    assert echo.getvalue() == b"ok\n"


def test_non_zero_exit_produces_failure_carrying_output(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf 'boom\\n'\nexit 2\n")
    echo = io.BytesIO()

    outcome = _executor(echo).execute(CommandSpec(handler, "--bad"), timeout_seconds=10)

    assert isinstance(outcome, ExecutionFailure)
    assert outcome.output == "boom\n"
    assert outcome.exit_code == 2
    assert outcome.timed_out is False
    assert echo.getvalue() == b"boom\n"


def test_stderr_is_merged_into_output(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("echo out\necho err >&2\n")

    outcome = _executor(io.BytesIO()).execute(CommandSpec(handler), timeout_seconds=10)

    assert isinstance(outcome, ExecutionResult)
    assert "out\n" in outcome.output
    assert "err\n" in outcome.output


def test_shell_mode_interprets_quoting_in_arguments(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf '%s|' \"$@\"\n")

    outcome = _executor(io.BytesIO()).execute(
        CommandSpec(handler, "first 'second arg' third"), timeout_seconds=10
    )

    assert outcome.output == "first|second arg|third|"


def test_argv_mode_splits_arguments_without_shell(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf '%s|' \"$@\"\n")
    executor = _executor(io.BytesIO(), builder=ArgvCommandBuilder())

    outcome = executor.execute(CommandSpec(handler, "a 'b c' $HOME"), timeout_seconds=10)

    assert outcome.output == "a|b c|$HOME|"


def test_interpreter_prefix_runs_non_executable_handler(tmp_path: Path) -> None:
    handler = tmp_path / "script.sh"
    handler.write_text("printf 'via interpreter %s' \"$1\"\n", encoding="utf-8")
    handler.chmod(0o644)
    executor = _executor(io.BytesIO(), builder=ShellCommandBuilder(interpreter=["sh"]))

    outcome = executor.execute(CommandSpec(handler, "x"), timeout_seconds=10)

    assert outcome == ExecutionResult(exit_code=0, output="via interpreter x")


def test_timeout_kills_handler_and_reports_failure(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("echo started\nsleep 30\necho never\n")
    echo = io.BytesIO()

    started = time.monotonic()
    outcome = _executor(echo).execute(CommandSpec(handler), timeout_seconds=0.5)
    elapsed = time.monotonic() - started

    assert isinstance(outcome, ExecutionFailure)
    assert outcome.timed_out is True
    assert outcome.exit_code != 0
    assert outcome.output == "started\n"
    assert elapsed < 10


def test_output_chunks_keep_arrival_order(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf A\nsleep 0.2\nprintf B\nsleep 0.2\nprintf C\n")
    echo = io.BytesIO()

    outcome = _executor(echo).execute(CommandSpec(handler), timeout_seconds=10)

    assert outcome.output == "ABC"
    assert echo.getvalue() == b"ABC"


def test_environment_is_passed_to_handler(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf '%s' \"$BRIDGE_TEST_VALUE\"\n")
    env = {"PATH": os.environ.get("PATH", "/usr/bin:/bin"), "BRIDGE_TEST_VALUE": "from-env"}

    outcome = _executor(io.BytesIO()).execute(CommandSpec(handler), timeout_seconds=10, env=env)

    assert outcome.output == "from-env"


def test_invalid_utf8_output_is_replaced(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf 'a\\377b'\n")
    echo = io.BytesIO()

    outcome = _executor(echo).execute(CommandSpec(handler), timeout_seconds=10)

    assert outcome.output == "a�b"
    assert echo.getvalue() == b"a\xffb"


def _is_running(pid: int) -> bool:
    try:
        stat_line = Path(f"/proc/{pid}/stat").read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    state = stat_line.rsplit(")", 1)[1].split()[0]
    return state != "Z"


def test_background_children_are_killed_when_handler_exits(write_handler: Callable[..., Path], tmp_path: Path) -> None:
    pid_file = tmp_path / "child.pid"
    handler = write_handler("sleep 30 &\necho $! > \"$1\"\nprintf 'ok\\n'\n")

    started = time.monotonic()
    outcome = _executor(io.BytesIO()).execute(CommandSpec(handler, str(pid_file)), timeout_seconds=10)
    elapsed = time.monotonic() - started

    assert outcome == ExecutionResult(exit_code=0, output="ok\n")
    assert elapsed < DRAIN_GRACE_SECONDS
    child_pid = int(pid_file.read_text(encoding="utf-8").strip())
    deadline = time.monotonic() + 2
    while _is_running(child_pid) and time.monotonic() < deadline:
        time.sleep(0.05)
    assert not _is_running(child_pid)


def test_unbalanced_quotes_in_argv_mode_become_failure(write_handler: Callable[..., Path]) -> None:
    handler = write_handler("printf 'never'\n")
    echo = io.BytesIO()
    executor = _executor(echo, builder=ArgvCommandBuilder())

    outcome = executor.execute(CommandSpec(handler, "say 'oops"), timeout_seconds=10)

    assert isinstance(outcome, ExecutionFailure)
    assert outcome.exit_code == INVALID_ARGUMENTS_EXIT_CODE
    assert "No closing quotation" in outcome.output
    assert echo.getvalue().decode("utf-8") == outcome.output


def test_non_executable_handler_in_argv_mode_becomes_failure(tmp_path: Path) -> None:
    handler = tmp_path / "plain.sh"
    handler.write_text("printf 'never'\n", encoding="utf-8")
    handler.chmod(0o644)
    executor = _executor(io.BytesIO(), builder=ArgvCommandBuilder())

    outcome = executor.execute(CommandSpec(handler, "--dry-run"), timeout_seconds=10)

    assert isinstance(outcome, ExecutionFailure)
    assert outcome.exit_code == SPAWN_FAILED_EXIT_CODE
    assert outcome.timed_out is False
    assert "Permission denied" in outcome.output
