from __future__ import annotations

import os
import signal
import subprocess
import sys
import threading
from typing import IO, BinaryIO, Mapping

from loguru import logger

from .command import CommandBuilder, ShellCommandBuilder
from .output import BufferSink, OutputSink, OutputTee, StreamSink
from .types import CommandSpec, ExecutionFailure, ExecutionResult

CHUNK_SIZE = 8192
DRAIN_GRACE_SECONDS = 2.0
INVALID_ARGUMENTS_EXIT_CODE = 2
SPAWN_FAILED_EXIT_CODE = 127


def _drain(stream: IO[bytes], sink: OutputSink) -> None:
    """Copy child output into the sink until the pipe closes.

    Example:
        ```python
        _drain(process.stdout, tee)
        ```
    """
    for chunk in iter(lambda: stream.read1(CHUNK_SIZE), b""):  # type: ignore[attr-defined]
        sink.write(chunk)


def _kill_process_group(process: subprocess.Popen[bytes]) -> None:
    """SIGKILL the child and everything it spawned.

    Example:
        ```python
        _kill_process_group(process)
        ```
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def _spawn_failure(tee: OutputTee, buffer: BufferSink, message: str, exit_code: int) -> ExecutionFailure:
    """Report a handler that could not be started as a failed run.

    Example:
        ```python
        failure = _spawn_failure(tee, buffer, "Cannot run handler: [Errno 13] Permission denied", 127)
        ```
    """
    logger.warning("{}", message)
    tee.write(f"{message}\n".encode("utf-8"))
    return ExecutionFailure(output=buffer.text(), exit_code=exit_code)

class CommandExecutor:
    """Run the handler as a subprocess under a deadline and capture its output.

    Output is echoed live to the bridge's stdout and buffered in full.

    Example:
        ```python
        executor = CommandExecutor(builder=ShellCommandBuilder(interpreter=["php"]))
        ```
    """

    def __init__(
        self,
        *,
        builder: CommandBuilder | None = None,
        echo: BinaryIO | None = None,
    ) -> None:
        """Configure how commands are built and where output is echoed.

        `echo` defaults to the process stdout, looked up on every run.

        Example:
            ```python
            executor = CommandExecutor(echo=io.BytesIO())
            ```
        """
        self._builder = builder or ShellCommandBuilder()
        self._echo = echo

    def execute(
        self,
        spec: CommandSpec,
        timeout_seconds: float,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult | ExecutionFailure:
        """Run one handler attempt and map its exit code.

        Example:
            ```python
            outcome = executor.execute(CommandSpec(Path("/var/task/run"), "--dry-run"), timeout_seconds=4)
            ```
        """
        buffer = BufferSink()
        tee = OutputTee(StreamSink(self._echo_stream()), buffer)

        try:
            command = self._builder.build(spec)
        except ValueError as exc:
            return _spawn_failure(tee, buffer, f"Invalid handler arguments: {exc}", INVALID_ARGUMENTS_EXIT_CODE)

        try:
            process = subprocess.Popen(
                command.args,
                shell=command.shell,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=dict(env) if env is not None else None,
                start_new_session=True,
            )
        except OSError as exc:
            return _spawn_failure(tee, buffer, f"Cannot run handler: {exc}", SPAWN_FAILED_EXIT_CODE)
        if process.stdout is None:
            raise RuntimeError("handler stdout pipe was not created")
        reader = threading.Thread(target=_drain, args=(process.stdout, tee), daemon=True)
        reader.start()

        timed_out = False
        try:
            exit_code = process.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning("Handler exceeded {:.3f}s timeout, killing pid {}", timeout_seconds, process.pid)
            _kill_process_group(process)
            exit_code = process.wait()
        else:
            # Background children of the handler must not outlive the invocation.
            _kill_process_group(process)

        reader.join(timeout=DRAIN_GRACE_SECONDS)
        if reader.is_alive():
            logger.warning("Output pipe still open after exit of pid {}, detaching reader", process.pid)
        else:
            process.stdout.close()

        output = buffer.text()
        if exit_code == 0:
            return ExecutionResult(exit_code=0, output=output)
        return ExecutionFailure(output=output, exit_code=exit_code, timed_out=timed_out)

    def _echo_stream(self) -> BinaryIO:
        """Return the stream live output is echoed to.

        Example:
            ```python
            stream = executor._echo_stream()
            ```
        """
        if self._echo is not None:
            return self._echo
        sys.stdout.flush()
        return sys.stdout.buffer
