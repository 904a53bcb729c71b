from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from .config import BridgeSettings, resolve_handler
from .deadline import timeout_seconds
from .errors import CommandFailed, HandlerNotFound
from .execution.command import builder_for_mode
from .execution.engine import ExecutionEngine
from .execution.executor import CommandExecutor
from .execution.types import CommandSpec, ExecutionFailure, InitializationFailure
from .log import setup_logging
from .payload import extract_arguments
from .runtime.client import HostRuntimeClient, HttpRuntimeClient
from .runtime.invocation import Invocation

CLIENT_SUFFIX = "console"
TRACE_ID_ENV = "_X_AMZN_TRACE_ID"


class LoopState(str, Enum):
    INIT = "init"
    POLLING = "polling"
    EXECUTING = "executing"
    REPORTING = "reporting"
    FATAL = "fatal"


class InvocationLoop:
    """Drive host invocations through the handler, one at a time.

    `start()` runs the one-off startup check, `process_next()` handles a
    single invocation and `run_forever()` repeats it for the process lifetime.

    Example:
        ```python
        loop = InvocationLoop(HttpRuntimeClient.bind("console"), BridgeSettings.from_env())
        ```
    """

    def __init__(
        self,
        client: HostRuntimeClient,
        settings: BridgeSettings,
        *,
        engine: ExecutionEngine | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Wire the host client, settings and execution engine together.

        Example:
            ```python
            loop = InvocationLoop(client, settings, engine=CommandExecutor())
            ```
        """
        self._client = client
        self._settings = settings
        self._engine = engine or CommandExecutor(
            builder=builder_for_mode(settings.command_mode, settings.interpreter)
        )
        self._environ = environ
        self._handler_path: Path | None = None
        self._state = LoopState.INIT
        self.initialization_failure: InitializationFailure | None = None

    @property
    def state(self) -> LoopState:
        """Return the current loop state.

        Example:
            ```python
            assert loop.state is LoopState.POLLING
            ```
        """
        return self._state

    @property
    def handler_path(self) -> Path | None:
        """Return the handler resolved at startup, if any.

        Example:
            ```python
            path = loop.handler_path
            ```
        """
        return self._handler_path

    def start(self) -> bool:
        """Resolve the handler once and report a fatal error if it is missing.

        Returns False when the loop must not poll.

        Example:
            ```python
            if loop.start():
                loop.process_next()
            ```
        """
        if self._state is not LoopState.INIT:
            return self._state is not LoopState.FATAL
        try:
            self._handler_path = resolve_handler(self._settings)
        except HandlerNotFound as exc:
            failure = InitializationFailure(message=str(exc), error_kind=exc.error_kind)
            self.initialization_failure = failure
            self._state = LoopState.FATAL
            logger.error("{}", failure.message)
            self._client.fail_initialization(failure.message, failure.error_kind)
            return False
        logger.info("Handler resolved: {}", self._handler_path)
        self._state = LoopState.POLLING
        return True

    def process_next(self) -> None:
        """Wait for one invocation, run it and let the client report the outcome.

        Example:
            ```python
            loop.process_next()
            ```
        """
        if self._state is LoopState.INIT:
            raise RuntimeError("InvocationLoop.start() must be called before process_next()")
        if self._state is LoopState.FATAL:
            raise RuntimeError("InvocationLoop failed to initialize")
        try:
            self._client.next_invocation(self.handle)
        finally:
            self._state = LoopState.POLLING

    def run_forever(self) -> None:
        """Start, then process invocations until the process is terminated.

        Returns only if initialization failed.

        Example:
            ```python
            loop.run_forever()
            ```
        """
        if not self.start():
            return
        while True:
            self.process_next()

    def handle(self, payload: Any, invocation: Invocation) -> dict[str, Any]:
        """Run the handler for one invocation.

        Returns the success payload, or raises `CommandFailed` carrying
        the captured output.

        Example:
            ```python
            body = loop.handle({"cli": "--dry-run"}, Invocation.with_budget("abc", None, 5000))
            ```
        """
        if self._handler_path is None:
            raise RuntimeError("InvocationLoop.start() must succeed before handling invocations")
        self._state = LoopState.EXECUTING
        arguments = extract_arguments(payload)
        timeout = timeout_seconds(invocation.remaining_time_ms())
        logger.info("Invocation {} started (timeout={:.3f}s)", invocation.request_id, timeout)

        outcome = self._engine.execute(
            CommandSpec(handler_path=self._handler_path, arguments=arguments),
            timeout,
            env=self._environment(invocation),
        )

        self._state = LoopState.REPORTING
        if isinstance(outcome, ExecutionFailure):
            logger.info(
                "Invocation {} failed (exit code {}, timed out: {})",
                invocation.request_id,
                outcome.exit_code,
                outcome.timed_out,
            )
            raise CommandFailed(outcome.output)
        logger.info("Invocation {} succeeded", invocation.request_id)
        return outcome.to_payload()

    def _environment(self, invocation: Invocation) -> dict[str, str]:
        """Return the child environment, exporting the invocation trace id.

        Example:
            ```python
            env = loop._environment(invocation)
            ```
        """
        env = dict(os.environ if self._environ is None else self._environ)
        if invocation.trace_id:
            env[TRACE_ID_ENV] = invocation.trace_id
        return env


def serve(environ: Mapping[str, str] | None = None) -> int:
    """Run the bridge against the runtime API named in the environment.

    Returns 1 if the handler could not be resolved; otherwise never returns.

    Example:
        ```python
        raise SystemExit(serve())
        ```
    """
    settings = BridgeSettings.from_env(environ)
    setup_logging(settings.log_level)
    client = HttpRuntimeClient.bind(CLIENT_SUFFIX, environ)
    try:
        InvocationLoop(client, settings, environ=environ).run_forever()
    finally:
        client.close()
    return 1
