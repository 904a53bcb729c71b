from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """Handler to run and the argument string for one invocation.

    Example:
        ```python
        spec = CommandSpec(handler_path=Path("/var/task/bin/console"), arguments="--dry-run")
        ```
    """

    handler_path: Path
    arguments: str = ""


@dataclass(slots=True)
class ExecutionResult:
    """Successful handler run. `exit_code` is always 0.

    Example:
        ```python
        result = ExecutionResult(exit_code=0, output="ok\\n")
        ```
    """

    exit_code: int
    output: str

    def to_payload(self) -> dict[str, object]:
        """Return the success value reported to the host.

        Example:
            ```python
            body = ExecutionResult(0, "ok\\n").to_payload()
            ```
        """
        return {"exitCode": self.exit_code, "output": self.output}


@dataclass(slots=True)
class ExecutionFailure:
    """Handler run that exited non-zero or was killed on timeout.

    Only `output` is reported to the host. The other fields are for logs.

    Example:
        ```python
        failure = ExecutionFailure(output="boom\\n", exit_code=2, timed_out=False)
        ```
    """

    output: str
    exit_code: int
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class InitializationFailure:
    """Fatal startup error, reported once before the loop starts.

    Example:
        ```python
        failure = InitializationFailure("Handler `/var/task/x` doesn't exist", "Runtime.NoSuchHandler")
        ```
    """

    message: str
    error_kind: str
