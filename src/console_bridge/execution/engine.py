from __future__ import annotations

from typing import Mapping, Protocol

from .types import CommandSpec, ExecutionFailure, ExecutionResult


class ExecutionEngine(Protocol):
    def execute(
        self,
        spec: CommandSpec,
        timeout_seconds: float,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult | ExecutionFailure:
        """Run one command and return a result or a failure.

        Example:
            ```python
            outcome = engine.execute(CommandSpec(Path("/var/task/run"), "--dry-run"), timeout_seconds=4)
            ```
        """
        ...
