from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


def _now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds.

    Example:
        ```python
        now = _now_ms()
        ```
    """
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class Invocation:
    """One unit of work handed over by the host.

    Example:
        ```python
        inv = Invocation(request_id="abc", payload={"cli": "--dry-run"}, deadline_ms=1_700_000_000_000)
        ```
    """

    request_id: str
    payload: Any
    deadline_ms: int
    invoked_function_arn: str | None = None
    trace_id: str | None = None

    @classmethod
    def with_budget(cls, request_id: str, payload: Any, remaining_ms: int, **kwargs: Any) -> "Invocation":
        """Build an invocation whose deadline is `remaining_ms` from now.

        Used for local runs and tests, where no host supplies a deadline header.

        Example:
            ```python
            inv = Invocation.with_budget("abc", "--help", remaining_ms=5000)
            ```
        """
        return cls(request_id=request_id, payload=payload, deadline_ms=_now_ms() + remaining_ms, **kwargs)

    def remaining_time_ms(self, now_ms: int | None = None) -> int:
        """Return the milliseconds left before the host deadline, never negative.

        Example:
            ```python
            left = inv.remaining_time_ms()
            ```
        """
        current = _now_ms() if now_ms is None else now_ms
        return max(0, self.deadline_ms - current)
