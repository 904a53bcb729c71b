from __future__ import annotations

SAFETY_MARGIN_SECONDS = 1
MINIMUM_TIMEOUT_SECONDS = 1


def timeout_seconds(remaining_ms: int | float) -> float:
    """Convert a remaining-time budget into a subprocess timeout.

    One second is held back so the bridge can still report before the
    host deadline fires.

    Example:
        ```python
        timeout = timeout_seconds(5000)  # 4.0
        ```
    """
    return max(MINIMUM_TIMEOUT_SECONDS, remaining_ms / 1000 - SAFETY_MARGIN_SECONDS)
