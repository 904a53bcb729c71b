from __future__ import annotations

from pathlib import Path

NO_SUCH_HANDLER = "Runtime.NoSuchHandler"


class BridgeError(Exception):
    """Base class for errors raised by console-bridge.

    Example:
        ```python
        raise BridgeError("something went wrong")
        ```
    """


class HandlerNotFound(BridgeError):
    """Raised when the configured handler file does not exist.

    Example:
        ```python
        raise HandlerNotFound(Path("/var/task/bin/console"))
        ```
    """

    error_kind = NO_SUCH_HANDLER

    def __init__(self, path: Path) -> None:
        """Store the missing path and build the host-facing message.

        Example:
            ```python
            err = HandlerNotFound(Path("/var/task/artisan"))
            ```
        """
        self.path = path
        super().__init__(f"Handler `{path}` doesn't exist")


class CommandFailed(BridgeError):
    """Raised to report a handler that exited non-zero or timed out.

    The message is the handler's captured output.

    Example:
        ```python
        raise CommandFailed("boom\\n")
        ```
    """

    def __init__(self, output: str) -> None:
        """Keep the captured output as the failure message.

        Example:
            ```python
            err = CommandFailed("boom\\n")
            ```
        """
        self.output = output
        super().__init__(output)


class RuntimeApiError(BridgeError):
    """Raised when the runtime API answers with an unexpected status.

    Example:
        ```python
        raise RuntimeApiError("POST /runtime/init/error", 500, "oops")
        ```
    """

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        """Record the failed call and its response.

        Example:
            ```python
            err = RuntimeApiError("GET /runtime/invocation/next", 502, "")
            ```
        """
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(f"{operation} failed with HTTP {status_code}: {body.strip()}")
