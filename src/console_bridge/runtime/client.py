from __future__ import annotations

import os
import traceback
from typing import Any, Callable, Mapping, Protocol

import httpx
from loguru import logger

from ..errors import RuntimeApiError
from .invocation import Invocation

API_VERSION = "2018-06-01"
RUNTIME_API_ENV = "AWS_LAMBDA_RUNTIME_API"
USER_AGENT_PREFIX = "console-bridge"

InvocationHandler = Callable[[Any, Invocation], Mapping[str, Any]]


class HostRuntimeClient(Protocol):
    def fail_initialization(self, message: str, error_kind: str) -> None:
        """Report a fatal startup error to the host.

        Example:
            ```python
            client.fail_initialization("Handler `/var/task/x` doesn't exist", "Runtime.NoSuchHandler")
            ```
        """
        ...

    def next_invocation(self, handler: InvocationHandler) -> None:
        """Fetch one invocation, run `handler` on it and report the outcome.

        Example:
            ```python
            client.next_invocation(lambda payload, invocation: {"exitCode": 0, "output": ""})
            ```
        """
        ...


def _error_body(error_type: str, message: str, stack_trace: list[str]) -> dict[str, Any]:
    """Build the JSON error document the runtime API expects.

    Example:
        ```python
        body = _error_body("CommandFailed", "boom\\n", [])
        ```
    """
    return {"errorType": error_type, "errorMessage": message, "stackTrace": stack_trace}


class HttpRuntimeClient:
    """Host client speaking the Lambda Runtime API over HTTP.

    Example:
        ```python
        client = HttpRuntimeClient.bind("console")
        ```
    """

    def __init__(
        self,
        api_address: str,
        *,
        suffix: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a client for a `host:port` runtime API address.

        Example:
            ```python
            client = HttpRuntimeClient("127.0.0.1:9001", suffix="console")
            ```
        """
        cleaned = api_address.strip()
        if not cleaned:
            raise ValueError("HttpRuntimeClient requires a non-empty runtime API address")
        self.suffix = suffix
        self._http = httpx.Client(
            base_url=f"http://{cleaned}/{API_VERSION}",
            headers={"User-Agent": f"{USER_AGENT_PREFIX}/{suffix}"},
            # Polling blocks until the host has work; never time it out.
            timeout=httpx.Timeout(None),
            transport=transport,
        )

    @classmethod
    def bind(
        cls,
        suffix: str,
        environ: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "HttpRuntimeClient":
        """Create a client from `AWS_LAMBDA_RUNTIME_API` for one invocation mode.

        Example:
            ```python
            client = HttpRuntimeClient.bind("console", environ={"AWS_LAMBDA_RUNTIME_API": "127.0.0.1:9001"})
            ```
        """
        env = os.environ if environ is None else environ
        address = env.get(RUNTIME_API_ENV, "")
        if not address:
            raise ValueError(f"{RUNTIME_API_ENV} is not set")
        return cls(address, suffix=suffix, transport=transport)

    def close(self) -> None:
        """Close the underlying HTTP connection pool.

        Example:
            ```python
            client.close()
            ```
        """
        self._http.close()

    def fail_initialization(self, message: str, error_kind: str) -> None:
        """Post an initialization error to the runtime API.

        Example:
            ```python
            client.fail_initialization("Handler `/var/task/x` doesn't exist", "Runtime.NoSuchHandler")
            ```
        """
        self._post(
            "/runtime/init/error",
            _error_body(error_kind, message, []),
            headers={"Lambda-Runtime-Function-Error-Type": error_kind},
        )

    def next_invocation(self, handler: InvocationHandler) -> None:
        """Process exactly one invocation, reporting success or the raised error.

        Example:
            ```python
            client.next_invocation(loop.handle)
            ```
        """
        invocation = self._fetch()
        try:
            result = handler(invocation.payload, invocation)
        except Exception as exc:
            logger.debug("Invocation {} failed with {}", invocation.request_id, type(exc).__name__)
            self._post(
                f"/runtime/invocation/{invocation.request_id}/error",
                _error_body(
                    type(exc).__name__,
                    str(exc),
                    traceback.format_exception(exc),
                ),
                headers={"Lambda-Runtime-Function-Error-Type": "Unhandled"},
            )
            return
        self._post(f"/runtime/invocation/{invocation.request_id}/response", dict(result))

    def _fetch(self) -> Invocation:
        """Block until the runtime API hands over the next invocation.

        Example:
            ```python
            invocation = client._fetch()
            ```
        """
        response = self._http.get("/runtime/invocation/next")
        if response.status_code != 200:
            raise RuntimeApiError("GET /runtime/invocation/next", response.status_code, response.text)
        headers = response.headers
        request_id = headers.get("Lambda-Runtime-Aws-Request-Id")
        if not request_id:
            raise RuntimeApiError("GET /runtime/invocation/next", response.status_code, "missing request id header")
        return Invocation(
            request_id=request_id,
            payload=response.json() if response.content else None,
            deadline_ms=int(headers.get("Lambda-Runtime-Deadline-Ms", "0")),
            invoked_function_arn=headers.get("Lambda-Runtime-Invoked-Function-Arn"),
            trace_id=headers.get("Lambda-Runtime-Trace-Id"),
        )

    def _post(self, path: str, body: Mapping[str, Any], headers: Mapping[str, str] | None = None) -> None:
        """POST a JSON body and raise on any non-2xx answer.

        Example:
            ```python
            client._post("/runtime/invocation/abc/response", {"exitCode": 0, "output": ""})
            ```
        """
        response = self._http.post(path, json=dict(body), headers=dict(headers or {}))
        if not response.is_success:
            raise RuntimeApiError(f"POST {path}", response.status_code, response.text)
