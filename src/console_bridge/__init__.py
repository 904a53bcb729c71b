from .config import BridgeSettings, resolve_handler
from .deadline import timeout_seconds
from .errors import BridgeError, CommandFailed, HandlerNotFound, RuntimeApiError
from .execution.executor import CommandExecutor
from .payload import extract_arguments
from .runner import InvocationLoop, LoopState, serve
from .runtime.client import HttpRuntimeClient
from .runtime.invocation import Invocation

__all__ = [
    "BridgeError",
    "BridgeSettings",
    "CommandExecutor",
    "CommandFailed",
    "HandlerNotFound",
    "HttpRuntimeClient",
    "Invocation",
    "InvocationLoop",
    "LoopState",
    "RuntimeApiError",
    "extract_arguments",
    "resolve_handler",
    "serve",
    "timeout_seconds",
]
