from .client import HostRuntimeClient, HttpRuntimeClient, InvocationHandler
from .invocation import Invocation

__all__ = [
    "HostRuntimeClient",
    "HttpRuntimeClient",
    "Invocation",
    "InvocationHandler",
]
