from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

CLI_FIELD = "cli"


@dataclass(frozen=True, slots=True)
class StructuredArgs:
    """Mapping payload from the former invocation format.

    Example:
        ```python
        variant = StructuredArgs(fields={"cli": "--dry-run"})
        ```
    """

    fields: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class RawArgs:
    """Bare string payload passed straight through as arguments.

    Example:
        ```python
        variant = RawArgs(text="migrate --force")
        ```
    """

    text: str


@dataclass(frozen=True, slots=True)
class NoArgs:
    """Any payload shape that carries no arguments.

    Example:
        ```python
        variant = NoArgs()
        ```
    """


PayloadArgs = StructuredArgs | RawArgs | NoArgs


def classify_payload(payload: Any) -> PayloadArgs:
    """Tag a decoded invocation payload with its argument shape.

    Example:
        ```python
        variant = classify_payload({"cli": "--dry-run"})
        ```
    """
    if isinstance(payload, Mapping):
        return StructuredArgs(fields=payload)
    if isinstance(payload, str):
        return RawArgs(text=payload)
    return NoArgs()


def arguments_for(variant: PayloadArgs) -> str:
    """Return the argument string carried by a payload variant.

    Example:
        ```python
        args = arguments_for(RawArgs(text="--help"))
        ```
    """
    if isinstance(variant, StructuredArgs):
        value = variant.fields.get(CLI_FIELD)
        return value if isinstance(value, str) else ""
    if isinstance(variant, RawArgs):
        return variant.text
    return ""


def extract_arguments(payload: Any) -> str:
    """Derive the handler argument string from a raw invocation payload.

    Unsupported shapes degrade to an empty string instead of raising.

    Example:
        ```python
        args = extract_arguments({"cli": "cache:clear --env=prod"})
        ```
    """
    return arguments_for(classify_payload(payload))
