from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Protocol, Sequence

from .types import CommandSpec

COMMAND_MODES = ("shell", "argv")


@dataclass(frozen=True, slots=True)
class BuiltCommand:
    """Command ready to hand to `subprocess.Popen`.

    Example:
        ```python
        cmd = BuiltCommand(args="/var/task/run --dry-run", shell=True)
        ```
    """

    args: str | list[str]
    shell: bool


class CommandBuilder(Protocol):
    def build(self, spec: CommandSpec) -> BuiltCommand:
        """Turn a command spec into something the executor can spawn.

        Example:
            ```python
            cmd = builder.build(CommandSpec(Path("/var/task/run"), "--dry-run"))
            ```
        """
        ...


def _prefix(interpreter: Sequence[str]) -> list[str]:
    """Return the interpreter tokens, dropping empty ones.

    Example:
        ```python
        tokens = _prefix(["php"])
        ```
    """
    return [token for token in interpreter if token]


class ShellCommandBuilder:
    """Build `<handler> <arguments>` for a shell to interpret.

    The argument string is passed through as-is, so quoting and
    multiple tokens in the payload keep their shell meaning.

    Example:
        ```python
        builder = ShellCommandBuilder(interpreter=["php"])
        ```
    """

    def __init__(self, interpreter: Sequence[str] = ()) -> None:
        """Store an optional interpreter prefix such as `php` or `python3`.

        Example:
            ```python
            builder = ShellCommandBuilder()
            ```
        """
        self._interpreter = _prefix(interpreter)

    def build(self, spec: CommandSpec) -> BuiltCommand:
        """Concatenate handler and arguments with a single space.

        Example:
            ```python
            cmd = ShellCommandBuilder().build(CommandSpec(Path("/var/task/run"), "a 'b c'"))
            ```
        """
        head = " ".join(shlex.quote(token) for token in [*self._interpreter, str(spec.handler_path)])
        return BuiltCommand(args=f"{head} {spec.arguments}", shell=True)


class ArgvCommandBuilder:
    """Split the argument string with POSIX rules and spawn without a shell.

    Example:
        ```python
        builder = ArgvCommandBuilder(interpreter=["python3"])
        ```
    """

    def __init__(self, interpreter: Sequence[str] = ()) -> None:
        """Store an optional interpreter prefix.

        Example:
            ```python
            builder = ArgvCommandBuilder()
            ```
        """
        self._interpreter = _prefix(interpreter)

    def build(self, spec: CommandSpec) -> BuiltCommand:
        """Return an argv list for the handler and its arguments.

        Example:
            ```python
            cmd = ArgvCommandBuilder().build(CommandSpec(Path("/var/task/run"), "--name 'Jane Doe'"))
            ```
        """
        return BuiltCommand(
            args=[*self._interpreter, str(spec.handler_path), *shlex.split(spec.arguments)],
            shell=False,
        )


def builder_for_mode(mode: str, interpreter: Sequence[str] = ()) -> CommandBuilder:
    """Return the command builder for a configured command mode.

    Example:
        ```python
        builder = builder_for_mode("argv", interpreter=["php"])
        ```
    """
    if mode == "shell":
        return ShellCommandBuilder(interpreter)
    if mode == "argv":
        return ArgvCommandBuilder(interpreter)
    raise ValueError(f"command mode must be one of {', '.join(COMMAND_MODES)}")
