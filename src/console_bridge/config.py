from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import HandlerNotFound
from .execution.command import COMMAND_MODES

TASK_ROOT_ENV = "LAMBDA_TASK_ROOT"
HANDLER_ENV = "_HANDLER"
INTERPRETER_ENV = "BRIDGE_HANDLER_INTERPRETER"
COMMAND_MODE_ENV = "BRIDGE_COMMAND_MODE"
LOG_LEVEL_ENV = "BRIDGE_LOG_LEVEL"

DEFAULT_COMMAND_MODE = "shell"
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True, slots=True)
class BridgeSettings:
    """Startup settings read once from the environment.

    Example:
        ```python
        settings = BridgeSettings(task_root="/var/task", handler="bin/console")
        ```
    """

    task_root: str
    handler: str
    interpreter: tuple[str, ...] = ()
    command_mode: str = DEFAULT_COMMAND_MODE
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        """Validate command mode and log level.

        Example:
            ```python
            BridgeSettings(task_root="/var/task", handler="run", command_mode="argv")
            ```
        """
        if self.command_mode not in COMMAND_MODES:
            raise ValueError(f"command_mode must be one of {', '.join(COMMAND_MODES)}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(sorted(LOG_LEVELS))}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "BridgeSettings":
        """Read settings from environment variables.

        Example:
            ```python
            settings = BridgeSettings.from_env({"LAMBDA_TASK_ROOT": "/var/task", "_HANDLER": "artisan"})
            ```
        """
        env = os.environ if environ is None else environ
        return cls(
            task_root=env.get(TASK_ROOT_ENV, ""),
            handler=env.get(HANDLER_ENV, ""),
            interpreter=tuple(shlex.split(env.get(INTERPRETER_ENV, ""))),
            command_mode=env.get(COMMAND_MODE_ENV, DEFAULT_COMMAND_MODE).strip().lower(),
            log_level=env.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper(),
        )


def handler_path(settings: BridgeSettings) -> Path:
    """Join task root and handler into an absolute path, without checking it.

    Example:
        ```python
        path = handler_path(BridgeSettings(task_root="/var/task", handler="bin/console"))
        ```
    """
    return (Path(settings.task_root) / settings.handler).absolute()


def resolve_handler(settings: BridgeSettings) -> Path:
    """Return the handler path, raising `HandlerNotFound` if it is not a file.

    Example:
        ```python
        path = resolve_handler(BridgeSettings.from_env())
        ```
    """
    path = handler_path(settings)
    if not path.is_file():
        raise HandlerNotFound(path)
    return path
