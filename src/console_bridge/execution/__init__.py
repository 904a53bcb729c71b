from .command import ArgvCommandBuilder, BuiltCommand, CommandBuilder, ShellCommandBuilder
from .engine import ExecutionEngine
from .executor import CommandExecutor
from .output import BufferSink, OutputTee, StreamSink
from .types import CommandSpec, ExecutionFailure, ExecutionResult, InitializationFailure

__all__ = [
    "ArgvCommandBuilder",
    "BufferSink",
    "BuiltCommand",
    "CommandBuilder",
    "CommandExecutor",
    "CommandSpec",
    "ExecutionEngine",
    "ExecutionFailure",
    "ExecutionResult",
    "InitializationFailure",
    "OutputTee",
    "ShellCommandBuilder",
    "StreamSink",
]
