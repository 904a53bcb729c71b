from __future__ import annotations

import argparse
import json
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich_argparse import RawTextRichHelpFormatter

from console_bridge import CommandExecutor, Invocation, extract_arguments, serve, timeout_seconds
from console_bridge.execution.command import builder_for_mode
from console_bridge.execution.types import CommandSpec, ExecutionFailure

_CONSOLE = Console(no_color=False)
DEFAULT_REMAINING_MS = 60_000
LOCAL_REQUEST_ID = "local"


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m cbr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def _payload_arg(value: str) -> Any:
    """Parse `--payload` as JSON.

    Example:
        ```python
        payload = _payload_arg('{"cli": "--dry-run"}')
        ```
    """
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise argparse.ArgumentTypeError(f"payload is not valid JSON: {exc.msg}") from exc


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for the console bridge.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m cbr",
        description=(
            "console-bridge CLI\n"
            "Run any command-line program as a serverless function handler."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m cbr serve\n"
            "  python -m cbr invoke ./bin/console --payload '\"cache:clear\"'\n"
            "  python -m cbr invoke ./artisan --payload '{\"cli\": \"migrate --force\"}' --interpreter php\n"
            "  python -m cbr invoke ./report.sh --remaining-ms 5000"
        ),
        formatter_class=_HELP_FORMATTER,
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    sub.add_parser(
        "serve",
        help="Process invocations from the runtime API until terminated.",
        description=(
            "Resolve the handler from LAMBDA_TASK_ROOT and _HANDLER, then poll\n"
            "AWS_LAMBDA_RUNTIME_API for invocations forever.\n"
            "BRIDGE_HANDLER_INTERPRETER, BRIDGE_COMMAND_MODE and BRIDGE_LOG_LEVEL are optional."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    invoke_cmd = sub.add_parser(
        "invoke",
        help="Run one invocation locally and print the reported outcome.",
        description=(
            "Run a handler once, the same way `serve` does for a single invocation.\n"
            "Output is echoed live, then the success value or failure is shown."
        ),
        epilog=(
            "Examples:\n"
            "  python -m cbr invoke ./bin/console --payload '{\"cli\": \"--dry-run\"}'\n"
            "  python -m cbr invoke ./bin/console --payload '\"--name \\\"Jane Doe\\\"\"' --argv"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    invoke_cmd.add_argument("handler", help="Path to the handler program.")
    invoke_cmd.add_argument(
        "--payload",
        type=_payload_arg,
        default=None,
        help=(
            "Invocation payload as JSON (default: null).\n"
            "A string or an object with a \"cli\" field becomes the arguments."
        ),
    )
    invoke_cmd.add_argument(
        "--remaining-ms",
        type=int,
        default=DEFAULT_REMAINING_MS,
        help=f"Remaining-time budget in milliseconds (default: {DEFAULT_REMAINING_MS}).",
    )
    invoke_cmd.add_argument(
        "--interpreter",
        default="",
        help="Interpreter prefix for the handler, e.g. php or python3.",
    )
    invoke_cmd.add_argument(
        "--argv",
        action="store_true",
        help="Split arguments with shell rules and spawn without a shell.",
    )

    return parser


def _invoke(args: argparse.Namespace) -> int:
    """Run one local invocation and render its outcome.

    Example:
        ```python
        code = _invoke(build_parser().parse_args(["invoke", "./bin/console"]))
        ```
    """
    handler = Path(args.handler).absolute()
    if not handler.is_file():
        _CONSOLE.print(Panel.fit(f"Handler `{handler}` doesn't exist", style="bold red"))
        return 1

    interpreter = args.interpreter.split() if args.interpreter else []
    executor = CommandExecutor(builder=builder_for_mode("argv" if args.argv else "shell", interpreter))
    invocation = Invocation.with_budget(LOCAL_REQUEST_ID, args.payload, args.remaining_ms)
    outcome = executor.execute(
        CommandSpec(handler_path=handler, arguments=extract_arguments(invocation.payload)),
        timeout_seconds(invocation.remaining_time_ms()),
    )

    if isinstance(outcome, ExecutionFailure):
        title = "Timed Out" if outcome.timed_out else f"Failed (exit code {outcome.exit_code})"
        _CONSOLE.print(Panel.fit(Pretty({"errorMessage": outcome.output}), title=title, border_style="red"))
        return 1
    _CONSOLE.print(Panel.fit(Pretty(outcome.to_payload()), title="Result", border_style="green"))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `cbr` CLI command handler.

    Example:
        ```python
        code = main(["invoke", "./bin/console", "--payload", '"--help"'])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.command == "serve":
        return serve()
    if args.command == "invoke":
        return _invoke(args)

    parser.error("Unhandled command")
    return 2
