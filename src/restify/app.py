"""The ``restify`` command line.

:data:`app` is the Typer application with the ``compile``, ``check`` and
``inspect`` commands. Its root callback turns the global flags into an
:class:`~restify.output.OutputManager` and a logging setup before any
command runs.

:func:`main` is the console-script entry point. A
:class:`~restify.exceptions.RestifyError` that escapes a command ends the
process with that error's ``exit_code``.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from restify import __version__
from restify.commands.compile import check_command, compile_command
from restify.commands.inspect import inspect_command
from restify.exceptions import InvalidUsageError, RestifyError
from restify.exit_codes import EXIT_GENERIC_FAILURE
from restify.output import OutputFormat, OutputManager, error, set_output

app = typer.Typer(
    name="restify",
    help="Compile REST endpoint DSL sources into typed Python modules.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("compile")(compile_command)
app.command("check")(check_command)
app.command("inspect")(inspect_command)

_log_handler: Optional[logging.Handler] = None


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"restify {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, plain: bool) -> None:
    """Send ``restify.*`` records to stderr when *verbose*, otherwise keep only warnings.

    The handler from a previous in-process run is removed first.
    """
    global _log_handler
    package_logger = logging.getLogger("restify")
    if _log_handler is not None:
        package_logger.removeHandler(_log_handler)
        _log_handler = None
    if not verbose:
        package_logger.setLevel(logging.WARNING)
        return

    handler: logging.Handler
    if plain:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    _log_handler = handler


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print inspect tables as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print plain text, without Rich formatting."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print errors and data."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print debug messages and compiler stage logs."
    ),
) -> None:
    """Compile REST endpoint DSL sources into typed Python modules."""
    if json_output and plain_output:
        failure = InvalidUsageError("--json and --plain cannot be combined")
        error(str(failure))
        raise typer.Exit(code=failure.exit_code)

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(verbose, plain=no_color or output.format != OutputFormat.RICH)


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(130)


def main() -> None:
    """Entry point of the ``restify`` console script.

    Raises:
        SystemExit: Always, with the command's exit code.
    """
    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except RestifyError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
