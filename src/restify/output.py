"""Terminal output for the restify CLI.

Generated source (``compile --dry-run``) and ``inspect`` tables are data and
go to stdout. Everything else goes to stderr, compile diagnostics included,
so ``restify compile -n api.rest > api.py`` captures nothing but code.

The root CLI callback builds an :class:`OutputManager` from the ``--json``,
``--plain``, ``--no-color``, ``--quiet`` and ``--verbose`` flags and installs
it with :func:`set_output`. Commands use the module-level helpers
(:func:`error`, :func:`print_table`, ...), which look it up through
:func:`get_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from restify.exceptions import CompileError


class OutputFormat(str, Enum):
    """Rendering of stdout data.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (set to anything, even empty) or ``TERM=dumb`` turns colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


class OutputManager:
    """Sends CLI output to the right stream in the selected format.

    Args:
        format: Format of stdout data.
        no_color: Write stderr messages as bare text instead of Rich markup.
        quiet: Drop ``info`` and ``success`` messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format

        rich_stdout = format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        sys.stdout.write(f"{text}\n")
        sys.stdout.flush()

    def print_source(self, source: str, title: Optional[str] = None) -> None:
        """Write one generated module to stdout.

        Rich mode draws a rule labelled *title* and highlights the code. The
        other modes write a ``# --- title ---`` marker line, then the code
        as is, so that the output stays valid Python.
        """
        if self._format != OutputFormat.RICH:
            if title:
                self.print_data(f"# --- {title} ---")
            self.print_data(source.rstrip("\n"))
            return
        if title:
            self._stdout.rule(escape(title))
        self._stdout.print(Syntax(source, "python", theme="monokai", word_wrap=True))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout.

        JSON mode emits a list of objects keyed by header, plain mode emits
        tab-separated lines with a header line first, and Rich mode draws a
        table. *title* is only shown in Rich mode.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*map(escape, row))
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def _emit(self, text: str, markup: str) -> None:
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup, highlight=False)

    def diagnostics(self, items: Sequence[CompileError]) -> None:
        """Write each diagnostic as ``unit:line:col: kind: message``. Not affected by ``quiet``."""
        for diag in items:
            self._emit(
                str(diag),
                f"[bold]{escape(str(diag.location))}:[/bold] "
                f"[red]{diag.kind}:[/red] {escape(diag.message)}",
            )

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, escape(message))

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")


# ------------------------------------------------------------------ #
# Active manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """The installed :class:`OutputManager`; a default one is created on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager.

    Its consoles hold the streams that were current when it was created, so
    tests drop it once those streams are gone.
    """
    global _output
    _output = None


def print_source(source: str, title: Optional[str] = None) -> None:
    get_output().print_source(source, title)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def diagnostics(items: Sequence[CompileError]) -> None:
    get_output().diagnostics(items)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
