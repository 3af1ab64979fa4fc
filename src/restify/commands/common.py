"""Helpers shared by the compile, check and inspect commands."""

from __future__ import annotations

import logging

import typer

from restify.compiler import CompilationResult, compile_source
from restify.exceptions import CompilationFailed, RestifyError
from restify.output import debug, diagnostics, error
from restify.parser import load_source

logger = logging.getLogger("restify.cli")


def compile_from(source: str) -> CompilationResult:
    """Load *source* (a path or ``-``) and compile it.

    Load failures and internal generation errors are reported and turned
    into a :class:`typer.Exit` with the matching exit code. Compile
    diagnostics are printed, and the result is returned either way.

    Raises:
        typer.Exit: If the source cannot be loaded or generation fails.
    """
    try:
        text, unit = load_source(source)
        debug(f"Loaded {len(text)} characters from {unit}")
        result = compile_source(text, unit, logger)
    except RestifyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not result.ok:
        diagnostics(result.diagnostics)
    return result


def fail_on_diagnostics(result: CompilationResult) -> None:
    """Exit with the compile-error code when *result* has diagnostics.

    Raises:
        typer.Exit: If the compilation failed.
    """
    if result.ok:
        return
    failure = CompilationFailed(result.diagnostics)
    error(str(failure))
    raise typer.Exit(code=failure.exit_code)
