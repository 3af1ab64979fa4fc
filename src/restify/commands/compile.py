"""Compile and check commands.

``restify compile`` writes one module per endpoint (plus a package
``__init__.py``) into the configured output directory, or prints them with
``--dry-run``. ``restify check`` only reports diagnostics.
"""

from __future__ import annotations

from typing import Optional

import typer

from restify.commands.common import compile_from, fail_on_diagnostics
from restify.config import resolve_config, write_modules
from restify.exceptions import ConfigError
from restify.exit_codes import EXIT_GENERIC_FAILURE
from restify.generator import render_package_init
from restify.models import CompilerConfig
from restify.output import debug, error, print_source, success, warning


def _resolve(
    output_dir: Optional[str] = None,
    write_init: Optional[bool] = None,
    check_only: bool = False,
) -> CompilerConfig:
    try:
        return resolve_config(
            cli_output_dir=output_dir, cli_write_init=write_init, check_only=check_only
        )
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _run(source: str, config: CompilerConfig, dry_run: bool = False) -> None:
    result = compile_from(source)
    fail_on_diagnostics(result)

    if not result.modules:
        warning(f"No endpoints declared in {result.unit}")

    if config.check_only:
        success(f"No problems found in {result.unit}")
        return

    init_source = render_package_init(result.modules) if config.write_init else None
    if dry_run:
        for module in result.modules:
            print_source(module.source, title=module.filename)
        if init_source is not None:
            print_source(init_source, title="__init__.py")
        return

    try:
        paths = write_modules(result.modules, config, init_source)
    except OSError as exc:
        error(f"Failed to write output: {exc}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE) from None
    for path in paths:
        debug(f"Wrote {path}")
    success(f"Generated {len(result.modules)} module(s) in {config.output_dir}")


def compile_command(
    source: str = typer.Argument(..., help="DSL source file, or '-' for stdin."),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory for generated modules."
    ),
    no_init: bool = typer.Option(
        False, "--no-init", help="Do not write a package __init__.py."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print generated modules instead of writing them."
    ),
) -> None:
    """Compile a DSL source into Python modules.

    Example::

        restify compile api.rest -o src/api_client
    """
    config = _resolve(output_dir=output_dir, write_init=False if no_init else None)
    _run(source, config, dry_run=dry_run)


def check_command(
    source: str = typer.Argument(..., help="DSL source file, or '-' for stdin."),
) -> None:
    """Report diagnostics without generating anything."""
    _run(source, _resolve(check_only=True))
