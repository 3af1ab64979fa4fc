"""Inspect command -- show what a DSL source declares.

Compiles the source and prints one row per structure or enum with its
endpoint, method, generated identifier, role and derived capabilities. No
files are written.
"""

from __future__ import annotations

import typer

from restify.commands.common import compile_from, fail_on_diagnostics
from restify.exceptions import GenerationError
from restify.models import Capability, DataStructure
from restify.naming import method_identifier
from restify.output import error, print_table


def _capabilities(cap: Capability) -> str:
    names = [
        name
        for name, enabled in (
            ("encode", cap.encode),
            ("decode", cap.decode),
            ("url-encoded", cap.url_encoded),
        )
        if enabled
    ]
    return ", ".join(names) or "-"


def inspect_command(
    source: str = typer.Argument(..., help="DSL source file, or '-' for stdin."),
) -> None:
    """List endpoints, methods, structures, roles and capabilities.

    Example::

        restify --plain inspect api.rest
    """
    result = compile_from(source)
    fail_on_diagnostics(result)
    if result.ir is None:
        failure = GenerationError(f"no IR was built for {result.unit}")
        error(str(failure))
        raise typer.Exit(code=failure.exit_code)

    rows: list[list[str]] = []
    for endpoint in result.ir.endpoints:
        label = f"pub {endpoint.name}" if endpoint.public else endpoint.name
        for method in endpoint.methods:
            route = f"{method.verb.value} {method.path.raw}"
            ident = method_identifier(method)
            if not method.items:
                rows.append([label, route, ident, "-", "-", "-"])
            for item in method.items:
                role = item.role.value if isinstance(item, DataStructure) else "enum"
                rows.append([label, route, ident, item.name, role, _capabilities(item.capability)])

    print_table(
        ["Endpoint", "Method", "Identifier", "Item", "Role", "Capabilities"],
        rows,
        title=f"Endpoints in {result.unit}",
    )
