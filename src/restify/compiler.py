"""Compilation driver: parse, build, analyze and generate in one call.

:func:`compile_source` runs every stage in order and aggregates their
diagnostics. It either returns complete generated output or the complete
list of diagnostics, never a mix of both:

* Syntax errors abandon the broken endpoint blocks; the rest of the source
  is still built, so build errors in healthy endpoints are reported too.
* Semantic analysis runs only on a clean front end. An IR with structures
  missing because they failed to build would otherwise produce spurious
  unresolved-reference errors.
* Generation runs only when no diagnostics were collected.

Stage completion is logged at DEBUG level through an injected
:class:`logging.Logger`, or the module logger when none is given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from restify.analyzer import analyze
from restify.exceptions import CompilationFailed, CompileError
from restify.generator import generate
from restify.models import CompilationUnit, GeneratedModule
from restify.parser import build_unit, parse

logger = logging.getLogger(__name__)


@dataclass
class CompilationResult:
    """Outcome of one compilation.

    Exactly one of ``modules`` and ``diagnostics`` is non-empty, except for
    a source that declares no endpoints, which yields neither.
    """

    unit: str
    modules: list[GeneratedModule] = field(default_factory=list)
    diagnostics: list[CompileError] = field(default_factory=list)
    ir: Optional[CompilationUnit] = None

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def compile_source(
    text: str,
    unit: str = "<string>",
    log: Optional[logging.Logger] = None,
) -> CompilationResult:
    """Compile DSL *text* into Python modules.

    Args:
        text: The DSL source.
        unit: Compilation-unit identifier used in diagnostic locations.
        log: Optional logging sink for stage events.

    Returns:
        A :class:`CompilationResult`.

    Raises:
        GenerationError: If the generator finds IR the analyzer should have
            rejected. This is an internal error, not a user error.

    Example::

        result = compile_source('[pub Users: { GET "/users" => {} }]')
        assert result.ok
        print(result.modules[0].source)
    """
    log = log or logger

    raw, syntax_errors = parse(text, unit)
    log.debug("Parsed %s: %d endpoint(s), %d syntax error(s)", unit, len(raw.endpoints), len(syntax_errors))

    ir, build_errors = build_unit(raw)
    log.debug("Built IR for %s: %d build error(s)", unit, len(build_errors))

    diagnostics: list[CompileError] = sorted(
        [*syntax_errors, *build_errors], key=lambda d: d.location.offset
    )
    if not diagnostics:
        diagnostics.extend(analyze(ir))
        log.debug("Analyzed %s: %d semantic error(s)", unit, len(diagnostics))

    if diagnostics:
        log.info("Compilation of %s failed with %d diagnostic(s)", unit, len(diagnostics))
        return CompilationResult(unit=unit, diagnostics=diagnostics, ir=ir)

    modules = generate(ir)
    log.debug("Generated %d module(s) for %s", len(modules), unit)
    return CompilationResult(unit=unit, modules=modules, ir=ir)


def compile_or_raise(
    text: str,
    unit: str = "<string>",
    log: Optional[logging.Logger] = None,
) -> list[GeneratedModule]:
    """Like :func:`compile_source`, but raise instead of returning diagnostics.

    Raises:
        CompilationFailed: Carrying every diagnostic, in order.
    """
    result = compile_source(text, unit, log)
    if not result.ok:
        raise CompilationFailed(result.diagnostics)
    return result.modules
