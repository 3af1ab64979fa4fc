"""Shared test fixtures for restify.

Provides reusable fixtures for loading DSL fixtures, compiling and analyzing
sources, executing generated modules, isolating the working directory and
managing output state. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import itertools
import sys
import textwrap
from pathlib import Path
from types import ModuleType
from typing import Callable, Iterator

import pytest

from restify.analyzer import analyze
from restify.compiler import CompilationResult, compile_source
from restify.exceptions import SemanticError
from restify.models import CompilationUnit, GeneratedModule
from restify.output import reset_output
from restify.parser import build_unit, parse

FIXTURES_DIR = Path(__file__).parent / "fixtures"

_module_counter = itertools.count()


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test, the cached references go stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# DSL sources
# ---------------------------------------------------------------------------


@pytest.fixture
def users_source() -> str:
    """A valid source exercising every role, enums, attributes and builders."""
    return (FIXTURES_DIR / "users.rest").read_text(encoding="utf-8")


@pytest.fixture
def broken_source() -> str:
    """A source with syntax errors in two of its three endpoints."""
    return (FIXTURES_DIR / "broken.rest").read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Pipeline helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def compile_ok() -> Callable[[str], CompilationResult]:
    """Compile dedented DSL text and assert it produced no diagnostics."""

    def _compile(text: str) -> CompilationResult:
        result = compile_source(textwrap.dedent(text), "test.rest")
        assert result.ok, [str(d) for d in result.diagnostics]
        return result

    return _compile


@pytest.fixture
def analyze_source() -> Callable[[str], tuple[CompilationUnit, list[SemanticError]]]:
    """Parse and build dedented DSL text, then run the analyzer on it.

    The front end must be clean; only semantic errors are returned.
    """

    def _analyze(text: str) -> tuple[CompilationUnit, list[SemanticError]]:
        raw, syntax_errors = parse(textwrap.dedent(text), "test.rest")
        assert not syntax_errors, [str(e) for e in syntax_errors]
        unit, build_errors = build_unit(raw)
        assert not build_errors, [str(e) for e in build_errors]
        return unit, analyze(unit)

    return _analyze


@pytest.fixture
def load_generated() -> Iterator[Callable[[GeneratedModule], ModuleType]]:
    """Execute a generated module and return it as a live module object.

    Each module is registered in ``sys.modules`` under a unique name, which
    pydantic needs to resolve the postponed annotations, and removed again
    after the test.
    """
    registered: list[str] = []

    def _load(module: GeneratedModule) -> ModuleType:
        name = f"restify_generated_{next(_module_counter)}_{module.module_name.lstrip('_')}"
        mod = ModuleType(name)
        sys.modules[name] = mod
        registered.append(name)
        exec(compile(module.source, f"<{module.filename}>", "exec"), mod.__dict__)
        return mod

    yield _load
    for name in registered:
        sys.modules.pop(name, None)


# ---------------------------------------------------------------------------
# Isolated environment
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test inside an empty working directory with a clean environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RESTIFY_OUTPUT_DIR", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    return tmp_path
