"""Tests for restify.compiler -- the end-to-end pipeline.

Covers:
- Clean compilation yields modules and no diagnostics
- Syntax and build errors are reported together, in source order
- Semantic analysis is skipped when the front end failed
- compile_or_raise
- Stage logging through an injected logger
"""

from __future__ import annotations

import logging

import pytest

from restify.compiler import CompilationResult, compile_or_raise, compile_source
from restify.exceptions import BuildError, CompilationFailed, DSLSyntaxError, SemanticError


class TestCompileSource:
    """Test compile_source outcomes."""

    def test_clean_source(self, users_source: str) -> None:
        result = compile_source(users_source, "users.rest")
        assert isinstance(result, CompilationResult)
        assert result.ok
        assert result.unit == "users.rest"
        assert [m.module_name for m in result.modules] == ["users", "_internal"]
        assert result.diagnostics == []
        assert result.ir is not None

    def test_default_unit(self) -> None:
        result = compile_source('[pub A: { GET "/a" => {} }]')
        assert result.unit == "<string>"
        assert result.ok

    def test_empty_source(self) -> None:
        result = compile_source("// nothing here\n")
        assert result.ok
        assert result.modules == []

    def test_syntax_errors_yield_no_modules(self, broken_source: str) -> None:
        result = compile_source(broken_source, "broken.rest")
        assert not result.ok
        assert result.modules == []
        assert len(result.diagnostics) == 2
        assert all(isinstance(d, DSLSyntaxError) for d in result.diagnostics)
        assert [d.location.line for d in result.diagnostics] == [2, 7]
        assert all(d.location.unit == "broken.rest" for d in result.diagnostics)

    def test_healthy_endpoints_still_built(self, broken_source: str) -> None:
        result = compile_source(broken_source, "broken.rest")
        assert result.ir is not None
        assert [e.name for e in result.ir.endpoints] == ["Third"]

    def test_build_and_syntax_errors_together(self) -> None:
        source = (
            '[A: { GETT "/a" => {} }]\n'
            '[B: { GET "/b" => { Response: { a: strng } } }]\n'
        )
        result = compile_source(source)
        kinds = [type(d) for d in result.diagnostics]
        assert kinds == [DSLSyntaxError, BuildError]
        assert result.diagnostics[1].location.line == 2

    def test_semantic_errors(self) -> None:
        result = compile_source('[pub A: { GET "/a/{id}" => {} }]', "a.rest")
        assert not result.ok
        assert result.modules == []
        assert all(isinstance(d, SemanticError) for d in result.diagnostics)
        assert "id" in result.diagnostics[0].message

    def test_analysis_skipped_after_front_end_errors(self) -> None:
        source = (
            '[A: { GETT "/a" => {} }]\n'
            '[B: { GET "/b/{id}" => {} }]\n'
        )
        result = compile_source(source)
        assert len(result.diagnostics) == 1
        assert isinstance(result.diagnostics[0], DSLSyntaxError)

    def test_deterministic(self, users_source: str) -> None:
        first = compile_source(users_source, "users.rest")
        second = compile_source(users_source, "users.rest")
        assert [m.source for m in first.modules] == [m.source for m in second.modules]
        assert [str(d) for d in first.diagnostics] == [str(d) for d in second.diagnostics]


class TestCompileOrRaise:
    """Test the raising variant."""

    def test_returns_modules(self, users_source: str) -> None:
        modules = compile_or_raise(users_source, "users.rest")
        assert [m.endpoint for m in modules] == ["Users", "Internal"]

    def test_raises_with_every_diagnostic(self, broken_source: str) -> None:
        with pytest.raises(CompilationFailed) as exc_info:
            compile_or_raise(broken_source, "broken.rest")
        assert len(exc_info.value.diagnostics) == 2
        assert str(exc_info.value) == "compilation failed with 2 diagnostics"
        assert exc_info.value.exit_code == 4

    def test_singular_message(self) -> None:
        with pytest.raises(CompilationFailed, match="with 1 diagnostic$"):
            compile_or_raise('[A: { GETT "/a" => {} }]')


class TestLogging:
    """Test stage events sent to the logging sink."""

    def test_injected_logger(self, users_source: str, caplog: pytest.LogCaptureFixture) -> None:
        sink = logging.getLogger("restify.tests.sink")
        with caplog.at_level(logging.DEBUG, logger="restify.tests.sink"):
            compile_source(users_source, "users.rest", log=sink)
        messages = [r.getMessage() for r in caplog.records if r.name == "restify.tests.sink"]
        assert "Parsed users.rest: 2 endpoint(s), 0 syntax error(s)" in messages
        assert "Generated 2 module(s) for users.rest" in messages

    def test_failure_logged_at_info(self, broken_source: str, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="restify.compiler"):
            compile_source(broken_source, "broken.rest")
        assert any(
            r.levelno == logging.INFO and "failed with 2 diagnostic(s)" in r.getMessage()
            for r in caplog.records
        )
