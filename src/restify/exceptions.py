"""Exception hierarchy for restify.

All exceptions inherit from :class:`RestifyError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`restify.exit_codes`.
The top-level error handler in :func:`restify.app.main` catches
``RestifyError`` and exits with the appropriate code.

Diagnostics produced while compiling DSL source are instances of
:class:`CompileError`. They are collected into lists rather than raised one
at a time, so that a single compilation reports every problem it finds.

Subclass hierarchy::

    RestifyError (exit 1)
    +-- CompileError        (exit 4)
    |   +-- DSLSyntaxError
    |   +-- BuildError
    |   +-- SemanticError
    +-- CompilationFailed   (exit 4)
    +-- GenerationError     (exit 5)
    +-- SourceLoadError     (exit 3)
    +-- ConfigError         (exit 6)
    +-- InvalidUsageError   (exit 2)
"""

from __future__ import annotations

from typing import Optional, Sequence

from restify.exit_codes import (
    EXIT_COMPILE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERNAL_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_SOURCE_ERROR,
)
from restify.models import SourceLocation


class RestifyError(Exception):
    """Base exception for all restify errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class CompileError(RestifyError):
    """A located diagnostic produced while compiling DSL source.

    Args:
        message: What went wrong, phrased for the DSL author.
        location: Where in the source it went wrong.
    """

    exit_code = EXIT_COMPILE_ERROR
    kind: str = "error"

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location or SourceLocation()

    def __str__(self) -> str:
        return f"{self.location}: {self.kind}: {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, {self.location!s})"


class DSLSyntaxError(CompileError):
    """Malformed grammar: unknown tokens, verbs, role names or path templates.

    Named with a ``DSL`` prefix to avoid shadowing the built-in
    ``SyntaxError``.
    """

    kind = "syntax error"


class BuildError(CompileError):
    """A raw tree node could not be classified into an IR shape."""

    kind = "build error"


class SemanticError(CompileError):
    """A well-formed IR violates one of the analyzer's rules."""

    kind = "semantic error"


class CompilationFailed(RestifyError):
    """Raised by :func:`restify.compiler.compile_or_raise` when diagnostics exist.

    Args:
        diagnostics: Every diagnostic collected, in source order.
    """

    exit_code = EXIT_COMPILE_ERROR

    def __init__(self, diagnostics: Sequence[CompileError]):
        self.diagnostics = list(diagnostics)
        count = len(self.diagnostics)
        super().__init__(
            f"compilation failed with {count} diagnostic{'s' if count != 1 else ''}"
        )


class GenerationError(RestifyError):
    """The generator met IR the analyzer should have rejected.

    Always fatal. It signals a bug in the analyzer/generator contract, never a
    problem with the user's input.
    """

    exit_code = EXIT_INTERNAL_ERROR


class SourceLoadError(RestifyError):
    """Raised when DSL source cannot be read from a file or stdin."""

    exit_code = EXIT_SOURCE_ERROR


class ConfigError(RestifyError):
    """Raised for an unreadable or invalid project configuration file."""

    exit_code = EXIT_CONFIG_ERROR


class InvalidUsageError(RestifyError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE
