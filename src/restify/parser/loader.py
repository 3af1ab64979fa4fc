"""Load DSL source text from a local file or stdin.

This module handles all I/O for fetching raw DSL text. The compiler never
reaches out to the network: a source is either a path on disk or ``-`` for
standard input.

The single public function is :func:`load_source`. Its result is a
``(text, unit)`` pair where ``unit`` is the compilation-unit identifier that
every diagnostic location will carry.
"""

from __future__ import annotations

import sys
from pathlib import Path

from restify.exceptions import SourceLoadError

STDIN_UNIT = "<stdin>"
"""Unit identifier recorded for source read from standard input."""


def load_source(source: str) -> tuple[str, str]:
    """Load DSL text from a file path or stdin (``'-'``).

    Args:
        source: A file path, or ``'-'`` for stdin.

    Returns:
        A ``(text, unit)`` tuple.

    Raises:
        SourceLoadError: If the source is missing, unreadable or empty.
    """
    if source == "-":
        return _load_from_stdin(), STDIN_UNIT
    return _load_from_file(source), source


def _load_from_stdin() -> str:
    """Read source from stdin.

    Raises:
        SourceLoadError: If stdin cannot be read or is empty.
    """
    try:
        content = sys.stdin.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SourceLoadError("No input received from stdin")
    return content


def _load_from_file(path: str) -> str:
    """Load source from a local file.

    Any extension is accepted; ``.rest`` is conventional.

    Raises:
        SourceLoadError: If the file does not exist, cannot be decoded as
            UTF-8, or contains only whitespace.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SourceLoadError(f"Source file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceLoadError(f"Failed to read source file {path}: {exc}") from exc

    if not content.strip():
        raise SourceLoadError(f"Source file is empty: {path}")
    return content
