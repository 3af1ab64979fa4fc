"""DSL front end -- load, tokenize, parse and build the IR.

This sub-package is responsible for the first half of the restify pipeline:
turning DSL text into a :class:`~restify.models.CompilationUnit` that the
analyzer can check.

Typical usage::

    from restify.parser import load_source, parse, build_unit

    text, unit = load_source("api.rest")
    raw, syntax_errors = parse(text, unit)
    ir, build_errors = build_unit(raw)

Sub-modules:

* :mod:`~restify.parser.loader` -- I/O layer (file or stdin).
* :mod:`~restify.parser.lexer` -- Tokenizer with line/column tracking.
* :mod:`~restify.parser.paths` -- Path-template parsing and validation.
* :mod:`~restify.parser.grammar` -- Recursive-descent parser producing the
  raw tree, with per-endpoint error recovery.
* :mod:`~restify.parser.builder` -- Raw tree to IR translation.
"""

from restify.parser.builder import build_unit
from restify.parser.grammar import parse
from restify.parser.loader import load_source

__all__ = ["load_source", "parse", "build_unit"]
