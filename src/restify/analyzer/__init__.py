"""Semantic analysis of the restify IR.

The analyzer takes the :class:`~restify.models.CompilationUnit` produced by
the builder, enriches it in place and reports rule violations:

* :mod:`~restify.analyzer.scope` -- resolution of nested references.
* :mod:`~restify.analyzer.capabilities` -- the role capability table and the
  fixed-point propagation to generic structs and enums.
* :mod:`~restify.analyzer.rules` -- attribute scoping, wire names,
  optional-field flags, the is-error marker, path-parameter coverage and
  uniqueness.
"""

from restify.analyzer.capabilities import ROLE_CAPABILITIES, assign_capabilities
from restify.analyzer.rules import Analyzer, analyze
from restify.analyzer.scope import EndpointScope

__all__ = [
    "Analyzer",
    "EndpointScope",
    "ROLE_CAPABILITIES",
    "analyze",
    "assign_capabilities",
]
