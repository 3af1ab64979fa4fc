"""Numeric process exit codes returned by the ``restify`` command.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~restify.exceptions.RestifyError` subclass.
Build scripts can inspect the exit code to tell bad DSL input apart from an
internal compiler bug without parsing stderr.

Example::

    $ restify check endpoints.rest
    $ echo $?
    4   # EXIT_COMPILE_ERROR -- the source has diagnostics
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_SOURCE_ERROR = 3
"""The DSL source could not be read (missing, unreadable or empty)."""

EXIT_COMPILE_ERROR = 4
"""The DSL source produced syntax, build or semantic diagnostics."""

EXIT_INTERNAL_ERROR = 5
"""The code generator hit a broken invariant -- a compiler bug, not bad input."""

EXIT_CONFIG_ERROR = 6
"""The project configuration file is invalid."""
