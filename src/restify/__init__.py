"""restify -- compile a REST endpoint DSL into typed Python client modules.

The DSL declares endpoints, their methods (verb + path template) and the
structures each method exchanges: headers, request and response bodies,
query parameters and nested structs and enums. restify parses it, checks it
and emits one module per endpoint containing pydantic models plus URI,
request-building and response-parsing functions.

Typical workflow::

    restify check api.rest             # report diagnostics only
    restify compile api.rest -o api    # write the generated modules

Modules:
    app: Typer application and CLI entry point.
    compiler: The parse -> build -> analyze -> generate driver.
    models: Pydantic models shared across the entire package.
    runtime: Support code imported by generated modules.
    config: Configuration precedence and atomic output writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
