"""Built-in CLI sub-commands.

Each sub-module exposes plain command functions that
:mod:`restify.app` registers on the root Typer application:

* :mod:`~restify.commands.compile` -- ``compile`` and ``check``.
* :mod:`~restify.commands.inspect` -- ``inspect``.
"""
