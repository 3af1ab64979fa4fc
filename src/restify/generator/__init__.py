"""Code generator -- analyzed IR to Python modules.

This sub-package is the last stage of the restify pipeline. It takes a
:class:`~restify.models.CompilationUnit` that passed semantic analysis and
emits one :class:`~restify.models.GeneratedModule` per endpoint.

Sub-modules:

* :mod:`~restify.generator.types` -- Type descriptor to annotation mapping.
* :mod:`~restify.generator.docs` -- Docstrings for generated code.
* :mod:`~restify.generator.emitter` -- Endpoint views and Jinja2 rendering.

Generated modules import :mod:`restify.runtime` at run time.
"""

from restify.generator.emitter import create_environment, generate, render_package_init

__all__ = ["create_environment", "generate", "render_package_init"]
