"""Casing styles for type-level ``rename_all`` attributes.

Each supported style name maps to a function converting a declared field or
variant name into its wire-format spelling. Words are split on underscores,
hyphens and lower-to-upper case boundaries, so ``user_name``, ``userName``
and ``UserName`` all split into ``["user", "name"]``.

The style names match the ones serde uses, which is what REST API authors
usually already know.
"""

from __future__ import annotations

import re
from typing import Callable

_BOUNDARY_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")


def split_words(name: str) -> list[str]:
    """Split *name* into lowercase words.

    Example::

        >>> split_words("HTTPStatusCode")
        ['http', 'status', 'code']
        >>> split_words("user_id")
        ['user', 'id']
    """
    return [w.lower() for w in _BOUNDARY_RE.findall(name)]


def _camel(words: list[str]) -> str:
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


CASING_STYLES: dict[str, Callable[[list[str]], str]] = {
    "camelCase": _camel,
    "PascalCase": lambda words: "".join(w.capitalize() for w in words),
    "snake_case": lambda words: "_".join(words),
    "SCREAMING_SNAKE_CASE": lambda words: "_".join(words).upper(),
    "kebab-case": lambda words: "-".join(words),
    "SCREAMING-KEBAB-CASE": lambda words: "-".join(words).upper(),
    "lowercase": lambda words: "".join(words),
    "UPPERCASE": lambda words: "".join(words).upper(),
}
"""Supported ``rename_all`` style names and their transforms."""


def is_supported_style(style: str) -> bool:
    return style in CASING_STYLES


def apply_casing(name: str, style: str) -> str:
    """Rewrite *name* in the given casing *style*.

    Args:
        name: A declared DSL identifier.
        style: One of the keys of :data:`CASING_STYLES`.

    Raises:
        KeyError: If *style* is not supported. Callers validate the style
            first with :func:`is_supported_style`.
    """
    words = split_words(name)
    if not words:
        return name
    return CASING_STYLES[style](words)


def to_snake_case(name: str) -> str:
    """Convenience wrapper used for module and function names."""
    return apply_casing(name, "snake_case")


def to_pascal_case(name: str) -> str:
    """Convenience wrapper used for generated class names."""
    return apply_casing(name, "PascalCase")
