"""Parse and validate method path templates.

A path template is the string literal after a method verb, e.g.
``"/api/user/{id}/pictures"``. Literal text is kept verbatim; each ``{name}``
becomes a parameter segment. Braces must be balanced and non-nested, and the
text between them must be a plain identifier.
"""

from __future__ import annotations

import re

from restify.exceptions import DSLSyntaxError
from restify.models import PathSegment, PathTemplate, SourceLocation

_PARAM_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_path_template(raw: str, location: SourceLocation) -> PathTemplate:
    """Split *raw* into literal and parameter segments.

    Args:
        raw: The template text, without quotes.
        location: Location of the string literal, used for diagnostics.

    Returns:
        The parsed :class:`~restify.models.PathTemplate`.

    Raises:
        DSLSyntaxError: For unbalanced or nested braces and for an empty or
            non-identifier parameter name.

    Example::

        >>> [s.text for s in parse_path_template("/user/{id}", loc).segments]
        ['/user/', 'id']
    """
    segments: list[PathSegment] = []
    literal: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "}":
            raise DSLSyntaxError(
                f"malformed path template {raw!r}: unmatched '}}' at position {i}",
                location,
            )
        if ch != "{":
            literal.append(ch)
            i += 1
            continue

        close = raw.find("}", i + 1)
        if close == -1:
            raise DSLSyntaxError(
                f"malformed path template {raw!r}: unclosed '{{' at position {i}",
                location,
            )
        name = raw[i + 1 : close]
        if "{" in name:
            raise DSLSyntaxError(
                f"malformed path template {raw!r}: nested '{{' at position {i}",
                location,
            )
        if not _PARAM_NAME_RE.match(name):
            shown = name or "(empty)"
            raise DSLSyntaxError(
                f"malformed path template {raw!r}: invalid parameter name {shown!r}",
                location,
            )
        if literal:
            segments.append(PathSegment(text="".join(literal)))
            literal = []
        segments.append(PathSegment(text=name, is_param=True))
        i = close + 1

    if literal:
        segments.append(PathSegment(text="".join(literal)))
    return PathTemplate(raw=raw, segments=segments)
