"""Python identifiers for generated modules, functions, classes and attributes.

The analyzer uses these functions to detect collisions before generation,
and the generator uses them to emit code, so both stages always agree on the
names.

Naming rules:

* Module: ``snake_case(endpoint name)``, with a leading underscore for
  non-public endpoints.
* Method identifier: the lowercase verb, then each static path piece, then
  ``by_<param>`` for every path parameter, in path order. A path with no
  static pieces and no parameters is ``root``.
* Class: ``PascalCase(method identifier)`` followed by the structure name.
* Attribute: the declared name, with a trailing underscore when it would
  clash with a Python keyword, a pydantic or runtime attribute, or a name the
  generated module imports.
"""

from __future__ import annotations

import keyword
import re

from restify import runtime
from restify.casing import to_pascal_case, to_snake_case
from restify.models import Endpoint, Method

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")
_MULTI_UNDERSCORE_RE = re.compile(r"_+")

# Module-level imports and the builtins used in annotations. A class-body
# attribute with one of these names would shadow the type it is annotated with.
_MODULE_LEVEL_NAMES = frozenset(
    {"annotations", "runtime", "Field", "NonNegativeInt", "Optional", "date", "datetime"}
    | {"str", "int", "float", "bool", "bytes", "list"}
)

RESERVED_ATTRIBUTE_NAMES: frozenset[str] = (
    frozenset(keyword.kwlist)
    | frozenset(dir(runtime.RestEnum))
    | frozenset(dir(runtime.Both))
    | _MODULE_LEVEL_NAMES
)
"""Names a generated model attribute must not use verbatim."""


def _sanitize(piece: str) -> str:
    cleaned = _INVALID_IDENT_RE.sub("_", piece)
    return _MULTI_UNDERSCORE_RE.sub("_", cleaned).strip("_")


def module_name(endpoint: Endpoint) -> str:
    """Module name for *endpoint*.

    Example::

        >>> module_name(Endpoint(name="UserProfile", public=False, ...))
        '_user_profile'
    """
    name = _sanitize(to_snake_case(endpoint.name)) or "endpoint"
    if name[0].isdigit() or keyword.iskeyword(name):
        name = f"endpoint_{name}"
    return name if endpoint.public else f"_{name}"


def method_identifier(method: Method) -> str:
    """Function-name stem for *method*.

    ``GET "/api/user/{id}"`` -> ``get_api_user_by_id``;
    ``GET "/"`` -> ``get_root``.
    """
    parts: list[str] = [method.verb.value.lower()]
    has_path = False
    for seg in method.path.segments:
        if seg.is_param:
            parts.append(f"by_{to_snake_case(seg.text)}")
            has_path = True
            continue
        for piece in seg.text.split("/"):
            cleaned = _sanitize(piece).lower()
            if cleaned:
                parts.append(cleaned)
                has_path = True
    if not has_path:
        parts.append("root")
    return _MULTI_UNDERSCORE_RE.sub("_", "_".join(parts))


def class_name(method: Method, item_name: str) -> str:
    """Generated class name for structure or enum *item_name* of *method*."""
    return to_pascal_case(method_identifier(method)) + item_name


def attribute_name(name: str) -> str:
    """Python attribute name for a declared field or variant name.

    Leading underscores are removed, since pydantic treats those attributes
    as private. Reserved names get a trailing underscore (``class`` ->
    ``class_``, ``json`` -> ``json_``).
    """
    stripped = name.lstrip("_")
    if not stripped:
        stripped = "field"
    elif stripped[0].isdigit():
        stripped = f"field_{stripped}"
    if stripped in RESERVED_ATTRIBUTE_NAMES or stripped.startswith("model_"):
        return f"{stripped}_"
    return stripped
