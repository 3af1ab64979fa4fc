"""Docstrings for generated classes and functions.

Every generated class and function gets a docstring derived from the IR:
the structure's role and capability, each field's wire name and optional
behaviour, the is-error marker and the method's path template. Text that
comes from the DSL source (paths, wire names) is escaped so it can never
terminate the docstring early.
"""

from __future__ import annotations

from restify.generator.types import describe_type
from restify.models import (
    Capability,
    DataStructure,
    Endpoint,
    EnumDefinition,
    Field,
    Method,
    StructRole,
)
from restify.naming import attribute_name

_ROLE_SUMMARY: dict[StructRole, str] = {
    StructRole.HEADER: "Headers of",
    StructRole.REQUEST: "Request body of",
    StructRole.RESPONSE: "Response body of",
    StructRole.REQRES: "Request and response body of",
    StructRole.QUERY: "Query parameters of",
    StructRole.GENERIC: "Nested structure declared in",
}


def escape(text: str) -> str:
    """Make DSL-provided *text* safe inside a triple-quoted docstring."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def route(method: Method) -> str:
    return f"``{method.verb.value} {escape(method.path.raw)}``"


def format_docstring(text: str, indent: int = 0) -> str:
    """Render *text* as a triple-quoted docstring at *indent* spaces.

    The opening quotes are not indented (the template places them); every
    following non-blank line and the closing quotes are.
    """
    lines = text.strip("\n").splitlines()
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    pad = " " * indent
    body = [lines[0]] + [f"{pad}{line}" if line else "" for line in lines[1:]]
    return '"""' + "\n".join(body) + f'\n{pad}"""'


def _capability_sentence(cap: Capability) -> str:
    if cap.url_encoded:
        return "Encoded for sending and rendered as a URL query string."
    if cap.encode and cap.decode:
        return "Encoded for sending and decoded from received payloads."
    if cap.encode:
        return "Encoded for sending."
    return "Decoded from received payloads."


def _field_line(field: Field, path_params: frozenset[str]) -> str:
    parts = [f"``{describe_type(field.type)}`` as ``{escape(field.wire_name or field.name)}``."]
    if not field.optional and field.has_default:
        parts.append("Zero value when missing.")
    elif not field.optional:
        parts.append("Required.")
    elif field.omit_if_absent and field.default_if_missing:
        parts.append("Optional, omitted when absent and ``None`` when missing.")
    elif field.omit_if_absent:
        parts.append("Optional, omitted when absent.")
    else:
        parts.append("Optional, ``None`` when missing.")
    if field.name in path_params:
        parts.append(f"Fills ``{{{field.name}}}``.")
    if field.is_error:
        parts.append("Signals a failed response when truthy.")
    return f"{attribute_name(field.name)}: " + " ".join(parts)


def module_docstring(endpoint: Endpoint) -> str:
    visibility = "Public" if endpoint.public else "Private"
    lines = [f"{visibility} endpoint ``{endpoint.name}``.", ""]
    if endpoint.methods:
        lines.append("Methods:")
        lines.extend(f"    {route(m)}" for m in endpoint.methods)
    else:
        lines.append("This endpoint declares no methods.")
    return "\n".join(lines)


def struct_docstring(struct: DataStructure, method: Method) -> str:
    lines = [f"{_ROLE_SUMMARY[struct.role]} {route(method)}.", "", _capability_sentence(struct.capability)]
    if struct.fields:
        params = frozenset(method.path.parameters) if struct.role != StructRole.GENERIC else frozenset()
        lines.extend(["", "Attributes:"])
        lines.extend(f"    {_field_line(f, params)}" for f in struct.fields)
    return "\n".join(lines)


def enum_docstring(enum: EnumDefinition, method: Method) -> str:
    lines = [
        f"Enum declared in {route(method)}.",
        "",
        "Externally tagged: a unit variant is its wire name, a payload variant",
        "is a single-key object.",
        "",
        "Variants:",
    ]
    for variant in enum.variants:
        wire = escape(variant.wire_name or variant.name)
        if variant.payload is None:
            lines.append(f"    {attribute_name(variant.name)}: ``{wire}``.")
        else:
            lines.append(
                f"    {attribute_name(variant.name)}: ``{wire}`` carrying "
                f"``{describe_type(variant.payload)}``."
            )
    return "\n".join(lines)


def uri_docstring(method: Method, has_query: bool) -> str:
    lines = [f"Build the URI for {route(method)}."]
    if method.path.parameters:
        lines.extend(["", "Path parameters are percent-encoded."])
    if has_query:
        lines.append("Query fields not used in the path form the query string.")
    return "\n".join(lines)


def request_docstring(method: Method) -> str:
    return f"Prepare a {route(method)} request."


def response_docstring(method: Method, struct: DataStructure) -> str:
    lines = [f"Decode the body of a {route(method)} response."]
    marker = struct.error_field
    if marker is not None:
        lines.extend(
            [
                "",
                f"Check ``is_error()`` on the result; ``{attribute_name(marker.name)}``",
                "signals a failed response.",
            ]
        )
    return "\n".join(lines)


def headers_docstring(method: Method) -> str:
    return f"Decode the headers of a {route(method)} response."
