"""Semantic rules checked over the IR.

:class:`Analyzer` walks Endpoint -> Method -> structure once, enriching the
IR in place (capabilities, wire names, optional-field flags, is-error flags)
and collecting a :class:`~restify.exceptions.SemanticError` for every
violation. No rule stops the pass; the caller decides what to do with the
errors, which are returned in source order.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence

from restify.analyzer.capabilities import assign_capabilities
from restify.analyzer.scope import EndpointScope, item_references
from restify.casing import CASING_STYLES, apply_casing, is_supported_style
from restify.exceptions import SemanticError
from restify.models import (
    Attribute,
    AttributeScope,
    BuilderMarker,
    CompilationUnit,
    DataStructure,
    DefaultMarker,
    Endpoint,
    EnumDefinition,
    ErrorMarker,
    Field,
    Method,
    PrimitiveType,
    ReferenceType,
    Rename,
    RenameAll,
    SourceLocation,
    StructRole,
    TypeDescriptor,
)
from restify.naming import attribute_name, class_name, method_identifier, module_name

logger = logging.getLogger(__name__)

PATH_SOURCE_ROLES = (StructRole.QUERY, StructRole.REQUEST, StructRole.REQRES)
"""Roles whose fields may fill path parameters."""

_BODY_CONFLICTS = (
    (StructRole.REQUEST, StructRole.REQRES, "request body"),
    (StructRole.RESPONSE, StructRole.REQRES, "response body"),
)

# Primitives without a zero value to fall back to.
_NO_DEFAULT_PRIMITIVES = frozenset({"Date", "DateTime"})


def _describe(method: Method) -> str:
    return f'{method.verb.value} "{method.path.raw}"'


def _default_blocker(descriptor: TypeDescriptor) -> Optional[str]:
    """Name of the type that keeps *descriptor* from having a zero value, if any."""
    if isinstance(descriptor, PrimitiveType) and descriptor.name in _NO_DEFAULT_PRIMITIVES:
        return descriptor.name
    if isinstance(descriptor, ReferenceType):
        return descriptor.name
    return None


class Analyzer:
    """Single-pass semantic checker.

    Example::

        errors = Analyzer().run(unit)
        if not errors:
            modules = generate(unit)
    """

    def __init__(self) -> None:
        self.errors: list[SemanticError] = []

    def _error(self, message: str, location: SourceLocation) -> None:
        self.errors.append(SemanticError(message, location))

    def run(self, unit: CompilationUnit) -> list[SemanticError]:
        """Check and enrich *unit*; return the errors in source order."""
        self._check_endpoint_names(unit)
        for endpoint in unit.endpoints:
            self._check_endpoint(endpoint)
        self.errors.sort(key=lambda e: e.location.offset)
        logger.debug("Analyzed %d endpoint(s), %d error(s)", len(unit.endpoints), len(self.errors))
        return self.errors

    # ------------------------------------------------------------------ #
    # Unit and endpoint level
    # ------------------------------------------------------------------ #

    def _check_endpoint_names(self, unit: CompilationUnit) -> None:
        names: set[str] = set()
        modules: dict[str, str] = {}
        for endpoint in unit.endpoints:
            if endpoint.name in names:
                self._error(f"duplicate endpoint '{endpoint.name}'", endpoint.location)
                continue
            names.add(endpoint.name)
            module = module_name(endpoint)
            if module in modules:
                self._error(
                    f"endpoint '{endpoint.name}' generates module '{module}', "
                    f"which endpoint '{modules[module]}' already uses",
                    endpoint.location,
                )
            else:
                modules[module] = endpoint.name

    def _check_endpoint(self, endpoint: Endpoint) -> None:
        scope = EndpointScope(endpoint)

        routes: set[tuple[str, str]] = set()
        identifiers: dict[str, Method] = {}
        classes: set[str] = set()
        for method in endpoint.methods:
            route = (method.verb.value, method.path.raw)
            if route in routes:
                self._error(
                    f"duplicate method {_describe(method)} in endpoint '{endpoint.name}'",
                    method.location,
                )
                continue
            routes.add(route)

            ident = method_identifier(method)
            if ident in identifiers:
                self._error(
                    f"method {_describe(method)} generates the identifier '{ident}', "
                    f"which {_describe(identifiers[ident])} already uses",
                    method.location,
                )
            else:
                identifiers[ident] = method
                for item in method.items:
                    cls = class_name(method, item.name)
                    if cls in classes:
                        self._error(f"generated class name '{cls}' is not unique", item.location)
                    classes.add(cls)

        for method in endpoint.methods:
            self._check_method(method, scope)

        assign_capabilities(scope)

        for _, item in scope.items():
            if isinstance(item, DataStructure):
                self._check_structure(item)
            else:
                self._check_enum(item)

    # ------------------------------------------------------------------ #
    # Method level
    # ------------------------------------------------------------------ #

    def _check_method(self, method: Method, scope: EndpointScope) -> None:
        seen_names: set[str] = set()
        seen_roles: dict[StructRole, DataStructure] = {}
        for item in method.items:
            if item.name in seen_names:
                self._error(
                    f"'{item.name}' is declared more than once in {_describe(method)}",
                    item.location,
                )
            seen_names.add(item.name)

            if isinstance(item, DataStructure) and item.role != StructRole.GENERIC:
                if item.role in seen_roles:
                    self._error(
                        f"{_describe(method)} already has a {item.role.value} structure",
                        item.location,
                    )
                else:
                    seen_roles[item.role] = item

            for ref in item_references(item):
                if scope.resolve(ref.name, method) is None:
                    self._error(
                        f"unknown type '{ref.name}': no struct or enum of that name in "
                        f"{_describe(method)} or endpoint '{scope.endpoint.name}'",
                        ref.location,
                    )

        for first, second, what in _BODY_CONFLICTS:
            if first in seen_roles and second in seen_roles:
                self._error(
                    f"{_describe(method)} declares both {first.value} and {second.value}; "
                    f"only one structure may describe the {what}",
                    seen_roles[second].location,
                )

        self._check_path_coverage(method)

    def _check_path_coverage(self, method: Method) -> None:
        params = method.path.parameters
        for name, count in Counter(params).items():
            if count > 1:
                self._error(
                    f"path parameter '{name}' appears {count} times in \"{method.path.raw}\"",
                    method.location,
                )

        sources = [s for s in method.structures if s.role in PATH_SOURCE_ROLES]
        for name in dict.fromkeys(params):
            matches = [(s, f) for s in sources for f in s.fields if f.name == name]
            if not matches:
                self._error(
                    f"path parameter '{name}' of {_describe(method)} is not provided by any "
                    "Query, Request or ReqRes field",
                    method.location,
                )
                continue
            if len(matches) > 1:
                owners = ", ".join(s.name for s, _ in matches)
                self._error(
                    f"path parameter '{name}' of {_describe(method)} is ambiguous; "
                    f"it matches fields of {owners}",
                    method.location,
                )
                continue
            _, field = matches[0]
            if field.optional:
                self._error(
                    f"field '{field.name}' fills a path parameter and must not be optional",
                    field.location,
                )
            elif not isinstance(field.type, PrimitiveType):
                self._error(
                    f"field '{field.name}' fills a path parameter and must have a primitive type",
                    field.location,
                )

    # ------------------------------------------------------------------ #
    # Structure level
    # ------------------------------------------------------------------ #

    def _type_style(self, attributes: Sequence[Attribute], owner: str) -> Optional[str]:
        """Validate type-level attributes; return the effective casing style."""
        style: Optional[str] = None
        seen_rename_all = False
        for attr in attributes:
            if isinstance(attr, DefaultMarker):
                self._error(f"'default' applies to struct fields, not to {owner}", attr.location)
            elif isinstance(attr, (Rename, ErrorMarker)):
                label = "rename" if isinstance(attr, Rename) else "isError"
                self._error(
                    f"'{label}' applies to fields and variants, not to {owner}", attr.location
                )
            elif isinstance(attr, RenameAll):
                if seen_rename_all:
                    self._error(f"{owner} has more than one rename_all attribute", attr.location)
                    continue
                seen_rename_all = True
                if is_supported_style(attr.style):
                    style = attr.style
                else:
                    supported = ", ".join(CASING_STYLES)
                    self._error(
                        f"unknown casing style '{attr.style}' on {owner}; "
                        f"expected one of {supported}",
                        attr.location,
                    )
        return style

    def _member_rename(self, attributes: Sequence[Attribute], owner: str) -> Optional[str]:
        """Validate member-level scoping; return the explicit wire name, if any."""
        rename: Optional[str] = None
        for attr in attributes:
            if attr.scope != AttributeScope.FIELD:
                continue
            if isinstance(attr, RenameAll):
                self._error(f"'rename_all' applies to types, not to {owner}", attr.location)
            elif isinstance(attr, BuilderMarker):
                self._error(f"'builder' applies to structs, not to {owner}", attr.location)
            elif isinstance(attr, Rename):
                if rename is not None:
                    self._error(f"{owner} has more than one rename attribute", attr.location)
                elif not attr.name:
                    self._error(f"rename of {owner} must not be empty", attr.location)
                else:
                    rename = attr.name
        return rename

    def _check_wire_names(self, owner: str, members: Sequence[tuple[str, str, SourceLocation]]) -> None:
        wires: dict[str, str] = {}
        attrs: dict[str, str] = {}
        for name, wire, location in members:
            if wire in wires:
                self._error(
                    f"'{name}' and '{wires[wire]}' of {owner} both use the wire name '{wire}'",
                    location,
                )
            else:
                wires[wire] = name
            attr = attribute_name(name)
            if attr in attrs and attrs[attr] != name:
                self._error(
                    f"'{name}' and '{attrs[attr]}' of {owner} map to the same Python "
                    f"attribute '{attr}'",
                    location,
                )
            attrs.setdefault(attr, name)

    def _check_structure(self, struct: DataStructure) -> None:
        owner = f"struct '{struct.name}'"
        style = self._type_style(struct.attributes, owner)
        cap = struct.capability

        names: set[str] = set()
        markers: list[tuple[Field, ErrorMarker]] = []
        members: list[tuple[str, str, SourceLocation]] = []
        for field in struct.fields:
            if field.name in names:
                self._error(f"duplicate field '{field.name}' in {owner}", field.location)
                continue
            names.add(field.name)

            rename = self._member_rename(field.attributes, f"field '{field.name}'")
            if rename is not None:
                field.wire_name = rename
            elif style is not None:
                field.wire_name = apply_casing(field.name, style)
            else:
                field.wire_name = field.name
            members.append((field.name, field.wire_name, field.location))

            self._check_default(field, owner, cap.decode)
            field.omit_if_absent = field.optional and cap.encode
            field.default_if_missing = (field.optional or field.has_default) and cap.decode

            marker = next((a for a in field.attributes if isinstance(a, ErrorMarker)), None)
            if marker is not None and marker.scope == AttributeScope.FIELD:
                markers.append((field, marker))

        self._check_wire_names(owner, members)

        if markers and not cap.decode:
            self._error(
                f"isError marker on {owner}, which is never decoded; it only applies to "
                "received structures",
                markers[0][1].location,
            )
        elif len(markers) > 1:
            for _, marker in markers[1:]:
                self._error(f"{owner} has more than one isError field", marker.location)
        elif markers:
            markers[0][0].is_error = True

    def _check_default(self, field: Field, owner: str, decoded: bool) -> None:
        markers = [
            a
            for a in field.attributes
            if isinstance(a, DefaultMarker) and a.scope == AttributeScope.FIELD
        ]
        if not markers:
            return
        for extra in markers[1:]:
            self._error(f"field '{field.name}' has more than one default attribute", extra.location)
        if not decoded:
            self._error(
                f"'default' on field '{field.name}' of {owner}, which is never decoded; "
                "it only applies to received structures",
                markers[0].location,
            )
            return
        blocker = _default_blocker(field.type)
        if blocker is not None:
            self._error(
                f"field '{field.name}' cannot use 'default': type '{blocker}' has no zero value",
                markers[0].location,
            )
            return
        field.has_default = True

    def _check_enum(self, enum: EnumDefinition) -> None:
        owner = f"enum '{enum.name}'"
        style = self._type_style(enum.attributes, owner)
        for attr in enum.attributes:
            if isinstance(attr, BuilderMarker):
                self._error(f"'builder' applies to structs, not to {owner}", attr.location)

        if not enum.variants:
            self._error(f"{owner} has no variants", enum.location)
            return

        names: set[str] = set()
        members: list[tuple[str, str, SourceLocation]] = []
        for variant in enum.variants:
            if variant.name in names:
                self._error(f"duplicate variant '{variant.name}' in {owner}", variant.location)
                continue
            names.add(variant.name)

            label = f"variant '{variant.name}'"
            for attr in variant.attributes:
                if isinstance(attr, ErrorMarker):
                    self._error(f"isError marker is not allowed on {label}", attr.location)
                elif isinstance(attr, DefaultMarker):
                    self._error(f"'default' applies to struct fields, not to {label}", attr.location)
            rename = self._member_rename(variant.attributes, label)
            if rename is not None:
                variant.wire_name = rename
            elif style is not None:
                variant.wire_name = apply_casing(variant.name, style)
            else:
                variant.wire_name = variant.name
            members.append((variant.name, variant.wire_name, variant.location))

        self._check_wire_names(owner, members)


def analyze(unit: CompilationUnit) -> list[SemanticError]:
    """Check and enrich *unit* in place.

    Args:
        unit: IR produced by :func:`restify.parser.build_unit`.

    Returns:
        Every semantic error found, in source order. An empty list means the
        IR is ready for :func:`restify.generator.generate`.
    """
    return Analyzer().run(unit)
