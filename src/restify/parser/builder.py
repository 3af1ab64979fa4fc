"""Build the typed IR from the raw syntax tree.

This module walks a :class:`~restify.models.RawSource` and produces a
:class:`~restify.models.CompilationUnit`. It is a purely structural
translation: names are not resolved and no cross-field rules are checked
here -- that is the analyzer's job.

The single public entry point is :func:`build_unit`. Internally it delegates
to private helpers that each handle one node kind:

* ``_build_method`` -- verb, path template and method items.
* ``_build_struct`` / ``_build_enum`` -- structures and enums.
* ``_build_type`` -- classifies a :class:`~restify.models.RawType` as a
  primitive, collection, nested reference or optional wrapper.
* ``_build_attributes`` -- classifies bracketed attributes by position.

A :class:`~restify.exceptions.BuildError` abandons only the structure or enum
it occurs in; siblings are still built and the error is collected.
"""

from __future__ import annotations

from restify.exceptions import BuildError
from restify.models import (
    Attribute,
    AttributeScope,
    BuilderMarker,
    CollectionType,
    CompilationUnit,
    DataStructure,
    DefaultMarker,
    Endpoint,
    EnumDefinition,
    EnumVariant,
    ErrorMarker,
    Field,
    HTTPVerb,
    Method,
    OptionalType,
    PrimitiveType,
    RawAttribute,
    RawEndpoint,
    RawEnum,
    RawMethod,
    RawSource,
    RawStruct,
    RawType,
    ReferenceType,
    Rename,
    RenameAll,
    SourceLocation,
    StructRole,
    TypeDescriptor,
)
from restify.parser.paths import parse_path_template

PRIMITIVE_TYPES: frozenset[str] = frozenset(
    {
        "String",
        "str",
        "bool",
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
        "f32",
        "f64",
        "Bytes",
        "DateTime",
        "Date",
    }
)
"""Identifiers recognised as built-in scalar types."""

COLLECTION_TYPE = "Vec"
"""The one generic collection form, ``Vec<T>``."""

ERROR_MARKER_LITERAL = "isError"
"""A bare field-level literal with this value is the is-error marker, not a rename."""

_ERROR_MARKER_KEYS = frozenset({"isError", "is_error"})


def build_unit(raw: RawSource) -> tuple[CompilationUnit, list[BuildError]]:
    """Translate a raw syntax tree into IR.

    Args:
        raw: The parser output.

    Returns:
        A ``(unit, errors)`` tuple. Structures that failed to build are left
        out of ``unit``; the reasons are in ``errors``, in source order.
    """
    errors: list[BuildError] = []
    endpoints = [_build_endpoint(ep, errors) for ep in raw.endpoints]
    return CompilationUnit(unit=raw.unit, endpoints=endpoints), errors


def _build_endpoint(raw: RawEndpoint, errors: list[BuildError]) -> Endpoint:
    return Endpoint(
        name=raw.name,
        public=raw.public,
        methods=[_build_method(m, errors) for m in raw.methods],
        location=raw.location,
    )


def _build_method(raw: RawMethod, errors: list[BuildError]) -> Method:
    items: list[DataStructure | EnumDefinition] = []
    for item in raw.items:
        try:
            if isinstance(item, RawStruct):
                items.append(_build_struct(item))
            else:
                items.append(_build_enum(item))
        except BuildError as exc:
            errors.append(exc)

    return Method(
        verb=HTTPVerb(raw.verb),
        path=parse_path_template(raw.path, raw.path_location),
        items=items,
        location=raw.location,
    )


def _build_struct(raw: RawStruct) -> DataStructure:
    _check_declared_name(raw.name, "struct", raw)
    role = StructRole(raw.role) if raw.role is not None else StructRole.GENERIC
    fields = [
        Field(
            name=f.name,
            type=_build_type(f.type),
            attributes=_build_attributes(f.attributes, AttributeScope.FIELD),
            location=f.location,
        )
        for f in raw.fields
    ]
    return DataStructure(
        name=raw.name,
        role=role,
        fields=fields,
        attributes=_build_attributes(raw.attributes, AttributeScope.TYPE),
        location=raw.location,
    )


def _build_enum(raw: RawEnum) -> EnumDefinition:
    _check_declared_name(raw.name, "enum", raw)
    variants = [
        EnumVariant(
            name=v.name,
            payload=_build_type(v.payload) if v.payload is not None else None,
            attributes=_build_attributes(v.attributes, AttributeScope.FIELD),
            location=v.location,
        )
        for v in raw.variants
    ]
    return EnumDefinition(
        name=raw.name,
        variants=variants,
        attributes=_build_attributes(raw.attributes, AttributeScope.TYPE),
        location=raw.location,
    )


def _check_declared_name(name: str, what: str, raw: RawStruct | RawEnum) -> None:
    if not name[:1].isupper():
        raise BuildError(
            f"{what} name '{name}' must start with an uppercase letter; "
            "lowercase names are reserved for primitive types",
            raw.location,
        )


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def _build_type(raw: RawType) -> TypeDescriptor:
    """Classify *raw* into a :data:`~restify.models.TypeDescriptor`.

    The ``?`` sigil wraps the classified inner type in an
    :class:`~restify.models.OptionalType`.

    Raises:
        BuildError: For generic arguments on a non-generic type, a ``Vec``
            without exactly one argument, or an unknown lowercase name.
    """
    inner: TypeDescriptor
    if raw.name == COLLECTION_TYPE:
        if len(raw.args) != 1:
            raise BuildError(
                f"'{COLLECTION_TYPE}' takes exactly one type argument, got {len(raw.args)}",
                raw.location,
            )
        inner = CollectionType(item=_build_type(raw.args[0]))
    elif raw.args:
        raise BuildError(
            f"type '{raw.name}' does not take generic arguments; "
            f"'{COLLECTION_TYPE}<T>' is the only generic form",
            raw.location,
        )
    elif raw.name in PRIMITIVE_TYPES:
        inner = PrimitiveType(name=raw.name)
    elif raw.name[:1].isupper():
        inner = ReferenceType(name=raw.name)
    else:
        raise BuildError(f"unknown primitive type '{raw.name}'", raw.location)

    if raw.optional:
        return OptionalType(inner=inner)
    return inner


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


def _build_attributes(raw_attrs: list[RawAttribute], scope: AttributeScope) -> list[Attribute]:
    """Classify every item of *raw_attrs* given its syntactic *scope*.

    Bare string literals are interpreted by position: ``RenameAll`` before a
    type, ``Rename`` before a field or variant (except the ``"isError"``
    marker). Keyed and bare-identifier items classify by name; the analyzer
    rejects the ones that appear in the wrong place.
    """
    result: list[Attribute] = []
    for raw in raw_attrs:
        for item in raw.items:
            loc = item.location
            if item.key is None:
                literal = item.value or ""
                if scope == AttributeScope.TYPE:
                    result.append(RenameAll(style=literal, scope=scope, location=loc))
                elif literal == ERROR_MARKER_LITERAL:
                    result.append(ErrorMarker(scope=scope, location=loc))
                else:
                    result.append(Rename(name=literal, scope=scope, location=loc))
                continue

            if item.key == "rename_all":
                _require_value(item.key, item.value, loc)
                result.append(RenameAll(style=item.value or "", scope=scope, location=loc))
            elif item.key == "rename":
                _require_value(item.key, item.value, loc)
                result.append(Rename(name=item.value or "", scope=scope, location=loc))
            elif item.key in _ERROR_MARKER_KEYS:
                _forbid_value(item.key, item.value, loc)
                result.append(ErrorMarker(scope=scope, location=loc))
            elif item.key == "builder":
                _forbid_value(item.key, item.value, loc)
                result.append(BuilderMarker(scope=scope, location=loc))
            elif item.key == "default":
                _forbid_value(item.key, item.value, loc)
                result.append(DefaultMarker(scope=scope, location=loc))
            else:
                raise BuildError(f"unknown attribute '{item.key}'", loc)
    return result


def _require_value(key: str, value: str | None, loc: SourceLocation) -> None:
    if value is None:
        raise BuildError(f"attribute '{key}' needs a value: [{key} = \"...\"]", loc)


def _forbid_value(key: str, value: str | None, loc: SourceLocation) -> None:
    if value is not None:
        raise BuildError(f"attribute '{key}' does not take a value", loc)
