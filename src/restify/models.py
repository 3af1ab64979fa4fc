"""Canonical Pydantic models shared across all restify modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Source locations** -- :class:`SourceLocation`, attached to every node so
that diagnostics can point back into the DSL text.

**Raw syntax tree** -- produced by :mod:`restify.parser.grammar` and consumed
by :mod:`restify.parser.builder`:
    :class:`RawSource`, :class:`RawEndpoint`, :class:`RawMethod`,
    :class:`RawStruct`, :class:`RawEnum`, :class:`RawField`,
    :class:`RawVariant`, :class:`RawType`, :class:`RawAttribute` and
    :class:`RawAttributeItem`.

**Intermediate representation (IR)** -- produced by the builder, enriched in
place by :mod:`restify.analyzer` and consumed by :mod:`restify.generator`:
    :class:`CompilationUnit`, :class:`Endpoint`, :class:`Method`,
    :class:`DataStructure`, :class:`EnumDefinition`, :class:`Field`,
    :class:`EnumVariant`, the :data:`TypeDescriptor` union and the
    :data:`Attribute` union.

**Configuration and output** -- :class:`CompilerConfig` and
:class:`GeneratedModule`.

All models use Pydantic v2. Tagged unions use ``kind`` literals as
discriminators so that every consumer can dispatch exhaustively.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field as PydanticField


# --- Source locations ---


class SourceLocation(BaseModel):
    """A position inside a DSL compilation unit.

    ``line`` and ``column`` are 1-based; ``offset`` is the 0-based character
    offset from the start of the source text.
    """

    unit: str = "<string>"
    line: int = 1
    column: int = 1
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.unit}:{self.line}:{self.column}"


# --- Raw syntax tree ---


class RawAttributeItem(BaseModel):
    """One item inside an attribute bracket.

    ``["camelCase"]`` yields ``key=None, value="camelCase"``;
    ``[builder]`` yields ``key="builder", value=None``;
    ``[rename = "id"]`` yields ``key="rename", value="id"``.
    """

    key: Optional[str] = None
    value: Optional[str] = None
    location: SourceLocation


class RawAttribute(BaseModel):
    """A bracketed attribute annotation, e.g. ``["camelCase", builder]``."""

    items: list[RawAttributeItem] = PydanticField(default_factory=list)
    location: SourceLocation


class RawType(BaseModel):
    """A type expression as written: ``?Vec<?String>``."""

    name: str
    optional: bool = False
    args: list[RawType] = PydanticField(default_factory=list)
    location: SourceLocation


class RawField(BaseModel):
    """A ``name: type`` declaration inside a struct body."""

    name: str
    type: RawType
    attributes: list[RawAttribute] = PydanticField(default_factory=list)
    location: SourceLocation


class RawVariant(BaseModel):
    """An enum variant, with an optional parenthesised payload type."""

    name: str
    payload: Optional[RawType] = None
    attributes: list[RawAttribute] = PydanticField(default_factory=list)
    location: SourceLocation


class RawStruct(BaseModel):
    """A struct block in any of its three head forms.

    ``role`` holds the reserved role name (``"Query"``...) for role-form and
    role-tagged structs, and ``None`` for generic ``struct Name {...}``.
    """

    kind: Literal["struct"] = "struct"
    name: str
    role: Optional[str] = None
    fields: list[RawField] = PydanticField(default_factory=list)
    attributes: list[RawAttribute] = PydanticField(default_factory=list)
    location: SourceLocation


class RawEnum(BaseModel):
    """An ``enum Name {...}`` block."""

    kind: Literal["enum"] = "enum"
    name: str
    variants: list[RawVariant] = PydanticField(default_factory=list)
    attributes: list[RawAttribute] = PydanticField(default_factory=list)
    location: SourceLocation


class RawMethod(BaseModel):
    """A ``VERB "path" => {...}`` block."""

    verb: str
    path: str
    path_location: SourceLocation
    items: list[Annotated[Union[RawStruct, RawEnum], PydanticField(discriminator="kind")]] = (
        PydanticField(default_factory=list)
    )
    location: SourceLocation


class RawEndpoint(BaseModel):
    """A top-level ``[pub Name: {...}]`` block."""

    name: str
    public: bool = False
    methods: list[RawMethod] = PydanticField(default_factory=list)
    location: SourceLocation


class RawSource(BaseModel):
    """The whole parsed compilation unit."""

    unit: str = "<string>"
    endpoints: list[RawEndpoint] = PydanticField(default_factory=list)


# --- IR: enumerations ---


class HTTPVerb(str, enum.Enum):
    """HTTP verbs accepted in method-block heads."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"


class StructRole(str, enum.Enum):
    """The closed set of structure roles.

    The five reserved roles map one-to-one onto DSL role names; ``GENERIC``
    marks structs introduced with the ``struct`` keyword and no role tag.
    """

    HEADER = "Header"
    REQUEST = "Request"
    RESPONSE = "Response"
    REQRES = "ReqRes"
    QUERY = "Query"
    GENERIC = "struct"


class AttributeScope(str, enum.Enum):
    """Where an attribute appeared: before a type or before a field/variant."""

    TYPE = "type"
    FIELD = "field"


# --- IR: type descriptors ---


class PrimitiveType(BaseModel):
    """A built-in scalar type such as ``String`` or ``u64``."""

    kind: Literal["primitive"] = "primitive"
    name: str


class CollectionType(BaseModel):
    """``Vec<T>``."""

    kind: Literal["collection"] = "collection"
    item: TypeDescriptor


class ReferenceType(BaseModel):
    """A by-name reference to a struct or enum, resolved by the analyzer."""

    kind: Literal["reference"] = "reference"
    name: str


class OptionalType(BaseModel):
    """The ``?`` sigil wrapped around another descriptor."""

    kind: Literal["optional"] = "optional"
    inner: TypeDescriptor


TypeDescriptor = Annotated[
    Union[PrimitiveType, CollectionType, ReferenceType, OptionalType],
    PydanticField(discriminator="kind"),
]


# --- IR: attributes ---


class RenameAll(BaseModel):
    """Type-level casing rule applied to every field or variant name."""

    kind: Literal["rename_all"] = "rename_all"
    style: str
    scope: AttributeScope = AttributeScope.TYPE
    location: SourceLocation


class Rename(BaseModel):
    """Field- or variant-level literal wire-name override."""

    kind: Literal["rename"] = "rename"
    name: str
    scope: AttributeScope = AttributeScope.FIELD
    location: SourceLocation


class ErrorMarker(BaseModel):
    """Flags the field that signals a failed response."""

    kind: Literal["is_error"] = "is_error"
    scope: AttributeScope = AttributeScope.FIELD
    location: SourceLocation


class BuilderMarker(BaseModel):
    """Requests ``with_<field>`` builder methods on the generated model."""

    kind: Literal["builder"] = "builder"
    scope: AttributeScope = AttributeScope.TYPE
    location: SourceLocation


class DefaultMarker(BaseModel):
    """Lets a required field fall back to its type's zero value when missing on decode."""

    kind: Literal["default"] = "default"
    scope: AttributeScope = AttributeScope.FIELD
    location: SourceLocation


Attribute = Annotated[
    Union[RenameAll, Rename, ErrorMarker, BuilderMarker, DefaultMarker],
    PydanticField(discriminator="kind"),
]


# --- IR: structures ---


class Capability(BaseModel):
    """Serialization capabilities resolved by the analyzer."""

    encode: bool = False
    decode: bool = False
    url_encoded: bool = False

    def merge(self, other: Capability) -> bool:
        """Union *other* into this capability. Returns ``True`` if anything changed."""
        before = (self.encode, self.decode, self.url_encoded)
        self.encode = self.encode or other.encode
        self.decode = self.decode or other.decode
        return before != (self.encode, self.decode, self.url_encoded)


class Field(BaseModel):
    """A struct field.

    The ``wire_name``, ``is_error``, ``has_default``, ``omit_if_absent`` and
    ``default_if_missing`` attributes are filled in by the analyzer; the
    generator refuses to emit a field whose ``wire_name`` is still ``None``.
    """

    name: str
    type: TypeDescriptor
    attributes: list[Attribute] = PydanticField(default_factory=list)
    location: SourceLocation
    wire_name: Optional[str] = None
    is_error: bool = False
    has_default: bool = False
    omit_if_absent: bool = False
    default_if_missing: bool = False

    @property
    def optional(self) -> bool:
        return isinstance(self.type, OptionalType)


class EnumVariant(BaseModel):
    """An enum variant, optionally carrying a payload."""

    name: str
    payload: Optional[TypeDescriptor] = None
    attributes: list[Attribute] = PydanticField(default_factory=list)
    location: SourceLocation
    wire_name: Optional[str] = None


class DataStructure(BaseModel):
    """A struct declared inside a method block."""

    kind: Literal["struct"] = "struct"
    name: str
    role: StructRole
    fields: list[Field] = PydanticField(default_factory=list)
    attributes: list[Attribute] = PydanticField(default_factory=list)
    location: SourceLocation
    capability: Capability = PydanticField(default_factory=Capability)

    @property
    def builder(self) -> bool:
        return any(isinstance(a, BuilderMarker) for a in self.attributes)

    @property
    def error_field(self) -> Optional[Field]:
        return next((f for f in self.fields if f.is_error), None)


class EnumDefinition(BaseModel):
    """An enum declared inside a method block."""

    kind: Literal["enum"] = "enum"
    name: str
    variants: list[EnumVariant] = PydanticField(default_factory=list)
    attributes: list[Attribute] = PydanticField(default_factory=list)
    location: SourceLocation
    capability: Capability = PydanticField(default_factory=Capability)


MethodItem = Annotated[
    Union[DataStructure, EnumDefinition],
    PydanticField(discriminator="kind"),
]


class PathSegment(BaseModel):
    """One piece of a path template: literal text or a ``{param}``."""

    text: str
    is_param: bool = False


class PathTemplate(BaseModel):
    """A parsed path template such as ``/api/user/{id}``."""

    raw: str
    segments: list[PathSegment] = PydanticField(default_factory=list)

    @property
    def parameters(self) -> list[str]:
        return [s.text for s in self.segments if s.is_param]


class Method(BaseModel):
    """One verb + path pair with its structures and enums."""

    verb: HTTPVerb
    path: PathTemplate
    items: list[MethodItem] = PydanticField(default_factory=list)
    location: SourceLocation

    @property
    def structures(self) -> list[DataStructure]:
        return [i for i in self.items if isinstance(i, DataStructure)]

    @property
    def enums(self) -> list[EnumDefinition]:
        return [i for i in self.items if isinstance(i, EnumDefinition)]

    def find_role(self, role: StructRole) -> Optional[DataStructure]:
        """Return the first structure with *role*, or ``None``."""
        return next((s for s in self.structures if s.role == role), None)


class Endpoint(BaseModel):
    """A top-level endpoint group; becomes one generated module."""

    name: str
    public: bool = False
    methods: list[Method] = PydanticField(default_factory=list)
    location: SourceLocation


class CompilationUnit(BaseModel):
    """The IR root for one compilation invocation."""

    unit: str = "<string>"
    endpoints: list[Endpoint] = PydanticField(default_factory=list)


# --- Configuration and output ---


class CompilerConfig(BaseModel):
    """Effective compiler settings, see :func:`restify.config.resolve_config`."""

    output_dir: str = PydanticField(
        default="generated", description="Directory receiving generated modules"
    )
    write_init: bool = PydanticField(
        default=True, description="Write an __init__.py importing every endpoint module"
    )
    check_only: bool = PydanticField(
        default=False, description="Report diagnostics without writing any files"
    )


class GeneratedModule(BaseModel):
    """One emitted Python module."""

    endpoint: str
    module_name: str
    source: str

    @property
    def filename(self) -> str:
        return f"{self.module_name}.py"


for _model in (
    RawType,
    CollectionType,
    OptionalType,
    Field,
    EnumVariant,
    DataStructure,
    EnumDefinition,
    Method,
):
    _model.model_rebuild()
