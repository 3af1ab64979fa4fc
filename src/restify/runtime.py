"""Runtime support imported by generated endpoint modules.

Generated modules never talk HTTP themselves. They describe requests as
:class:`PreparedRequest` values and decode responses into pydantic models.
This module holds the small amount of shared behaviour those models need:

* :class:`RestModel` -- base class handling omit-if-absent serialization and
  the is-error marker.
* :class:`Encodable`, :class:`QueryEncodable`, :class:`Decodable` and
  :class:`Both` -- capability mix-ins chosen by a structure's role.
* :class:`RestEnum` -- externally tagged enums: a unit variant encodes as
  its wire name, a payload variant as ``{wire_name: payload}``.
* :func:`substitute_path`, :func:`encode_query` and :func:`append_query` --
  URI helpers.

Validation failures surface as :class:`pydantic.ValidationError`; this module
does not wrap them.
"""

from __future__ import annotations

import json
import re
from typing import Any, ClassVar, Mapping, Optional, TypeVar, Union
from urllib.parse import quote, urlencode

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)

_PATH_PARAM_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

D = TypeVar("D", bound="Decodable")

Payload = Union[Mapping[str, Any], str, bytes]
"""A response body: a decoded mapping or raw JSON text."""

Headers = Mapping[str, str]
"""Received HTTP headers."""


def _scalar_text(value: Any) -> str:
    """Render a scalar for use in a URI or header value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    return str(value)


# ------------------------------------------------------------------ #
# URI helpers
# ------------------------------------------------------------------ #


def substitute_path(template: str, values: Mapping[str, Any]) -> str:
    """Replace every ``{name}`` in *template* with its percent-encoded value.

    Args:
        template: A path template such as ``/api/user/{id}``.
        values: Parameter values keyed by template name.

    Returns:
        The concrete path.

    Raises:
        ValueError: If a parameter has no value or its value is ``None``.

    Example::

        >>> substitute_path("/files/{name}", {"name": "a b/c"})
        '/files/a%20b%2Fc'
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = values.get(name)
        if value is None:
            raise ValueError(f"missing value for path parameter '{name}'")
        return quote(_scalar_text(value), safe="")

    return _PATH_PARAM_RE.sub(_replace, template)


def encode_query(params: Mapping[str, Any]) -> str:
    """URL-encode *params* as a query string, without the leading ``?``.

    ``None`` values are dropped, booleans render as ``true``/``false`` and
    lists repeat the key once per item.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, list):
            pairs.extend((key, _scalar_text(item)) for item in value if item is not None)
        else:
            pairs.append((key, _scalar_text(value)))
    return urlencode(pairs)


def append_query(path: str, params: Mapping[str, Any], exclude: tuple[str, ...] = ()) -> str:
    """Append the query string built from *params* to *path*.

    Keys listed in *exclude* (typically the ones already substituted into the
    path) are skipped. No ``?`` is added when nothing remains.
    """
    query = encode_query({k: v for k, v in params.items() if k not in exclude})
    return f"{path}?{query}" if query else path


# ------------------------------------------------------------------ #
# Models
# ------------------------------------------------------------------ #


class RestModel(BaseModel):
    """Base class of every generated structure.

    Subclasses set two class attributes:

    ``__omit_if_absent__``
        Attribute names dropped from the serialized form while ``None``.
    ``__error_field__``
        Attribute name of the is-error marker field, if any.
    """

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    __omit_if_absent__: ClassVar[frozenset[str]] = frozenset()
    __error_field__: ClassVar[Optional[str]] = None

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> Any:
        data = handler(self)
        if not isinstance(data, dict):
            return data
        fields = type(self).model_fields
        for name in self.__omit_if_absent__:
            if getattr(self, name, None) is not None:
                continue
            key = name
            if info.by_alias and fields[name].alias:
                key = fields[name].alias
            data.pop(key, None)
        return data

    def error_value(self) -> Any:
        """Value of the is-error marker field, or ``None`` when there is none."""
        if self.__error_field__ is None:
            return None
        return getattr(self, self.__error_field__)

    def is_error(self) -> bool:
        """True when the is-error marker field holds a truthy value."""
        return bool(self.error_value())


class Encodable(RestModel):
    """A structure that can be serialized for sending."""

    def encode(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict keyed by wire name."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def encode_headers(self) -> dict[str, str]:
        """Serialize to a flat ``{header: text}`` mapping, dropping ``None`` values."""
        headers: dict[str, str] = {}
        for key, value in self.encode().items():
            if value is None:
                continue
            if isinstance(value, list):
                headers[key] = ", ".join(_scalar_text(v) for v in value)
            else:
                headers[key] = _scalar_text(value)
        return headers


class QueryEncodable(Encodable):
    """An encodable structure that also renders as a URL query string."""

    def to_query_string(self) -> str:
        return encode_query(self.encode())


class Decodable(RestModel):
    """A structure that can be deserialized from a received payload."""

    @classmethod
    def decode(cls: type[D], payload: Payload) -> D:
        """Build an instance from a mapping or from JSON text.

        Missing optional fields default to ``None``.

        Raises:
            pydantic.ValidationError: If *payload* does not match the model.
        """
        if isinstance(payload, (str, bytes, bytearray)):
            return cls.model_validate_json(payload)
        return cls.model_validate(payload)

    @classmethod
    def decode_headers(cls: type[D], headers: Headers) -> D:
        """Build an instance from HTTP headers, matching names case-insensitively."""
        by_lower = {k.lower(): v for k, v in headers.items()}
        data: dict[str, Any] = {}
        for name, info in cls.model_fields.items():
            wire = info.alias or name
            if wire.lower() in by_lower:
                data[wire] = by_lower[wire.lower()]
        return cls.model_validate(data)


class Both(Encodable, Decodable):
    """A structure that is both sent and received."""


class RestEnum(Both):
    """Externally tagged enum; exactly one variant attribute is set.

    Subclasses declare one optional attribute per variant and list the
    payload-less ones in ``__unit_variants__`` and the ones whose payload
    may not be ``None`` in ``__payload_required__``.
    """

    __unit_variants__: ClassVar[frozenset[str]] = frozenset()
    __payload_required__: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {data: None}
        return data

    @model_validator(mode="after")
    def _exactly_one_variant(self) -> RestEnum:
        chosen = self.model_fields_set
        if len(chosen) != 1:
            raise ValueError(
                f"{type(self).__name__} expects exactly one variant, got {len(chosen)}"
            )
        name = next(iter(chosen))
        if name in self.__payload_required__ and getattr(self, name) is None:
            raise ValueError(f"variant '{name}' of {type(self).__name__} requires a payload")
        return self

    @model_serializer(mode="wrap")
    def _serialize(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> Any:
        name = self._variant_attribute()
        field = type(self).model_fields[name]
        key = field.alias if info.by_alias and field.alias else name
        if name in self.__unit_variants__:
            return key
        data = handler(self)
        return {key: data.get(key)}

    def _variant_attribute(self) -> str:
        return next(iter(self.model_fields_set))

    @property
    def variant(self) -> str:
        """Wire name of the chosen variant."""
        name = self._variant_attribute()
        return type(self).model_fields[name].alias or name

    @property
    def value(self) -> Any:
        """Payload of the chosen variant (``None`` for unit variants)."""
        return getattr(self, self._variant_attribute())


class PreparedRequest(BaseModel):
    """Everything needed to perform one HTTP call, minus the transport."""

    method: str
    uri: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = None

    def body_json(self) -> Optional[str]:
        """The body serialized as compact JSON, or ``None`` when there is none."""
        if self.body is None:
            return None
        return json.dumps(self.body, separators=(",", ":"))
