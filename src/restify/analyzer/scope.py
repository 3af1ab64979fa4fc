"""Name resolution for nested struct and enum references.

A :class:`~restify.models.ReferenceType` names a struct or enum declared in
the same method or, failing that, in another method of the same endpoint.
Lookup is order-independent, so forward references resolve. When a name is
declared twice, the first declaration wins; the duplicate is reported by the
uniqueness rules.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple, Optional, Union

from restify.models import (
    CollectionType,
    DataStructure,
    Endpoint,
    EnumDefinition,
    Method,
    OptionalType,
    ReferenceType,
    SourceLocation,
    TypeDescriptor,
)

Item = Union[DataStructure, EnumDefinition]


class Resolved(NamedTuple):
    """A resolved reference: the declaring method and the declared item."""

    owner: Method
    item: Item


class ItemReference(NamedTuple):
    """A reference found inside an item, with the location of its use."""

    name: str
    location: SourceLocation


def iter_references(descriptor: TypeDescriptor) -> Iterator[str]:
    """Yield every referenced name in *descriptor*, through collections and optionals."""
    if isinstance(descriptor, ReferenceType):
        yield descriptor.name
    elif isinstance(descriptor, CollectionType):
        yield from iter_references(descriptor.item)
    elif isinstance(descriptor, OptionalType):
        yield from iter_references(descriptor.inner)


def item_references(item: Item) -> Iterator[ItemReference]:
    """Yield the references made by *item*'s fields or variant payloads."""
    if isinstance(item, DataStructure):
        for field in item.fields:
            for name in iter_references(field.type):
                yield ItemReference(name, field.location)
    else:
        for variant in item.variants:
            if variant.payload is None:
                continue
            for name in iter_references(variant.payload):
                yield ItemReference(name, variant.location)


class EndpointScope:
    """Lookup tables for one endpoint.

    Args:
        endpoint: The endpoint whose methods declare the visible items.
    """

    def __init__(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        self._local: dict[int, dict[str, Item]] = {}
        self._shared: dict[str, Resolved] = {}
        for method in endpoint.methods:
            table: dict[str, Item] = {}
            for item in method.items:
                table.setdefault(item.name, item)
                self._shared.setdefault(item.name, Resolved(method, item))
            self._local[id(method)] = table

    def resolve(self, name: str, method: Method) -> Optional[Resolved]:
        """Resolve *name* as seen from *method*, or return ``None``."""
        local = self._local.get(id(method), {})
        if name in local:
            return Resolved(method, local[name])
        return self._shared.get(name)

    def items(self) -> Iterator[tuple[Method, Item]]:
        """Every ``(method, item)`` pair in declaration order."""
        for method in self.endpoint.methods:
            for item in method.items:
                yield method, item
