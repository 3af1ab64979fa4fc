"""Type descriptor to Python annotation mapping.

Primitive DSL types map onto builtin or stdlib types; unsigned integers use
pydantic's ``NonNegativeInt`` so the sign constraint survives decoding.
``Vec<T>`` becomes ``list[T]`` and the ``?`` sigil becomes ``Optional[T]``.
Nested references render as the generated class name of the referenced item.
"""

from __future__ import annotations

from typing import Callable

from restify.exceptions import GenerationError
from restify.models import (
    CollectionType,
    OptionalType,
    PrimitiveType,
    ReferenceType,
    TypeDescriptor,
)

_TYPE_MAP: dict[str, str] = {
    "String": "str",
    "str": "str",
    "bool": "bool",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "i128": "int",
    "isize": "int",
    "u8": "NonNegativeInt",
    "u16": "NonNegativeInt",
    "u32": "NonNegativeInt",
    "u64": "NonNegativeInt",
    "u128": "NonNegativeInt",
    "usize": "NonNegativeInt",
    "f32": "float",
    "f64": "float",
    "Bytes": "bytes",
    "DateTime": "datetime",
    "Date": "date",
}

# Annotation name -> (module, name) import needed by the generated module.
_IMPORTS: dict[str, tuple[str, str]] = {
    "NonNegativeInt": ("pydantic", "NonNegativeInt"),
    "datetime": ("datetime", "datetime"),
    "date": ("datetime", "date"),
    "Optional": ("typing", "Optional"),
}


# Zero-value factory per annotation, for fields marked `[default]`.
_DEFAULT_FACTORIES: dict[str, str] = {
    "str": "str",
    "int": "int",
    "NonNegativeInt": "int",
    "float": "float",
    "bool": "bool",
    "bytes": "bytes",
}


class AnnotationRenderer:
    """Render descriptors as annotation source, recording needed imports.

    Args:
        resolve: Maps a referenced struct or enum name to its generated
            class name. It raises :class:`GenerationError` for unknown names.
    """

    def __init__(self, resolve: Callable[[str], str]) -> None:
        self._resolve = resolve
        self.imports: set[tuple[str, str]] = set()

    def _use(self, name: str) -> str:
        if name in _IMPORTS:
            self.imports.add(_IMPORTS[name])
        return name

    def render(self, descriptor: TypeDescriptor) -> str:
        if isinstance(descriptor, PrimitiveType):
            try:
                return self._use(_TYPE_MAP[descriptor.name])
            except KeyError:
                raise GenerationError(f"unknown primitive type '{descriptor.name}'") from None
        if isinstance(descriptor, CollectionType):
            return f"list[{self.render(descriptor.item)}]"
        if isinstance(descriptor, OptionalType):
            return f"{self._use('Optional')}[{self.render(descriptor.inner)}]"
        if isinstance(descriptor, ReferenceType):
            return self._resolve(descriptor.name)
        raise GenerationError(f"unsupported type descriptor {descriptor!r}")

    def render_optional(self, descriptor: TypeDescriptor) -> str:
        """Like :meth:`render`, but always wrapped in ``Optional``."""
        if isinstance(descriptor, OptionalType):
            return self.render(descriptor)
        return f"{self._use('Optional')}[{self.render(descriptor)}]"


def default_factory(descriptor: TypeDescriptor) -> str:
    """Callable source that builds the zero value of *descriptor*.

    Example::

        >>> default_factory(PrimitiveType(name="u32"))
        'int'
    """
    if isinstance(descriptor, CollectionType):
        return "list"
    if isinstance(descriptor, PrimitiveType):
        factory = _DEFAULT_FACTORIES.get(_TYPE_MAP.get(descriptor.name, ""))
        if factory is not None:
            return factory
    raise GenerationError(f"type {describe_type(descriptor)!r} has no zero value")


def describe_type(descriptor: TypeDescriptor) -> str:
    """Render *descriptor* back in DSL notation, for docstrings.

    Example::

        >>> describe_type(OptionalType(inner=CollectionType(item=PrimitiveType(name="u8"))))
        '?Vec<u8>'
    """
    if isinstance(descriptor, PrimitiveType):
        return descriptor.name
    if isinstance(descriptor, ReferenceType):
        return descriptor.name
    if isinstance(descriptor, CollectionType):
        return f"Vec<{describe_type(descriptor.item)}>"
    return f"?{describe_type(descriptor.inner)}"
