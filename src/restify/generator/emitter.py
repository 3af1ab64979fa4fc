"""Emit one Python module per endpoint from analyzed IR.

The generation process:

1. A Jinja2 environment is configured with templates from
   ``generator/templates/``.
2. Each endpoint is turned into a plain view (classes, functions, imports)
   by :class:`EndpointEmitter`. All naming and ordering decisions happen
   here, in Python, so the templates only lay text out.
3. ``endpoint.py.j2`` renders the view into module source.

The emitter trusts the analyzer but checks its contract: an unresolved
reference, a missing wire name, an unknown role or an item without any
capability raises :class:`~restify.exceptions.GenerationError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from restify.analyzer.capabilities import ROLE_CAPABILITIES
from restify.analyzer.rules import PATH_SOURCE_ROLES
from restify.analyzer.scope import EndpointScope
from restify.exceptions import GenerationError
from restify.generator import docs
from restify.generator.types import AnnotationRenderer, default_factory
from restify.models import (
    CompilationUnit,
    DataStructure,
    Endpoint,
    EnumDefinition,
    GeneratedModule,
    Method,
    OptionalType,
    StructRole,
)
from restify.naming import attribute_name, class_name, method_identifier, module_name

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

_ARG_NAMES: dict[StructRole, str] = {
    StructRole.QUERY: "query",
    StructRole.REQUEST: "request",
    StructRole.REQRES: "reqres",
    StructRole.HEADER: "header",
}


def py_str(text: str) -> str:
    """Double-quoted Python string literal for *text*."""
    return json.dumps(text)


def _tuple_literal(items: Sequence[str]) -> str:
    if len(items) == 1:
        return f"({py_str(items[0])},)"
    return "(" + ", ".join(py_str(i) for i in items) + ")"


def create_environment() -> Environment:
    """Create the Jinja2 environment for module templates.

    Autoescape is off since the output is Python source. Block trimming and
    lstrip are enabled so that control tags do not leave blank lines behind.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["pystr"] = py_str
    env.filters["docstring"] = docs.format_docstring
    return env


# ------------------------------------------------------------------ #
# Views
# ------------------------------------------------------------------ #


@dataclass
class FieldView:
    attr: str
    annotation: str
    default: str
    update_expr: str


@dataclass
class ClassView:
    name: str
    base: str
    docstring: str
    class_attrs: list[str] = field(default_factory=list)
    fields: list[FieldView] = field(default_factory=list)
    builders: list[FieldView] = field(default_factory=list)


@dataclass
class FunctionView:
    name: str
    params: str
    returns: str
    docstring: str
    body: list[str] = field(default_factory=list)


@dataclass
class ModuleView:
    name: str
    unit: str
    docstring: str
    import_groups: list[list[str]] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    classes: list[ClassView] = field(default_factory=list)
    functions: list[FunctionView] = field(default_factory=list)


# ------------------------------------------------------------------ #
# Endpoint emitter
# ------------------------------------------------------------------ #


class EndpointEmitter:
    """Build the :class:`ModuleView` of one endpoint.

    Args:
        endpoint: An analyzed endpoint.
        unit: Compilation-unit identifier, recorded in the module header.
    """

    def __init__(self, endpoint: Endpoint, unit: str) -> None:
        self.endpoint = endpoint
        self.unit = unit
        self.scope = EndpointScope(endpoint)
        self._method: Optional[Method] = None
        self.types = AnnotationRenderer(self._resolve)
        self._uses_field = False

    def _resolve(self, name: str) -> str:
        if self._method is None:
            raise GenerationError(f"reference '{name}' outside of a method")
        resolved = self.scope.resolve(name, self._method)
        if resolved is None:
            raise GenerationError(
                f"unresolved reference '{name}' in endpoint '{self.endpoint.name}'"
            )
        return class_name(resolved.owner, resolved.item.name)

    def build(self) -> ModuleView:
        view = ModuleView(
            name=module_name(self.endpoint),
            unit=self.unit,
            docstring=docs.module_docstring(self.endpoint),
        )
        for method in self.endpoint.methods:
            self._method = method
            for item in method.items:
                if isinstance(item, DataStructure):
                    view.classes.append(self._struct_class(item, method))
                else:
                    view.classes.append(self._enum_class(item, method))
            view.functions.extend(self._method_functions(method))
        self._method = None

        view.import_groups = self._import_groups()
        if self.endpoint.public:
            view.exports = [c.name for c in view.classes] + [f.name for f in view.functions]
        return view

    def _import_groups(self) -> list[list[str]]:
        by_module: dict[str, set[str]] = {}
        for module, name in self.types.imports:
            by_module.setdefault(module, set()).add(name)
        if self._uses_field:
            by_module.setdefault("pydantic", set()).add("Field")

        stdlib = [
            f"from {mod} import {', '.join(sorted(by_module[mod]))}"
            for mod in ("datetime", "typing")
            if mod in by_module
        ]
        third_party = []
        if "pydantic" in by_module:
            third_party.append(f"from pydantic import {', '.join(sorted(by_module['pydantic']))}")
        groups = [g for g in (stdlib, third_party) if g]
        groups.append(["from restify import runtime"])
        return groups

    # -- structures ----------------------------------------------------

    @staticmethod
    def _base_class(struct: DataStructure) -> str:
        if struct.role != StructRole.GENERIC and struct.role not in ROLE_CAPABILITIES:
            raise GenerationError(f"unknown role {struct.role!r} on struct '{struct.name}'")
        cap = struct.capability
        if cap.url_encoded:
            return "runtime.QueryEncodable"
        if cap.encode and cap.decode:
            return "runtime.Both"
        if cap.encode:
            return "runtime.Encodable"
        if cap.decode:
            return "runtime.Decodable"
        raise GenerationError(f"struct '{struct.name}' has no serialization capability")

    def _struct_class(self, struct: DataStructure, method: Method) -> ClassView:
        view = ClassView(
            name=class_name(method, struct.name),
            base=self._base_class(struct),
            docstring=docs.struct_docstring(struct, method),
        )
        omitted: list[str] = []
        error_attr: Optional[str] = None
        for f in struct.fields:
            if f.wire_name is None:
                raise GenerationError(f"field '{f.name}' of '{struct.name}' has no wire name")
            attr = attribute_name(f.name)
            annotation = self.types.render(f.type)
            if f.optional:
                default = f"Field(default=None, alias={py_str(f.wire_name)})"
            elif f.has_default:
                factory = default_factory(f.type)
                default = f"Field(default_factory={factory}, alias={py_str(f.wire_name)})"
            else:
                default = f"Field(alias={py_str(f.wire_name)})"
            self._uses_field = True
            fv = FieldView(
                attr=attr,
                annotation=annotation,
                default=default,
                update_expr=f"{{{py_str(attr)}: value}}",
            )
            view.fields.append(fv)
            if struct.builder:
                view.builders.append(fv)
            if f.omit_if_absent:
                omitted.append(attr)
            if f.is_error:
                error_attr = attr

        if omitted:
            members = ", ".join(py_str(a) for a in omitted)
            view.class_attrs.append(f"__omit_if_absent__ = frozenset({{{members}}})")
        if error_attr is not None:
            view.class_attrs.append(f"__error_field__ = {py_str(error_attr)}")
        return view

    def _enum_class(self, enum: EnumDefinition, method: Method) -> ClassView:
        if not enum.variants:
            raise GenerationError(f"enum '{enum.name}' has no variants")
        cap = enum.capability
        if not (cap.encode or cap.decode):
            raise GenerationError(f"enum '{enum.name}' has no serialization capability")

        view = ClassView(
            name=class_name(method, enum.name),
            base="runtime.RestEnum",
            docstring=docs.enum_docstring(enum, method),
        )
        units: list[str] = []
        required: list[str] = []
        for variant in enum.variants:
            if variant.wire_name is None:
                raise GenerationError(
                    f"variant '{variant.name}' of '{enum.name}' has no wire name"
                )
            attr = attribute_name(variant.name)
            if variant.payload is None:
                annotation = "None"
                units.append(attr)
            else:
                if not isinstance(variant.payload, OptionalType):
                    required.append(attr)
                annotation = self.types.render_optional(variant.payload)
            self._uses_field = True
            view.fields.append(
                FieldView(
                    attr=attr,
                    annotation=annotation,
                    default=f"Field(default=None, alias={py_str(variant.wire_name)})",
                    update_expr="",
                )
            )
        if units:
            members = ", ".join(py_str(a) for a in units)
            view.class_attrs.append(f"__unit_variants__ = frozenset({{{members}}})")
        if required:
            members = ", ".join(py_str(a) for a in required)
            view.class_attrs.append(f"__payload_required__ = frozenset({{{members}}})")
        return view

    # -- functions -----------------------------------------------------

    def _method_functions(self, method: Method) -> list[FunctionView]:
        ident = method_identifier(method)
        roles: dict[StructRole, DataStructure] = {}
        for struct in method.structures:
            if struct.role != StructRole.GENERIC:
                roles.setdefault(struct.role, struct)

        def typed(role: StructRole) -> str:
            return f"{_ARG_NAMES[role]}: {class_name(method, roles[role].name)}"

        # Path parameter -> "arg.attr" expression.
        path_values: list[tuple[str, str]] = []
        path_roles: list[StructRole] = []
        for param in dict.fromkeys(method.path.parameters):
            source = next(
                (
                    role
                    for role in PATH_SOURCE_ROLES
                    if role in roles and any(f.name == param for f in roles[role].fields)
                ),
                None,
            )
            if source is None:
                raise GenerationError(
                    f"path parameter '{param}' of {method.verb.value} {method.path.raw} "
                    "has no covering field"
                )
            path_values.append((param, f"{_ARG_NAMES[source]}.{attribute_name(param)}"))
            if source not in path_roles:
                path_roles.append(source)

        uri_roles = [
            r
            for r in PATH_SOURCE_ROLES
            if (r == StructRole.QUERY and r in roles) or r in path_roles
        ]
        values = ", ".join(f"{py_str(p)}: {expr}" for p, expr in path_values)
        substitute = f"runtime.substitute_path({py_str(method.path.raw)}, {{{values}}})"
        if StructRole.QUERY in roles:
            query = roles[StructRole.QUERY]
            excluded = [
                f.wire_name or f.name for f in query.fields if f.name in method.path.parameters
            ]
            append = "runtime.append_query(path, query.encode()"
            append += f", exclude={_tuple_literal(excluded)})" if excluded else ")"
            uri_body = [f"path = {substitute}", f"return {append}"]
        else:
            uri_body = [f"return {substitute}"]

        uri_fn = FunctionView(
            name=f"{ident}_uri",
            params=", ".join(typed(r) for r in uri_roles),
            returns="str",
            docstring=docs.uri_docstring(method, StructRole.QUERY in roles),
            body=uri_body,
        )

        body_role = next((r for r in (StructRole.REQUEST, StructRole.REQRES) if r in roles), None)
        request_roles = [
            r
            for r in (StructRole.QUERY, StructRole.REQUEST, StructRole.REQRES, StructRole.HEADER)
            if r in roles
        ]
        uri_args = ", ".join(_ARG_NAMES[r] for r in uri_roles)
        headers = "header.encode_headers()" if StructRole.HEADER in roles else "{}"
        body = f"{_ARG_NAMES[body_role]}.encode()" if body_role is not None else "None"
        request_fn = FunctionView(
            name=f"build_{ident}_request",
            params=", ".join(typed(r) for r in request_roles),
            returns="runtime.PreparedRequest",
            docstring=docs.request_docstring(method),
            body=[
                "return runtime.PreparedRequest(",
                f"    method={py_str(method.verb.value)},",
                f"    uri={ident}_uri({uri_args}),",
                f"    headers={headers},",
                f"    body={body},",
                ")",
            ],
        )
        functions = [uri_fn, request_fn]

        response_role = next(
            (r for r in (StructRole.RESPONSE, StructRole.REQRES) if r in roles), None
        )
        if response_role is not None:
            struct = roles[response_role]
            cls = class_name(method, struct.name)
            functions.append(
                FunctionView(
                    name=f"parse_{ident}_response",
                    params="payload: runtime.Payload",
                    returns=cls,
                    docstring=docs.response_docstring(method, struct),
                    body=[f"return {cls}.decode(payload)"],
                )
            )
        if StructRole.HEADER in roles:
            cls = class_name(method, roles[StructRole.HEADER].name)
            functions.append(
                FunctionView(
                    name=f"parse_{ident}_headers",
                    params="headers: runtime.Headers",
                    returns=cls,
                    docstring=docs.headers_docstring(method),
                    body=[f"return {cls}.decode_headers(headers)"],
                )
            )
        return functions


# ------------------------------------------------------------------ #
# Public API
# ------------------------------------------------------------------ #


def generate(unit: CompilationUnit, env: Optional[Environment] = None) -> list[GeneratedModule]:
    """Generate one module per endpoint of an analyzed *unit*.

    Args:
        unit: IR that passed :func:`restify.analyzer.analyze` without errors.
        env: Optional preconfigured Jinja2 environment.

    Returns:
        The generated modules, in endpoint order.

    Raises:
        GenerationError: If the IR breaks an invariant the analyzer guarantees.
    """
    env = env or create_environment()
    template = env.get_template("endpoint.py.j2")
    modules: list[GeneratedModule] = []
    for endpoint in unit.endpoints:
        view = EndpointEmitter(endpoint, unit.unit).build()
        source = template.render(module=view)
        modules.append(GeneratedModule(endpoint=endpoint.name, module_name=view.name, source=source))
        logger.debug("Generated module %s (%d classes)", view.name, len(view.classes))
    return modules


def render_package_init(modules: Sequence[GeneratedModule], env: Optional[Environment] = None) -> str:
    """Render an ``__init__.py`` importing every generated module."""
    env = env or create_environment()
    names = [m.module_name for m in modules]
    public = [n for n in names if not n.startswith("_")]
    return env.get_template("package_init.py.j2").render(modules=names, public=public)
