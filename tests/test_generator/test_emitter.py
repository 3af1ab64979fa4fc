"""Tests for restify.generator.emitter.

Covers:
- One module per endpoint, named after the endpoint
- Class bases chosen by capability
- Field declarations, aliases and class attributes
- Builder methods
- URI, request, response and header functions
- Import groups and exports
- Package __init__ rendering
- Determinism and contract violations
"""

from __future__ import annotations

import ast

import pytest

from restify.analyzer import analyze
from restify.compiler import compile_source
from restify.exceptions import GenerationError
from restify.generator import create_environment, generate, render_package_init
from restify.models import ReferenceType
from restify.parser import build_unit, parse


@pytest.fixture
def users_modules(users_source: str):
    result = compile_source(users_source, "users.rest")
    assert result.ok, [str(d) for d in result.diagnostics]
    return {m.module_name: m for m in result.modules}


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


class TestModules:
    """Test module-level output."""

    def test_one_module_per_endpoint(self, users_modules) -> None:
        assert list(users_modules) == ["users", "_internal"]
        assert users_modules["users"].endpoint == "Users"
        assert users_modules["_internal"].filename == "_internal.py"

    def test_sources_are_valid_python(self, users_modules) -> None:
        for module in users_modules.values():
            ast.parse(module.source)

    def test_header(self, users_modules) -> None:
        source = users_modules["users"].source
        assert source.startswith('"""Public endpoint ``Users``.')
        assert "# Generated by restify from users.rest. Do not edit." in source
        assert "from __future__ import annotations" in source
        assert source.endswith("\n")

    def test_module_docstring_lists_methods(self, users_modules) -> None:
        docstring = ast.get_docstring(ast.parse(users_modules["users"].source))
        assert "``GET /api/user/{id}``" in docstring
        assert "``POST /api/user``" in docstring

    def test_private_module_docstring(self, users_modules) -> None:
        source = users_modules["_internal"].source
        assert source.startswith('"""Private endpoint ``Internal``.')

    def test_import_groups(self, users_modules) -> None:
        source = users_modules["users"].source
        assert "from typing import Optional\n\nfrom pydantic import Field, NonNegativeInt\n\nfrom restify import runtime\n" in source
        assert "import datetime" not in source
        internal = users_modules["_internal"].source
        assert "from pydantic import Field\n" in internal
        assert "from typing" not in internal

    def test_public_module_exports(self, users_modules) -> None:
        tree = ast.parse(users_modules["users"].source)
        exports = next(
            node.value
            for node in tree.body
            if isinstance(node, ast.Assign) and node.targets[0].id == "__all__"
        )
        names = [elt.value for elt in exports.elts]
        assert "GetApiUserByIdQuery" in names
        assert "build_post_api_user_request" in names
        assert "parse_post_api_user_headers" in names

    def test_private_module_has_no_exports(self, users_modules) -> None:
        assert "__all__" not in users_modules["_internal"].source

    def test_datetime_imports(self, compile_ok) -> None:
        result = compile_ok('[pub A: { GET "/a" => { Response: { at: DateTime, on: ?Date } } }]')
        assert "from datetime import date, datetime" in result.modules[0].source

    def test_empty_endpoint(self, compile_ok) -> None:
        module = compile_ok("[pub Empty: {}]").modules[0]
        ast.parse(module.source)
        assert "This endpoint declares no methods." in module.source
        assert "model_rebuild" not in module.source


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


class TestClasses:
    """Test generated model classes."""

    @pytest.mark.parametrize(
        "line",
        [
            "class GetApiUserByIdQuery(runtime.QueryEncodable):",
            "class GetApiUserByIdResponse(runtime.Decodable):",
            "class GetApiUserByIdStatus(runtime.RestEnum):",
            "class PostApiUserHeader(runtime.Both):",
            "class PostApiUserRequest(runtime.Encodable):",
            "class PostApiUserAddress(runtime.Encodable):",
            "class PostApiUserResponse(runtime.Decodable):",
        ],
    )
    def test_class_bases(self, users_modules, line: str) -> None:
        assert line in users_modules["users"].source

    @pytest.mark.parametrize(
        "line",
        [
            '    id: NonNegativeInt = Field(alias="id")',
            '    verbose: Optional[bool] = Field(default=None, alias="verbose")',
            '    user_name: str = Field(alias="userName")',
            '    display_name: Optional[str] = Field(default=None, alias="displayName")',
            '    status: GetApiUserByIdStatus = Field(alias="status")',
            '    tags: list[str] = Field(alias="tags")',
            '    request_id: str = Field(alias="X-Request-Id")',
            '    address: Optional[PostApiUserAddress] = Field(default=None, alias="address")',
        ],
    )
    def test_fields(self, users_modules, line: str) -> None:
        assert line in users_modules["users"].source

    def test_class_attributes(self, users_modules) -> None:
        source = users_modules["users"].source
        assert '    __omit_if_absent__ = frozenset({"verbose"})' in source
        assert '    __error_field__ = "failed"' in source
        assert '    __omit_if_absent__ = frozenset({"email", "address"})' in source

    def test_response_has_no_omitted_fields(self, compile_ok) -> None:
        source = compile_ok(
            '[pub A: { GET "/a" => { Response: { a: ?String } } }]'
        ).modules[0].source
        assert "__omit_if_absent__" not in source

    def test_default_fields_use_zero_value_factories(self, compile_ok) -> None:
        source = compile_ok(
            """
            [pub A: { GET "/a" => { Response: {
                [default] count: u32,
                [default] ratio: f64,
                [default] tags: Vec<String>,
                [default] note: ?String,
            } } }]
            """
        ).modules[0].source
        assert '    count: NonNegativeInt = Field(default_factory=int, alias="count")' in source
        assert '    ratio: float = Field(default_factory=float, alias="ratio")' in source
        assert '    tags: list[str] = Field(default_factory=list, alias="tags")' in source
        assert '    note: Optional[str] = Field(default=None, alias="note")' in source
        assert "Zero value when missing." in source

    def test_enum_variants(self, users_modules) -> None:
        source = users_modules["users"].source
        assert '    Active: None = Field(default=None, alias="active")' in source
        assert '    Banned: Optional[str] = Field(default=None, alias="banned")' in source
        assert '    Suspended: Optional[NonNegativeInt] = Field(default=None, alias="suspended")' in source
        assert '    __unit_variants__ = frozenset({"Active"})' in source
        assert '    __payload_required__ = frozenset({"Suspended"})' in source

    def test_builder_methods(self, users_modules) -> None:
        source = users_modules["users"].source
        assert "    def with_user_name(self, value: str) -> PostApiUserRequest:" in source
        assert "    def with_address(self, value: Optional[PostApiUserAddress]) -> PostApiUserRequest:" in source
        assert '        return self.model_copy(update={"email": value})' in source
        assert "def with_id(" not in source

    def test_model_rebuild_for_every_class(self, users_modules) -> None:
        source = users_modules["users"].source
        assert source.count(".model_rebuild()") == 7
        assert source.rstrip().endswith("PostApiUserResponse.model_rebuild()")

    def test_class_docstrings(self, users_modules) -> None:
        tree = ast.parse(users_modules["users"].source)
        classes = {n.name: n for n in tree.body if isinstance(n, ast.ClassDef)}
        query_doc = ast.get_docstring(classes["GetApiUserByIdQuery"])
        assert query_doc.startswith("Query parameters of ``GET /api/user/{id}``.")
        assert "Fills ``{id}``." in query_doc
        response_doc = ast.get_docstring(classes["GetApiUserByIdResponse"])
        assert "Signals a failed response when truthy." in response_doc
        assert "``Vec<String>`` as ``tags``" in response_doc

    def test_docstring_escapes_source_text(self, compile_ok) -> None:
        module = compile_ok(
            '[pub A: { GET "/a" => { Response: { [rename = "say \\"hi\\""] a: String } } }]'
        ).modules[0]
        ast.parse(module.source)
        assert 'alias="say \\"hi\\""' in module.source


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


class TestFunctions:
    """Test generated module-level functions."""

    @pytest.mark.parametrize(
        "line",
        [
            "def get_api_user_by_id_uri(query: GetApiUserByIdQuery) -> str:",
            "def build_get_api_user_by_id_request(query: GetApiUserByIdQuery) -> runtime.PreparedRequest:",
            "def parse_get_api_user_by_id_response(payload: runtime.Payload) -> GetApiUserByIdResponse:",
            "def post_api_user_uri() -> str:",
            "def build_post_api_user_request(request: PostApiUserRequest, header: PostApiUserHeader) -> runtime.PreparedRequest:",
            "def parse_post_api_user_response(payload: runtime.Payload) -> PostApiUserResponse:",
            "def parse_post_api_user_headers(headers: runtime.Headers) -> PostApiUserHeader:",
        ],
    )
    def test_signatures(self, users_modules, line: str) -> None:
        assert line in users_modules["users"].source

    def test_uri_body_with_query(self, users_modules) -> None:
        source = users_modules["users"].source
        assert '    path = runtime.substitute_path("/api/user/{id}", {"id": query.id})' in source
        assert '    return runtime.append_query(path, query.encode(), exclude=("id",))' in source

    def test_path_filled_from_request(self, users_modules) -> None:
        source = users_modules["_internal"].source
        assert "def delete_internal_cache_by_key_uri(request: DeleteInternalCacheByKeyRequest) -> str:" in source
        assert '    return runtime.substitute_path("/internal/cache/{key}", {"key": request.key})' in source

    def test_no_response_parser_without_response(self, users_modules) -> None:
        source = users_modules["_internal"].source
        assert "def parse_" not in source

    def test_reqres_is_body_and_response(self, compile_ok) -> None:
        source = compile_ok(
            '[pub Notes: { PUT "/notes/{id}" => { ReqRes: { id: u64, text: ?String } } }]'
        ).modules[0].source
        assert "def put_notes_by_id_uri(reqres: PutNotesByIdReqRes) -> str:" in source
        assert "    body=reqres.encode()," in source
        assert "def parse_put_notes_by_id_response(payload: runtime.Payload) -> PutNotesByIdReqRes:" in source
        assert "class PutNotesByIdReqRes(runtime.Both):" in source

    def test_excluded_query_key_uses_wire_name(self, compile_ok) -> None:
        source = compile_ok(
            '[pub A: { GET "/u/{user_id}" => { ["camelCase"] Query: { user_id: u64, page: ?u32 } } }]'
        ).modules[0].source
        assert '{"user_id": query.user_id}' in source
        assert 'exclude=("userId",)' in source


# ---------------------------------------------------------------------------
# Package init, determinism and contract
# ---------------------------------------------------------------------------


class TestPackageInit:
    """Test the rendered package __init__.py."""

    def test_imports_every_module(self, users_modules) -> None:
        source = render_package_init(list(users_modules.values()))
        ast.parse(source)
        assert "from . import users\n" in source
        assert "from . import _internal\n" in source
        assert '__all__ = [\n    "users",\n]' in source

    def test_no_modules(self) -> None:
        source = render_package_init([])
        ast.parse(source)
        assert "from ." not in source


class TestDeterminism:
    """Test that identical input yields identical output."""

    def test_repeatable(self, users_source: str) -> None:
        first = compile_source(users_source, "users.rest").modules
        second = compile_source(users_source, "users.rest").modules
        assert [m.source for m in first] == [m.source for m in second]

    def test_shared_environment(self, users_source: str) -> None:
        raw, _ = parse(users_source, "users.rest")
        unit, _ = build_unit(raw)
        assert analyze(unit) == []
        env = create_environment()
        assert [m.source for m in generate(unit, env)] == [m.source for m in generate(unit, env)]


class TestContract:
    """Test that IR the analyzer would reject is refused."""

    def test_unanalyzed_ir(self) -> None:
        raw, _ = parse('[A: { GET "/a" => { Response: { a: String } } }]')
        unit, _ = build_unit(raw)
        with pytest.raises(GenerationError, match="no serialization capability"):
            generate(unit)

    def test_unresolved_reference(self) -> None:
        raw, _ = parse('[A: { GET "/a" => { Response: { a: String } } }]')
        unit, _ = build_unit(raw)
        assert analyze(unit) == []
        unit.endpoints[0].methods[0].items[0].fields[0].type = ReferenceType(name="Missing")
        with pytest.raises(GenerationError, match="unresolved reference 'Missing'"):
            generate(unit)

    def test_missing_wire_name(self) -> None:
        raw, _ = parse('[A: { GET "/a" => { Response: { a: String } } }]')
        unit, _ = build_unit(raw)
        assert analyze(unit) == []
        unit.endpoints[0].methods[0].items[0].fields[0].wire_name = None
        with pytest.raises(GenerationError, match="has no wire name"):
            generate(unit)
