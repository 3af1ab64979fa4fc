"""Tests for restify.runtime.

Covers:
- substitute_path / encode_query / append_query
- RestModel omit-if-absent serialization and the is-error marker
- Encodable / Decodable helpers
- RestEnum tagging and validation
- PreparedRequest
"""

from __future__ import annotations

from typing import Optional

import pytest
from pydantic import Field, ValidationError

from restify import runtime


class Profile(runtime.Both):
    __omit_if_absent__ = frozenset({"nickname"})
    __error_field__ = "error"

    name: str = Field(alias="Name")
    nickname: Optional[str] = Field(default=None, alias="nick")
    error: Optional[str] = Field(default=None, alias="error")


class Filters(runtime.QueryEncodable):
    __omit_if_absent__ = frozenset({"limit"})

    tags: list[str] = Field(alias="tag")
    active: bool = Field(alias="active")
    limit: Optional[int] = Field(default=None, alias="limit")


class Shape(runtime.RestEnum):
    __unit_variants__ = frozenset({"empty"})
    __payload_required__ = frozenset({"circle"})

    empty: None = Field(default=None, alias="Empty")
    circle: Optional[float] = Field(default=None, alias="Circle")
    label: Optional[str] = Field(default=None, alias="Label")


# ------------------------------------------------------------------ #
# URI helpers
# ------------------------------------------------------------------ #


class TestSubstitutePath:
    """Test path-template substitution."""

    def test_substitutes_in_order(self) -> None:
        assert runtime.substitute_path("/u/{id}/p/{pid}", {"id": 1, "pid": "x"}) == "/u/1/p/x"

    def test_percent_encodes_everything(self) -> None:
        assert runtime.substitute_path("/f/{name}", {"name": "a b/c?d"}) == "/f/a%20b%2Fc%3Fd"

    def test_bool_value(self) -> None:
        assert runtime.substitute_path("/flag/{on}", {"on": True}) == "/flag/true"

    def test_missing_value(self) -> None:
        with pytest.raises(ValueError, match="missing value for path parameter 'id'"):
            runtime.substitute_path("/u/{id}", {})

    def test_none_value(self) -> None:
        with pytest.raises(ValueError):
            runtime.substitute_path("/u/{id}", {"id": None})

    def test_no_parameters(self) -> None:
        assert runtime.substitute_path("/static", {"unused": 1}) == "/static"


class TestQuery:
    """Test query-string encoding."""

    def test_drops_none_and_repeats_lists(self) -> None:
        query = runtime.encode_query({"q": "a b", "tag": ["x", None, "y"], "page": None})
        assert query == "q=a+b&tag=x&tag=y"

    def test_scalars(self) -> None:
        assert runtime.encode_query({"on": False, "n": 3, "f": 1.5}) == "on=false&n=3&f=1.5"

    def test_nested_values_render_as_json(self) -> None:
        assert runtime.encode_query({"r": {"b": 2, "a": 1}}) == "r=%7B%22a%22%3A1%2C%22b%22%3A2%7D"

    def test_append_excludes_keys(self) -> None:
        assert runtime.append_query("/u/1", {"id": 1, "v": True}, exclude=("id",)) == "/u/1?v=true"

    def test_append_without_remaining_keys(self) -> None:
        assert runtime.append_query("/u/1", {"id": 1, "v": None}, exclude=("id",)) == "/u/1"


# ------------------------------------------------------------------ #
# Models
# ------------------------------------------------------------------ #


class TestRestModel:
    """Test omit-if-absent and the error marker."""

    def test_omits_absent_fields_by_alias(self) -> None:
        assert Profile(name="ada").encode() == {"Name": "ada", "error": None}

    def test_keeps_present_fields(self) -> None:
        assert Profile(name="ada", nickname="al").encode() == {
            "Name": "ada",
            "nick": "al",
            "error": None,
        }

    def test_omits_absent_fields_by_name(self) -> None:
        assert Profile(name="ada").model_dump() == {"name": "ada", "error": None}

    def test_to_json(self) -> None:
        assert Profile(name="ada").to_json() == '{"Name":"ada","error":null}'

    def test_error_marker(self) -> None:
        assert Profile(name="ada").is_error() is False
        failed = Profile(name="ada", error="boom")
        assert failed.is_error() is True
        assert failed.error_value() == "boom"

    def test_decode_mapping_and_bytes(self) -> None:
        assert Profile.decode({"Name": "ada"}).nickname is None
        assert Profile.decode(b'{"Name": "ada", "nick": "al"}').nickname == "al"

    def test_decode_by_field_name(self) -> None:
        assert Profile.decode({"name": "ada"}).name == "ada"

    def test_decode_headers(self) -> None:
        profile = Profile.decode_headers({"NAME": "ada", "Nick": "al", "X-Other": "1"})
        assert (profile.name, profile.nickname) == ("ada", "al")

    def test_encode_headers(self) -> None:
        filters = Filters(tags=["a", "b"], active=True, limit=5)
        assert filters.encode_headers() == {"tag": "a, b", "active": "true", "limit": "5"}

    def test_query_string(self) -> None:
        assert Filters(tags=["a", "b"], active=False).to_query_string() == "tag=a&tag=b&active=false"


class TestRestEnum:
    """Test externally tagged enums."""

    def test_bare_name(self) -> None:
        shape = Shape.model_validate("Empty")
        assert shape.variant == "Empty"
        assert shape.encode() == "Empty"
        assert shape.model_dump() == "empty"

    def test_payload(self) -> None:
        shape = Shape.decode({"Circle": 2.5})
        assert shape.value == 2.5
        assert shape.encode() == {"Circle": 2.5}

    def test_optional_payload(self) -> None:
        assert Shape.decode({"Label": None}).encode() == {"Label": None}

    def test_required_payload(self) -> None:
        with pytest.raises(ValidationError, match="requires a payload"):
            Shape.decode({"Circle": None})

    def test_no_variant(self) -> None:
        with pytest.raises(ValidationError, match="expects exactly one variant, got 0"):
            Shape.decode({})

    def test_two_variants(self) -> None:
        with pytest.raises(ValidationError, match="got 2"):
            Shape.decode({"Circle": 1.0, "Label": "x"})

    def test_json_round_trip(self) -> None:
        assert Shape.decode('{"Circle": 1.0}').to_json() == '{"Circle":1.0}'


class TestPreparedRequest:
    """Test the transport-free request value."""

    def test_body_json(self) -> None:
        request = runtime.PreparedRequest(method="POST", uri="/x", body={"a": [1, 2]})
        assert request.body_json() == '{"a":[1,2]}'
        assert request.headers == {}

    def test_no_body(self) -> None:
        assert runtime.PreparedRequest(method="GET", uri="/x").body_json() is None
