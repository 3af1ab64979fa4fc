"""Tests for restify.parser.lexer."""

from __future__ import annotations

import pytest

from restify.exceptions import DSLSyntaxError
from restify.parser.lexer import TokenType, tokenize


def _types(text: str) -> list[TokenType]:
    return [t.type for t in tokenize(text)]


# ---------------------------------------------------------------------------
# Token kinds
# ---------------------------------------------------------------------------


class TestTokenKinds:
    """Test that every lexical form produces the right token type."""

    def test_method_head(self) -> None:
        assert _types('GET "/" => {}') == [
            TokenType.IDENT,
            TokenType.STRING,
            TokenType.ARROW,
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.EOF,
        ]

    def test_punctuation(self) -> None:
        assert _types("[ ] ( ) < > : , ? =") == [
            TokenType.LBRACKET,
            TokenType.RBRACKET,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.LANGLE,
            TokenType.RANGLE,
            TokenType.COLON,
            TokenType.COMMA,
            TokenType.QUESTION,
            TokenType.EQUALS,
            TokenType.EOF,
        ]

    def test_arrow_is_one_token(self) -> None:
        tokens = tokenize("=>")
        assert tokens[0].type == TokenType.ARROW
        assert tokens[0].value == "=>"

    def test_identifiers_allow_underscores_and_digits(self) -> None:
        tokens = tokenize("_user_id2 u64")
        assert [t.value for t in tokens[:-1]] == ["_user_id2", "u64"]

    @pytest.mark.parametrize(("text", "char", "column"), [("naïve_name", "ï", 3), ("émoji", "é", 1), ("x٣", "٣", 2)])
    def test_identifiers_are_ascii_only(self, text: str, char: str, column: int) -> None:
        with pytest.raises(DSLSyntaxError) as exc_info:
            tokenize(text)
        assert exc_info.value.message == f"unexpected character {char!r}"
        assert exc_info.value.location.column == column

    def test_non_ascii_allowed_in_strings(self) -> None:
        tokens = tokenize('"naïve"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "naïve"

    def test_empty_input_is_only_eof(self) -> None:
        assert _types("") == [TokenType.EOF]

    def test_comments_and_whitespace_are_dropped(self) -> None:
        text = "// leading comment\nfoo // trailing\n\tbar\r\n"
        tokens = tokenize(text)
        assert [t.value for t in tokens if t.type == TokenType.IDENT] == ["foo", "bar"]


# ---------------------------------------------------------------------------
# String literals
# ---------------------------------------------------------------------------


class TestStringLiterals:
    """Test string literal contents and escapes."""

    def test_value_excludes_quotes(self) -> None:
        tok = tokenize('"/api/user/{id}"')[0]
        assert tok.type == TokenType.STRING
        assert tok.value == "/api/user/{id}"

    def test_escapes_are_decoded(self) -> None:
        tok = tokenize(r'"a\"b\\c\nd\te"')[0]
        assert tok.value == 'a"b\\c\nd\te'

    def test_unterminated_string_raises(self) -> None:
        with pytest.raises(DSLSyntaxError, match="unterminated string literal"):
            tokenize('GET "/api')

    def test_newline_inside_string_raises(self) -> None:
        with pytest.raises(DSLSyntaxError, match="unterminated string literal"):
            tokenize('"/api\n"')

    def test_invalid_escape_raises(self) -> None:
        with pytest.raises(DSLSyntaxError, match="invalid escape"):
            tokenize(r'"\q"')


# ---------------------------------------------------------------------------
# Locations and errors
# ---------------------------------------------------------------------------


class TestLocations:
    """Test line, column and offset tracking."""

    def test_first_line_columns(self) -> None:
        tokens = tokenize('GET "/" => {}', unit="api.rest")
        assert [(t.location.line, t.location.column) for t in tokens[:4]] == [
            (1, 1),
            (1, 5),
            (1, 9),
            (1, 12),
        ]
        assert tokens[0].location.unit == "api.rest"

    def test_second_line(self) -> None:
        tokens = tokenize("a\n  b")
        b = tokens[1]
        assert (b.location.line, b.location.column, b.location.offset) == (2, 3, 4)

    def test_eof_location_is_end_of_text(self) -> None:
        tokens = tokenize("ab")
        assert tokens[-1].location.offset == 2

    def test_unexpected_character_reports_location(self) -> None:
        with pytest.raises(DSLSyntaxError) as exc_info:
            tokenize("foo\n  @")
        err = exc_info.value
        assert "unexpected character '@'" in err.message
        assert (err.location.line, err.location.column) == (2, 3)


class TestDescribe:
    """Test token descriptions used in error messages."""

    def test_identifier(self) -> None:
        assert tokenize("Users")[0].describe() == "identifier 'Users'"

    def test_string(self) -> None:
        assert tokenize('"/x"')[0].describe() == 'string "/x"'

    def test_punctuation(self) -> None:
        assert tokenize("{")[0].describe() == "'{'"

    def test_eof(self) -> None:
        assert tokenize("")[0].describe() == "end of input"
