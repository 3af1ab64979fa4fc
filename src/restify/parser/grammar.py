"""Recursive-descent parser producing the raw syntax tree.

The grammar is fixed and endpoint-shaped::

    [pub Users: {
        GET "/api/user/{id}" => {
            Query: { id: String }
            ["camelCase"]
            Response: {
                ["isError"] error: ?ErrorKind,
                user_name: ?String,
            }
            enum ErrorKind { NotFound, Invalid(?String) }
        }
    }]

The parser only checks shape. It knows the reserved role names, the HTTP
verbs and the path-template syntax, and nothing else. Classification of
types and attributes is left to :mod:`restify.parser.builder`.

Errors inside an endpoint block abandon that block. The parser then skips to
the token that closes it and carries on with the next endpoint, so one run
reports problems from every endpoint.
"""

from __future__ import annotations

import difflib
from typing import Optional

from restify.exceptions import DSLSyntaxError
from restify.models import (
    HTTPVerb,
    RawAttribute,
    RawAttributeItem,
    RawEndpoint,
    RawEnum,
    RawField,
    RawMethod,
    RawSource,
    RawStruct,
    RawType,
    RawVariant,
    StructRole,
)
from restify.parser.lexer import CLOSERS, OPENERS, Token, TokenType, tokenize
from restify.parser.paths import parse_path_template

VALID_VERBS: tuple[str, ...] = tuple(v.value for v in HTTPVerb)
ROLE_NAMES: tuple[str, ...] = tuple(r.value for r in StructRole if r != StructRole.GENERIC)
_HEAD_KEYWORDS: tuple[str, ...] = ROLE_NAMES + ("struct", "enum")


def parse(text: str, unit: str = "<string>") -> tuple[RawSource, list[DSLSyntaxError]]:
    """Parse DSL *text* into a raw syntax tree.

    Args:
        text: The DSL source.
        unit: Compilation-unit identifier used in locations.

    Returns:
        A ``(tree, errors)`` tuple. ``tree`` holds every endpoint that parsed
        cleanly; ``errors`` lists the syntax errors in source order.

    Example::

        tree, errors = parse('[Api: { GET "/ping" => {} }]')
        assert not errors and tree.endpoints[0].name == "Api"
    """
    try:
        tokens = tokenize(text, unit)
    except DSLSyntaxError as exc:
        return RawSource(unit=unit), [exc]
    return Parser(tokens, unit).parse_source()


class Parser:
    """Token-stream parser. Use :func:`parse` rather than instantiating directly."""

    def __init__(self, tokens: list[Token], unit: str = "<string>") -> None:
        self._tokens = tokens
        self._pos = 0
        self._unit = unit

    # ------------------------------------------------------------------ #
    # Token helpers
    # ------------------------------------------------------------------ #

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _check(self, tok_type: TokenType, value: Optional[str] = None) -> bool:
        tok = self._peek()
        return tok.type == tok_type and (value is None or tok.value == value)

    def _expect(self, tok_type: TokenType, what: str) -> Token:
        tok = self._peek()
        if tok.type != tok_type:
            raise DSLSyntaxError(f"expected {what}, found {tok.describe()}", tok.location)
        return self._advance()

    def _skip_comma(self) -> None:
        if self._check(TokenType.COMMA):
            self._advance()

    # ------------------------------------------------------------------ #
    # Top level
    # ------------------------------------------------------------------ #

    def parse_source(self) -> tuple[RawSource, list[DSLSyntaxError]]:
        """Parse every endpoint block, recovering at block boundaries."""
        endpoints: list[RawEndpoint] = []
        errors: list[DSLSyntaxError] = []

        while not self._check(TokenType.EOF):
            if endpoints or errors:
                # Endpoint blocks may be comma-delimited
                self._skip_comma()
                if self._check(TokenType.EOF):
                    break
            start = self._pos
            try:
                endpoints.append(self._parse_endpoint())
            except DSLSyntaxError as exc:
                errors.append(exc)
                self._recover(start)

        return RawSource(unit=self._unit, endpoints=endpoints), errors

    def _recover(self, start: int) -> None:
        """Skip past the endpoint block beginning at token index *start*.

        Tracks bracket depth from *start* and stops just after the token that
        brings it back to zero. A fresh opener at depth zero ends the skip
        without being consumed, since it starts the next endpoint block.
        """
        i = start
        depth = 0
        while self._tokens[i].type != TokenType.EOF:
            tok_type = self._tokens[i].type
            if tok_type in OPENERS:
                if depth == 0 and i != start:
                    break
                depth += 1
            elif tok_type in CLOSERS:
                depth -= 1
                if depth == 0:
                    i += 1
                    break
                if depth < 0:
                    depth = 0
            i += 1
        self._pos = max(i, min(start + 1, len(self._tokens) - 1))

    def _parse_endpoint(self) -> RawEndpoint:
        opener = self._expect(TokenType.LBRACKET, "'[' to open an endpoint block")

        public = False
        if self._check(TokenType.IDENT, "pub") and self._peek(1).type == TokenType.IDENT:
            self._advance()
            public = True

        name = self._expect(TokenType.IDENT, "endpoint name")
        self._expect(TokenType.COLON, f"':' after endpoint name '{name.value}'")
        self._expect(TokenType.LBRACE, "'{' to open the endpoint body")

        methods: list[RawMethod] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise DSLSyntaxError(
                    f"unterminated endpoint block '{name.value}'", opener.location
                )
            methods.append(self._parse_method())
        self._advance()
        self._expect(TokenType.RBRACKET, f"']' to close endpoint block '{name.value}'")

        return RawEndpoint(
            name=name.value, public=public, methods=methods, location=opener.location
        )

    # ------------------------------------------------------------------ #
    # Methods
    # ------------------------------------------------------------------ #

    def _parse_method(self) -> RawMethod:
        verb = self._expect(TokenType.IDENT, "an HTTP verb")
        if verb.value not in VALID_VERBS:
            hint = _suggest(verb.value.upper(), VALID_VERBS)
            raise DSLSyntaxError(
                f"unknown HTTP verb '{verb.value}'{hint}; expected one of "
                + ", ".join(VALID_VERBS),
                verb.location,
            )

        path = self._expect(TokenType.STRING, "a quoted path template")
        parse_path_template(path.value, path.location)
        self._expect(TokenType.ARROW, "'=>' after the path template")
        opener = self._expect(TokenType.LBRACE, "'{' to open the method body")

        items: list[RawStruct | RawEnum] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise DSLSyntaxError(
                    f"unterminated method block {verb.value} \"{path.value}\"",
                    opener.location,
                )
            items.append(self._parse_item())
        self._advance()

        return RawMethod(
            verb=verb.value,
            path=path.value,
            path_location=path.location,
            items=items,
            location=verb.location,
        )

    def _parse_item(self) -> RawStruct | RawEnum:
        attributes = self._parse_attributes()
        head = self._peek()
        if head.type != TokenType.IDENT:
            raise DSLSyntaxError(
                f"expected a structure role, 'struct' or 'enum', found {head.describe()}",
                head.location,
            )

        if head.value in ROLE_NAMES:
            self._advance()
            if self._check(TokenType.COLON):
                self._advance()
            fields = self._parse_fields_block(head.value)
            return RawStruct(
                name=head.value,
                role=head.value,
                fields=fields,
                attributes=attributes,
                location=head.location,
            )

        if head.value == "struct":
            self._advance()
            name = self._expect(TokenType.IDENT, "struct name")
            role: Optional[str] = None
            if self._check(TokenType.LANGLE):
                self._advance()
                role_tok = self._expect(TokenType.IDENT, "a structure role")
                if role_tok.value not in ROLE_NAMES:
                    raise DSLSyntaxError(_unknown_role_message(role_tok.value), role_tok.location)
                role = role_tok.value
                self._expect(TokenType.RANGLE, "'>' after the structure role")
            fields = self._parse_fields_block(name.value)
            return RawStruct(
                name=name.value,
                role=role,
                fields=fields,
                attributes=attributes,
                location=head.location,
            )

        if head.value == "enum":
            self._advance()
            return self._parse_enum(attributes, head)

        raise DSLSyntaxError(_unknown_role_message(head.value), head.location)

    # ------------------------------------------------------------------ #
    # Structs, enums and fields
    # ------------------------------------------------------------------ #

    def _parse_fields_block(self, owner: str) -> list[RawField]:
        opener = self._expect(TokenType.LBRACE, f"'{{' to open the body of '{owner}'")
        fields: list[RawField] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise DSLSyntaxError(f"unterminated body of '{owner}'", opener.location)
            fields.append(self._parse_field())
            self._skip_comma()
        self._advance()
        return fields

    def _parse_field(self) -> RawField:
        attributes = self._parse_attributes()
        name = self._expect(TokenType.IDENT, "field name")
        self._expect(TokenType.COLON, f"':' after field name '{name.value}'")
        field_type = self._parse_type()
        return RawField(
            name=name.value, type=field_type, attributes=attributes, location=name.location
        )

    def _parse_enum(self, attributes: list[RawAttribute], head: Token) -> RawEnum:
        name = self._expect(TokenType.IDENT, "enum name")
        opener = self._expect(TokenType.LBRACE, f"'{{' to open the body of enum '{name.value}'")

        variants: list[RawVariant] = []
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise DSLSyntaxError(f"unterminated body of enum '{name.value}'", opener.location)
            variant_attrs = self._parse_attributes()
            variant = self._expect(TokenType.IDENT, "variant name")
            payload: Optional[RawType] = None
            if self._check(TokenType.LPAREN):
                self._advance()
                payload = self._parse_type()
                self._expect(TokenType.RPAREN, "')' to close the variant payload")
            elif self._check(TokenType.LBRACE):
                raise DSLSyntaxError(
                    f"struct-like variant '{variant.value}' is not supported; "
                    "declare a struct and use it as a payload instead",
                    self._peek().location,
                )
            variants.append(
                RawVariant(
                    name=variant.value,
                    payload=payload,
                    attributes=variant_attrs,
                    location=variant.location,
                )
            )
            self._skip_comma()
        self._advance()

        return RawEnum(
            name=name.value, variants=variants, attributes=attributes, location=head.location
        )

    def _parse_type(self) -> RawType:
        start = self._peek()
        optional = False
        if self._check(TokenType.QUESTION):
            self._advance()
            optional = True

        name = self._expect(TokenType.IDENT, "type name")
        args: list[RawType] = []
        if self._check(TokenType.LANGLE):
            self._advance()
            if self._check(TokenType.RANGLE):
                raise DSLSyntaxError(
                    f"empty generic argument list for '{name.value}'", self._peek().location
                )
            args.append(self._parse_type())
            while self._check(TokenType.COMMA):
                self._advance()
                args.append(self._parse_type())
            self._expect(TokenType.RANGLE, "'>' to close the generic arguments")

        return RawType(name=name.value, optional=optional, args=args, location=start.location)

    # ------------------------------------------------------------------ #
    # Attributes
    # ------------------------------------------------------------------ #

    def _parse_attributes(self) -> list[RawAttribute]:
        attributes: list[RawAttribute] = []
        while self._check(TokenType.LBRACKET):
            attributes.append(self._parse_attribute())
        return attributes

    def _parse_attribute(self) -> RawAttribute:
        opener = self._advance()
        items: list[RawAttributeItem] = []
        while not self._check(TokenType.RBRACKET):
            tok = self._peek()
            if tok.type == TokenType.STRING:
                self._advance()
                items.append(RawAttributeItem(value=tok.value, location=tok.location))
            elif tok.type == TokenType.IDENT:
                self._advance()
                value: Optional[str] = None
                if self._check(TokenType.EQUALS):
                    self._advance()
                    value = self._expect(
                        TokenType.STRING, f"a string value for attribute '{tok.value}'"
                    ).value
                items.append(RawAttributeItem(key=tok.value, value=value, location=tok.location))
            else:
                raise DSLSyntaxError(
                    f"expected an attribute literal or name, found {tok.describe()}",
                    tok.location,
                )
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RBRACKET, "']' to close the attribute")

        if not items:
            raise DSLSyntaxError("empty attribute '[]'", opener.location)
        return RawAttribute(items=items, location=opener.location)


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _suggest(value: str, candidates: tuple[str, ...]) -> str:
    """Return a ``"; did you mean 'X'?"`` hint, or an empty string."""
    lowered = {c.lower(): c for c in candidates}
    if value.lower() in lowered:
        return f" (did you mean '{lowered[value.lower()]}'?)"
    matches = difflib.get_close_matches(value, candidates, n=1, cutoff=0.6)
    if matches:
        return f" (did you mean '{matches[0]}'?)"
    return ""


def _unknown_role_message(value: str) -> str:
    hint = _suggest(value, _HEAD_KEYWORDS)
    return (
        f"unknown structure role '{value}'{hint}; expected one of "
        + ", ".join(ROLE_NAMES)
        + ", or 'struct Name {...}' / 'enum Name {...}'"
    )
