"""Tokenizer for the restify DSL.

Turns source text into a flat list of :class:`Token` objects terminated by a
single ``EOF`` token. Whitespace and ``//`` comments are dropped. Every token
records its line, column and offset so that later stages can report precise
locations.

The lexer is strict: an unknown character or an unterminated string literal
raises :class:`~restify.exceptions.DSLSyntaxError` immediately. There is no
recovery at this level since the token stream is unusable past the error.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from restify.exceptions import DSLSyntaxError
from restify.models import SourceLocation


class TokenType(str, enum.Enum):
    """Kinds of lexical tokens."""

    IDENT = "identifier"
    STRING = "string"
    LBRACKET = "'['"
    RBRACKET = "']'"
    LBRACE = "'{'"
    RBRACE = "'}'"
    LPAREN = "'('"
    RPAREN = "')'"
    LANGLE = "'<'"
    RANGLE = "'>'"
    COLON = "':'"
    COMMA = "','"
    QUESTION = "'?'"
    EQUALS = "'='"
    ARROW = "'=>'"
    EOF = "end of input"


_PUNCTUATION: dict[str, TokenType] = {
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "?": TokenType.QUESTION,
}

_ESCAPES: dict[str, str] = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}

OPENERS = frozenset({TokenType.LBRACKET, TokenType.LBRACE, TokenType.LPAREN})
CLOSERS = frozenset({TokenType.RBRACKET, TokenType.RBRACE, TokenType.RPAREN})


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    For ``STRING`` tokens ``value`` holds the unescaped contents, without the
    surrounding quotes.
    """

    type: TokenType
    value: str
    location: SourceLocation

    def describe(self) -> str:
        """Human-readable form for error messages."""
        if self.type == TokenType.IDENT:
            return f"identifier '{self.value}'"
        if self.type == TokenType.STRING:
            return f'string "{self.value}"'
        return self.type.value


def tokenize(text: str, unit: str = "<string>") -> list[Token]:
    """Split *text* into tokens.

    Args:
        text: The DSL source.
        unit: Compilation-unit identifier recorded in every location.

    Returns:
        The token list, always ending with an ``EOF`` token.

    Raises:
        DSLSyntaxError: On an unexpected character or an unterminated string.

    Example::

        >>> [t.type.name for t in tokenize('GET "/" => {}')]
        ['IDENT', 'STRING', 'ARROW', 'LBRACE', 'RBRACE', 'EOF']
    """
    tokens: list[Token] = []
    i = 0
    line = 1
    line_start = 0
    n = len(text)

    def here(pos: int) -> SourceLocation:
        return SourceLocation(unit=unit, line=line, column=pos - line_start + 1, offset=pos)

    while i < n:
        ch = text[i]

        if ch == "\n":
            i += 1
            line += 1
            line_start = i
            continue
        if ch in " \t\r":
            i += 1
            continue

        # Line comment
        if text.startswith("//", i):
            while i < n and text[i] != "\n":
                i += 1
            continue

        if ch.isascii() and (ch.isalpha() or ch == "_"):
            start = i
            while i < n and text[i].isascii() and (text[i].isalnum() or text[i] == "_"):
                i += 1
            tokens.append(Token(TokenType.IDENT, text[start:i], here(start)))
            continue

        if ch == '"':
            start = i
            loc = here(start)
            i += 1
            chars: list[str] = []
            while True:
                if i >= n or text[i] == "\n":
                    raise DSLSyntaxError("unterminated string literal", loc)
                c = text[i]
                if c == '"':
                    i += 1
                    break
                if c == "\\":
                    if i + 1 >= n or text[i + 1] not in _ESCAPES:
                        raise DSLSyntaxError("invalid escape sequence in string literal", here(i))
                    chars.append(_ESCAPES[text[i + 1]])
                    i += 2
                    continue
                chars.append(c)
                i += 1
            tokens.append(Token(TokenType.STRING, "".join(chars), loc))
            continue

        if ch == "=":
            if text.startswith("=>", i):
                tokens.append(Token(TokenType.ARROW, "=>", here(i)))
                i += 2
            else:
                tokens.append(Token(TokenType.EQUALS, "=", here(i)))
                i += 1
            continue

        tok_type = _PUNCTUATION.get(ch)
        if tok_type is None:
            raise DSLSyntaxError(f"unexpected character {ch!r}", here(i))
        tokens.append(Token(tok_type, ch, here(i)))
        i += 1

    tokens.append(Token(TokenType.EOF, "", here(n)))
    return tokens
