"""Lexical scanner for the object path language."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, Optional


class TokenType(str, enum.Enum):
    """Kinds of token produced by the scanner."""

    ERROR = "ERROR"
    EOF = "EOF"
    IDENT = "IDENT"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    SEPARATOR = "SEPARATOR"
    GLOB = "GLOB"
    COLON = "COLON"

    def __str__(self) -> str:
        return self.value


_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def _quote(text: str) -> str:
    parts = []
    for ch in text:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        elif ord(ch) <= 0xFF:
            parts.append(f"\\x{ord(ch):02x}")
        elif ord(ch) <= 0xFFFF:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(f"\\U{ord(ch):08x}")
    return '"' + "".join(parts) + '"'


@dataclass(frozen=True)
class Token:
    """A single lexical token with its literal text."""

    type: TokenType
    literal: str = ""

    def __str__(self) -> str:
        return f"{self.type.value}: {_quote(self.literal)}"


class ScanError(Exception):
    """A scanning failure at a position in the input."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"error at position {position}: {message}")
        self.message = message
        self.position = position


_PUNCTUATION = {
    ".": TokenType.SEPARATOR,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "*": TokenType.GLOB,
    ":": TokenType.COLON,
}

_WHITESPACE = frozenset(" \t\r\n")
_QUOTES = frozenset("\"'")


def _is_ident_char(ch: Optional[str]) -> bool:
    if ch is None:
        return False
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9") or ch in "_-"


class Scanner:
    """Splits a path expression into tokens, one call at a time."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._read_pos = 0
        self._ch: Optional[str] = None
        self.error: Optional[ScanError] = None
        self._read()

    def _read(self) -> None:
        if self._read_pos >= len(self._text):
            self._ch = None
            self._pos = len(self._text)
            return
        self._pos = self._read_pos
        self._read_pos += 1
        self._ch = self._text[self._pos]

    def _fail(self, message: str) -> None:
        self.error = ScanError(message, self._pos)

    def _skip_whitespace(self) -> None:
        while self._ch is not None and self._ch in _WHITESPACE:
            self._read()

    def _read_string(self) -> tuple[str, bool]:
        quote = self._ch
        out = []
        while True:
            self._read()
            if self._ch == quote:
                return "".join(out), True
            if self._ch == "\\":
                self._read()
                if self._ch is None:
                    continue
                out.append(self._ch)
            elif self._ch is None:
                self._fail("unterminated string")
                return "".join(out), False
            else:
                out.append(self._ch)

    def _read_ident(self) -> str:
        start = self._pos
        while _is_ident_char(self._ch):
            self._read()
        return self._text[start:self._pos]

    def next_token(self) -> Token:
        """Return the next token; EOF repeats once the input is exhausted."""
        self._skip_whitespace()
        ch = self._ch
        if ch is None:
            token = Token(TokenType.EOF, "")
        elif ch in _PUNCTUATION:
            token = Token(_PUNCTUATION[ch], ch)
        elif ch in _QUOTES:
            literal, ok = self._read_string()
            token = Token(TokenType.IDENT if ok else TokenType.ERROR, literal)
        elif _is_ident_char(ch):
            literal = self._read_ident()
            # The separator we may be positioned on must not be consumed here.
            return Token(TokenType.ERROR if self.error else TokenType.IDENT, literal)
        else:
            self._fail("invalid character")
            token = Token(TokenType.ERROR, ch)
        self._read()
        return token

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type in (TokenType.EOF, TokenType.ERROR):
                return


def tokenize(text: str) -> list[Token]:
    """Scan the text up to and including the first EOF or ERROR token."""
    return list(Scanner(text))