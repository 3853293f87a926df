"""Parser for the path language that addresses fields of Kubernetes objects.

A path is a dot separated list of field names, each optionally followed by a
list selector of the form ``[key: value]`` or ``[key: *]``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union

from mutagate.token import Scanner, Token, TokenType


class NodeType(str, enum.Enum):
    """Kinds of node in a parsed path."""

    PATH = "Path"
    LIST = "List"
    OBJECT = "Object"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ObjectNode:
    """A reference to a field of an object."""

    reference: str

    def node_type(self) -> NodeType:
        return NodeType.OBJECT


@dataclass(frozen=True)
class ListNode:
    """A selector of list elements by key field, either by value or globbed."""

    key_field: str
    key_value: Optional[str] = None
    glob: bool = False

    def node_type(self) -> NodeType:
        return NodeType.LIST

    def value(self) -> Optional[str]:
        """Return the key value, or None when the selector has none."""
        return self.key_value


Node = Union[ObjectNode, ListNode]


@dataclass
class Path:
    """An entire parsed path specification."""

    nodes: list[Node] = field(default_factory=list)

    def node_type(self) -> NodeType:
        return NodeType.PATH


class ParseError(ValueError):
    """Raised when a path specification cannot be parsed."""


class _Parser:
    def __init__(self, text: str) -> None:
        self._scanner = Scanner(text)
        self._cur: Token = self._scanner.next_token()
        self._peek: Token = self._scanner.next_token()

    def _advance(self) -> None:
        self._cur = self._peek
        self._peek = self._scanner.next_token()

    def _expect(self, kind: TokenType) -> bool:
        if self._peek.type is kind:
            self._advance()
            return True
        return False

    def parse(self) -> Path:
        nodes: list[Node] = []
        while self._cur.type is TokenType.IDENT:
            nodes.append(ObjectNode(self._cur.literal))
            if self._expect(TokenType.LBRACKET):
                nodes.append(self._parse_list())
            if self._expect(TokenType.SEPARATOR):
                if self._peek.type is TokenType.EOF:
                    raise ParseError("trailing separators are forbidden")
                self._advance()
            elif not self._expect(TokenType.EOF):
                raise ParseError(f"expected '.' or eof, got: {self._peek}")
        if self._cur.type is not TokenType.EOF:
            raise ParseError(
                f"unexpected token: expected field name or eof, got: {self._cur}"
            )
        return Path(nodes)

    def _parse_list(self) -> ListNode:
        if not self._expect(TokenType.IDENT):
            raise ParseError(f"expected keyField in listSpec, got: {self._peek}")
        key_field = self._cur.literal
        if not self._expect(TokenType.COLON):
            raise ParseError(
                f"expected ':' following keyField {key_field}, got: {self._peek}"
            )
        if self._expect(TokenType.GLOB):
            node = ListNode(key_field=key_field, glob=True)
        elif self._expect(TokenType.IDENT):
            node = ListNode(key_field=key_field, key_value=self._cur.literal)
        else:
            raise ParseError(
                f"expected key value or glob in listSpec, got: {self._peek}"
            )
        if not self._expect(TokenType.RBRACKET):
            raise ParseError(f"expected ']' following listSpec, got: {self._peek}")
        return node


def parse(text: str) -> Path:
    """Parse a path specification, raising ParseError on malformed input."""
    return _Parser(text).parse()