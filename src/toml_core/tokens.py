"""Token types produced by the scanner."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of token in a TOML token stream."""

    EOF = "EOF"
    ERROR = "Error"
    TEXT = "Text"

    # Value literals
    STRING = "String"
    BOOL = "Bool"
    INTEGER = "Integer"
    FLOAT = "Float"
    DATETIME = "DateTime"

    # Structure
    ARRAY_START = "ArrayStart"
    ARRAY_END = "ArrayEnd"
    TABLE_START = "TableStart"
    TABLE_END = "TableEnd"
    KEY_START = "KeyStart"
    COMMENT_START = "CommentStart"


TERMINAL_TYPES = frozenset({TokenType.EOF, TokenType.ERROR})


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexeme with its source line."""

    type: TokenType
    value: str
    line: int

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_TYPES

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, line={self.line})"
