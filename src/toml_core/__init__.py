"""TOML Core — strict, order-preserving TOML decoder."""

from .config import DecoderOptions
from .document import Document
from .errors import (
    ErrorContext,
    InternalError,
    LexError,
    ParseError,
    SemanticError,
    TomlCoreError,
)
from .model import Key, Value
from .parser import ParseOutcome, Parser, parse, try_parse
from .scanner import Scanner, tokenize
from .tokens import Token, TokenType
from .typecheck import (
    ArrayType,
    BaseKind,
    BaseType,
    PolymorphicType,
    TomlType,
    TupleType,
    type_equal,
    type_of_array,
    type_of_tuple,
)

__all__ = [
    "parse",
    "try_parse",
    "tokenize",
    "ParseOutcome",
    "Parser",
    "Scanner",
    "Document",
    "DecoderOptions",
    "Key",
    "Value",
    "Token",
    "TokenType",
    "TomlType",
    "BaseKind",
    "BaseType",
    "ArrayType",
    "TupleType",
    "PolymorphicType",
    "type_equal",
    "type_of_array",
    "type_of_tuple",
    "TomlCoreError",
    "ParseError",
    "LexError",
    "SemanticError",
    "InternalError",
    "ErrorContext",
]
