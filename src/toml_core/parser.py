"""Parser: single pass over the scanner's tokens → Document."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .config import DecoderOptions
from .document import Document
from .errors import (
    InternalError,
    ParseError,
    SemanticError,
    make_lex_error,
    make_semantic_error,
)
from .model import Key, Table, Value
from .scanner import Scanner
from .tokens import Token, TokenType
from .typecheck import TABLE, TomlType, type_of_array, type_of_token

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")
_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_SIMPLE_ESCAPES = {
    "0": "\x00",
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "f": "\f",
    "r": "\r",
    '"': '"',
    "\\": "\\",
}


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def parse(text: str, options: DecoderOptions | None = None) -> Document:
    """Decode *text* into a Document, or raise ParseError."""
    return Parser(text, options).run()


@dataclass
class ParseOutcome:
    """Either a document or the error that stopped the parse, never both."""

    document: Document | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Document:
        if self.error is not None:
            raise self.error
        return self.document


def try_parse(text: str, options: DecoderOptions | None = None) -> ParseOutcome:
    """Like ``parse`` but returns the error instead of raising it.

    InternalError still propagates: it is a decoder defect, not a result.
    """
    try:
        return ParseOutcome(document=parse(text, options))
    except ParseError as exc:
        return ParseOutcome(error=exc)


# ---------------------------------------------------------------------------
# Parser state
# ---------------------------------------------------------------------------

@dataclass
class ParserState:
    """Everything mutated during one parse call."""

    mapping: Table = field(default_factory=dict)
    types: dict[Key, TomlType] = field(default_factory=dict)
    # Full key of the table currently in scope.
    context: Key = field(default_factory=Key)
    # Base key name of the key/value pair being parsed, "" between pairs.
    current_key: str = ""
    approx_line: int = 1
    implicits: set[Key] = field(default_factory=set)
    ordered: list[Key] = field(default_factory=list)


class Parser:
    """Pulls tokens from a Scanner and builds the document tree."""

    def __init__(self, text: str, options: DecoderOptions | None = None):
        self.scanner = Scanner(text, options)
        self.state = ParserState()

    def run(self) -> Document:
        logger.debug("Parsing %d characters", len(self.scanner.text))
        try:
            tok = self._next()
            while tok.type is not TokenType.EOF:
                self._top_level(tok)
                tok = self._next()
        except ParseError as exc:
            logger.debug("Parse failed: %s", exc)
            raise

        st = self.state
        logger.debug("Parsed %d keys", len(st.ordered))
        return Document(mapping=st.mapping, keys=st.ordered, types=st.types)

    # -- Token plumbing -------------------------------------------------

    def _next(self) -> Token:
        tok = self.scanner.next_token()
        if tok.type is TokenType.ERROR:
            raise make_lex_error(tok.value, line=tok.line, key=self._current())
        return tok

    def _expect(self, typ: TokenType) -> Token:
        tok = self._next()
        self._assert_equal(typ, tok.type)
        return tok

    def _assert_equal(self, expected: TokenType, got: TokenType) -> None:
        if expected is not got:
            raise InternalError(f"Expected '{expected.value}' but got '{got.value}'.")

    def _error(self, message: str) -> SemanticError:
        return make_semantic_error(
            message, line=self.state.approx_line, key=self._current()
        )

    def _current(self) -> str:
        """Full dotted name of whatever is being parsed."""
        st = self.state
        if not st.current_key:
            return str(st.context)
        return str(st.context.add(st.current_key))

    # -- Top level ------------------------------------------------------

    def _top_level(self, tok: Token) -> None:
        st = self.state
        if tok.type is TokenType.COMMENT_START:
            st.approx_line = tok.line
            self._expect(TokenType.TEXT)

        elif tok.type is TokenType.TABLE_START:
            seg = self._expect(TokenType.TEXT)
            st.approx_line = seg.line

            segments: list[str] = []
            while seg.type is TokenType.TEXT:
                segments.append(seg.value)
                seg = self._next()
            self._assert_equal(TokenType.TABLE_END, seg.type)

            key = Key(segments)
            self._establish_context(key)
            self._set_type("", TABLE)
            st.ordered.append(key)

        elif tok.type is TokenType.KEY_START:
            name = self._expect(TokenType.TEXT)
            st.current_key = name.value
            st.approx_line = name.line

            value, typ = self._value(self._next())
            self._set_value(st.current_key, value)
            self._set_type(st.current_key, typ)
            st.ordered.append(st.context.add(st.current_key))

            st.current_key = ""

        else:
            raise InternalError(f"Unexpected token at top level: {tok!r}")

    # -- Tables ---------------------------------------------------------

    def _establish_context(self, key: Key) -> None:
        """Make *key* the table in scope.

        Missing ancestors are created as implicit tables.  The last segment
        is created too, unless it already exists as an implicit table, in
        which case this header claims it.
        """
        st = self.state
        table = st.mapping
        key_context = Key()

        for seg in key[:-1]:
            key_context = key_context.add(seg)
            if seg not in table:
                logger.debug("Creating implicit table '%s'", key_context)
                st.implicits.add(key_context)
                table[seg] = {}
            table = table[seg]
            if not isinstance(table, dict):
                raise self._error(
                    f"Key '{key_context}' was already created as a non-table value."
                )

        st.context = key_context
        self._set_value(key[-1], {})
        st.context = key

    def _set_value(self, name: str, value: Value) -> None:
        """Set *name* in the current context, rejecting duplicates."""
        st = self.state
        table: Any = st.mapping
        key_context = Key()
        for seg in st.context:
            key_context = key_context.add(seg)
            if seg not in table:
                raise InternalError(
                    f"Context for key '{key_context}' has not been established."
                )
            table = table[seg]
            if not isinstance(table, dict):
                raise InternalError(
                    f"Expected '{key_context}' to be a table, "
                    f"but it is {type(table).__name__}."
                )
        key_context = key_context.add(name)

        if name in table:
            # An implicitly created table may be claimed exactly once.
            if key_context in st.implicits:
                logger.debug("Claiming implicit table '%s'", key_context)
                st.implicits.discard(key_context)
                return
            raise self._error(f"Key '{key_context}' has already been defined.")
        table[name] = value

    def _set_type(self, name: str, typ: TomlType) -> None:
        """Record the type of *name* (or of the context table itself when
        *name* is empty).  Call right after ``_set_value``."""
        st = self.state
        key = st.context.add(name) if name else st.context
        if key in st.types:
            raise InternalError(
                f"Type for key '{key}' has already been set, but it was not "
                "detected as a duplicate."
            )
        st.types[key] = typ

    # -- Values ---------------------------------------------------------

    def _value(self, tok: Token) -> tuple[Value, TomlType]:
        """Translate a value token (and, for arrays, what follows it)."""
        typ = tok.type
        if typ is TokenType.STRING:
            return self._replace_escapes(tok.value), type_of_token(tok)

        if typ is TokenType.BOOL:
            if tok.value == "true":
                return True, type_of_token(tok)
            if tok.value == "false":
                return False, type_of_token(tok)
            raise InternalError(f"Expected boolean value, but got '{tok.value}'.")

        if typ is TokenType.INTEGER:
            try:
                num = int(tok.value, 10)
            except ValueError:
                raise InternalError(
                    f"Expected integer value, but got '{tok.value}'."
                ) from None
            if not INT64_MIN <= num <= INT64_MAX:
                raise self._error(
                    f"Integer '{tok.value}' is out of the range of 64-bit "
                    "signed integers."
                )
            return num, type_of_token(tok)

        if typ is TokenType.FLOAT:
            try:
                num = float(tok.value)
            except ValueError:
                raise InternalError(
                    f"Expected float value, but got '{tok.value}'."
                ) from None
            if math.isinf(num):
                raise self._error(
                    f"Float '{tok.value}' is out of the range of 64-bit "
                    "IEEE-754 floating-point numbers."
                )
            return num, type_of_token(tok)

        if typ is TokenType.DATETIME:
            if not _DATETIME_RE.match(tok.value):
                raise InternalError(
                    f"Expected Zulu formatted datetime, but got '{tok.value}'."
                )
            try:
                dt = datetime.strptime(tok.value, _DATETIME_FORMAT)
            except ValueError:
                raise self._error(
                    f"Datetime '{tok.value}' is not a valid calendar date and time."
                ) from None
            return dt.replace(tzinfo=timezone.utc), type_of_token(tok)

        if typ is TokenType.ARRAY_START:
            return self._array()

        raise InternalError(f"Unexpected value type: {tok!r}")

    def _array(self) -> tuple[Value, TomlType]:
        array: list[Value] = []
        types: list[TomlType] = []

        tok = self._next()
        while tok.type is not TokenType.ARRAY_END:
            if tok.type is TokenType.COMMENT_START:
                self._expect(TokenType.TEXT)
            else:
                value, typ = self._value(tok)
                array.append(value)
                types.append(typ)
            tok = self._next()

        try:
            return array, type_of_array(types)
        except SemanticError as exc:
            raise self._error(exc.message) from None

    def _replace_escapes(self, raw: str) -> str:
        """Expand backslash escapes in a string body the scanner accepted."""
        out: list[str] = []
        i = 0
        n = len(raw)
        while i < n:
            ch = raw[i]
            if ch != "\\":
                out.append(ch)
                i += 1
                continue

            i += 1
            if i >= n:
                raise InternalError("Escape sequence at end of string.")
            code = raw[i]
            if code in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[code])
                i += 1
            elif code == "u":
                out.append(self._unicode_escape(raw[i + 1:i + 5]))
                i += 5
            elif code == "U":
                out.append(self._unicode_escape(raw[i + 1:i + 9]))
                i += 9
            else:
                raise InternalError(
                    f"Expected valid escape code after \\, but got {code!r}."
                )
        return "".join(out)

    def _unicode_escape(self, digits: str) -> str:
        try:
            code_point = int(digits, 16)
        except ValueError:
            raise InternalError(
                f"Could not parse '{digits}' as a hexadecimal number, "
                "but the scanner accepted it."
            ) from None
        if 0xD800 <= code_point <= 0xDFFF or code_point > 0x10FFFF:
            raise InternalError(
                f"Escaped character '{digits}' is not a valid Unicode code "
                "point, but the scanner accepted it."
            )
        return chr(code_point)
