"""
Scanner for TOML source text.

Converts raw text into a stream of tokens, pulled one at a time with
``Scanner.next_token()``.  The scanner is a flat transition loop: each
``State`` names a handler that consumes some input, may emit tokens, and
returns the next ``State`` (``None`` once the stream has ended).

Sub-scans that can be entered from more than one place (values, arrays,
comments) do not know where to go when they finish.  The caller pushes the
state it wants back onto ``Scanner.stack`` before entering; the sub-scan
pops it when done.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum, auto

from .config import DEFAULT_OPTIONS, DecoderOptions
from .errors import InternalError
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

EOF = ""

KEY_SEP = "="
TABLE_START = "["
TABLE_END = "]"
TABLE_SEP = "."
ARRAY_START = "["
ARRAY_END = "]"
ARRAY_VAL_TERM = ","
COMMENT_START = "#"
STRING_DELIM = '"'

# Shape of everything after "YYYY-" in a datetime literal; "D" is any digit.
_DATETIME_TAIL = "DD-DDTDD:DD:DDZ"


class State(Enum):
    """Scanner states.  Each maps to one ``_lex_*`` handler."""

    TOP = auto()
    TOP_VALUE_END = auto()
    TABLE_START = auto()
    TABLE_NAME_START = auto()
    TABLE_NAME = auto()
    KEY_START = auto()
    KEY = auto()
    KEY_END = auto()
    VALUE = auto()
    STRING = auto()
    STRING_ESCAPE = auto()
    TRUE = auto()
    FALSE = auto()
    NUMBER_START = auto()
    NUMBER_OR_DATE = auto()
    NUMBER = auto()
    FLOAT_START = auto()
    FLOAT = auto()
    DATETIME = auto()
    ARRAY_VALUE = auto()
    ARRAY_VALUE_END = auto()
    ARRAY_END = auto()
    COMMENT_START = auto()
    COMMENT = auto()


def is_whitespace(ch: str) -> bool:
    return ch == "\t" or ch == " "


def is_nl(ch: str) -> bool:
    return ch == "\n" or ch == "\r"


def is_digit(ch: str) -> bool:
    return ch != EOF and "0" <= ch <= "9"


def is_hex(ch: str) -> bool:
    return ch != EOF and ch in "0123456789abcdefABCDEF"


def describe(ch: str) -> str:
    """Render a character for an error message (``'\\n'``, ``EOF``)."""
    if ch == EOF:
        return "EOF"
    return repr(ch)


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class Scanner:
    """Pull-based TOML tokenizer.

    Usage::

        scanner = Scanner('name = "apple"')
        while not (tok := scanner.next_token()).is_terminal:
            ...
    """

    def __init__(self, text: str, options: DecoderOptions | None = None):
        self.text = text
        self.options = options or DEFAULT_OPTIONS
        self.start = 0
        self.pos = 0
        self.width = 0
        self.line = 1
        self.state: State | None = State.TOP
        self.stack: list[State] = []
        self._pending: deque[Token] = deque()
        self._can_retreat = False
        self._handlers = {
            State.TOP: self._lex_top,
            State.TOP_VALUE_END: self._lex_top_value_end,
            State.TABLE_START: self._lex_table_start,
            State.TABLE_NAME_START: self._lex_table_name_start,
            State.TABLE_NAME: self._lex_table_name,
            State.KEY_START: self._lex_key_start,
            State.KEY: self._lex_key,
            State.KEY_END: self._lex_key_end,
            State.VALUE: self._lex_value,
            State.STRING: self._lex_string,
            State.STRING_ESCAPE: self._lex_string_escape,
            State.TRUE: self._lex_true,
            State.FALSE: self._lex_false,
            State.NUMBER_START: self._lex_number_start,
            State.NUMBER_OR_DATE: self._lex_number_or_date,
            State.NUMBER: self._lex_number,
            State.FLOAT_START: self._lex_float_start,
            State.FLOAT: self._lex_float,
            State.DATETIME: self._lex_datetime,
            State.ARRAY_VALUE: self._lex_array_value,
            State.ARRAY_VALUE_END: self._lex_array_value_end,
            State.ARRAY_END: self._lex_array_end,
            State.COMMENT_START: self._lex_comment_start,
            State.COMMENT: self._lex_comment,
        }

    # -- Public API -----------------------------------------------------

    def next_token(self) -> Token:
        """Run the state machine until a token is available and return it.

        The final token is always EOF or ERROR; asking for more after that
        is a caller bug.
        """
        while not self._pending:
            if self.state is None:
                raise InternalError("next_token() called after end of token stream.")
            self.state = self._handlers[self.state]()
        return self._pending.popleft()

    def __iter__(self):
        while True:
            tok = self.next_token()
            yield tok
            if tok.is_terminal:
                return

    # -- Cursor primitives ----------------------------------------------

    def advance(self) -> str:
        """Consume and return the next character, or EOF."""
        self._can_retreat = True
        if self.pos >= len(self.text):
            self.width = 0
            return EOF
        ch = self.text[self.pos]
        if ch == "\n":
            self.line += 1
        self.width = 1
        self.pos += self.width
        return ch

    def retreat(self) -> None:
        """Undo the last ``advance()``.  Only once per ``advance()``."""
        if not self._can_retreat:
            raise InternalError("retreat() called twice without advance().")
        self._can_retreat = False
        self.pos -= self.width
        if self.width and self.text[self.pos] == "\n":
            self.line -= 1

    def lookahead(self) -> str:
        ch = self.advance()
        self.retreat()
        return ch

    # -- Emission -------------------------------------------------------

    def emit(self, typ: TokenType) -> None:
        self._pending.append(Token(typ, self.text[self.start:self.pos], self.line))
        self.start = self.pos

    def ignore(self) -> None:
        """Drop pending input before the cursor."""
        self.start = self.pos

    def errorf(self, message: str) -> None:
        """Emit an error token; returning this ends the stream."""
        logger.debug("Scanner error at line %d: %s", self.line, message)
        self._pending.append(Token(TokenType.ERROR, message, self.line))
        self.stack.clear()
        return None

    # -- Continuation stack ---------------------------------------------

    def push(self, state: State) -> None:
        self.stack.append(state)

    def pop(self) -> State:
        if not self.stack:
            raise InternalError("No scanner states to pop.")
        return self.stack.pop()

    # -- Top level ------------------------------------------------------

    def _lex_top(self) -> State | None:
        ch = self.advance()
        if is_whitespace(ch) or is_nl(ch):
            self.ignore()
            return State.TOP

        if ch == COMMENT_START:
            self.push(State.TOP)
            return State.COMMENT_START
        if ch == TABLE_START:
            return State.TABLE_START
        if ch == EOF:
            if self.pos > self.start:
                return self.errorf("Unexpected EOF.")
            self.emit(TokenType.EOF)
            return None

        self.retreat()
        self.push(State.TOP_VALUE_END)
        return State.KEY_START

    def _lex_top_value_end(self) -> State | None:
        """A value or table header must be followed only by whitespace and
        then a comment, a line break or EOF."""
        ch = self.advance()
        if is_whitespace(ch):
            self.ignore()
            return State.TOP_VALUE_END
        if ch == COMMENT_START:
            self.push(State.TOP)
            return State.COMMENT_START
        if is_nl(ch):
            self.ignore()
            return State.TOP
        if ch == EOF:
            return State.TOP
        return self.errorf(
            "Expected a top-level item to end with a new line, comment or EOF, "
            f"but got {describe(ch)} instead."
        )

    # -- Table headers --------------------------------------------------

    def _lex_table_start(self) -> State:
        self.emit(TokenType.TABLE_START)
        return State.TABLE_NAME_START

    def _lex_table_name_start(self) -> State | None:
        ch = self.lookahead()
        if ch == TABLE_SEP or ch == TABLE_END:
            return self.errorf(
                "Unexpected end of table name. (Table names cannot be empty.)"
            )
        if is_nl(ch) or ch == EOF:
            return self.errorf(f"Unexpected {describe(ch)} in table name.")
        return State.TABLE_NAME

    def _lex_table_name(self) -> State | None:
        ch = self.lookahead()
        if ch == TABLE_SEP:
            self.emit(TokenType.TEXT)
            self.advance()
            self.ignore()
            return State.TABLE_NAME_START
        if ch == TABLE_END:
            self.emit(TokenType.TEXT)
            self.advance()
            self.emit(TokenType.TABLE_END)
            return State.TOP_VALUE_END
        if is_nl(ch) or ch == EOF:
            return self.errorf(f"Unexpected {describe(ch)} in table name.")
        self.advance()
        return State.TABLE_NAME

    # -- Keys -----------------------------------------------------------

    def _lex_key_start(self) -> State | None:
        ch = self.lookahead()
        if ch == KEY_SEP:
            return self.errorf(f"Unexpected key separator '{KEY_SEP}'.")
        if is_whitespace(ch) or is_nl(ch):
            return self.errorf(
                f"Unexpected whitespace {describe(ch)} at start of key."
            )
        self.emit(TokenType.KEY_START)
        self.advance()
        return State.KEY

    def _lex_key(self) -> State:
        ch = self.lookahead()
        if is_whitespace(ch) or is_nl(ch) or ch == KEY_SEP or ch == EOF:
            self.emit(TokenType.TEXT)
            return State.KEY_END
        self.advance()
        return State.KEY

    def _lex_key_end(self) -> State | None:
        ch = self.advance()
        if is_whitespace(ch) or is_nl(ch):
            self.ignore()
            return State.KEY_END
        if ch == KEY_SEP:
            self.ignore()
            return State.VALUE
        return self.errorf(
            f"Expected key separator '{KEY_SEP}', but got {describe(ch)} instead."
        )

    # -- Values ---------------------------------------------------------

    def _lex_value(self) -> State | None:
        # Whitespace may precede a value but a new line may not.  Inside
        # arrays, the array states skip new lines before getting here.
        ch = self.advance()
        if is_whitespace(ch):
            self.ignore()
            return State.VALUE

        if ch == STRING_DELIM:
            self.ignore()
            return State.STRING
        if ch == ARRAY_START:
            self.emit(TokenType.ARRAY_START)
            return State.ARRAY_VALUE
        if ch == "t":
            self.retreat()
            return State.TRUE
        if ch == "f":
            self.retreat()
            return State.FALSE
        if ch == "-":
            return State.NUMBER_START
        if is_digit(ch):
            return State.NUMBER_OR_DATE
        if ch == ".":
            return self.errorf("Floats must start with a digit, not '.'.")
        return self.errorf(f"Expected value but found {describe(ch)} instead.")

    # -- Strings --------------------------------------------------------

    def _lex_string(self) -> State | None:
        """Consume a string body; the opening quote is already ignored."""
        ch = self.advance()
        if is_nl(ch):
            return self.errorf("Strings cannot contain new lines.")
        if ch == EOF:
            return self.errorf("Unexpected EOF in string.")
        if ch == "\\":
            return State.STRING_ESCAPE
        if ch == STRING_DELIM:
            self.retreat()
            self.emit(TokenType.STRING)
            self.advance()
            self.ignore()
            return self.pop()
        return State.STRING

    def _lex_string_escape(self) -> State | None:
        ch = self.advance()
        codes = self.options.escape_codes
        if ch == EOF or ch not in codes:
            allowed = ", ".join("\\" + c for c in sorted(codes))
            return self.errorf(
                f"Invalid escape character {describe(ch)}. Only the following "
                f"escape characters are allowed: {allowed}."
            )
        if ch == "u":
            return self._lex_unicode_escape(4)
        if ch == "U":
            return self._lex_unicode_escape(8)
        return State.STRING

    def _lex_unicode_escape(self, ndigits: int) -> State | None:
        escape = "\\u" if ndigits == 4 else "\\U"
        for _ in range(ndigits):
            ch = self.advance()
            if not is_hex(ch):
                return self.errorf(
                    f"Expected {ndigits} hexadecimal digits after '{escape}', "
                    f"but got {describe(ch)} instead."
                )
        digits = self.text[self.pos - ndigits:self.pos]
        code_point = int(digits, 16)
        if 0xD800 <= code_point <= 0xDFFF or code_point > 0x10FFFF:
            return self.errorf(
                f"Escaped character '{escape}{digits}' is not a valid "
                "Unicode code point."
            )
        return State.STRING

    # -- Booleans -------------------------------------------------------

    def _lex_true(self) -> State | None:
        return self._match_bool("true")

    def _lex_false(self) -> State | None:
        return self._match_bool("false")

    def _match_bool(self, literal: str) -> State | None:
        for i, want in enumerate(literal):
            ch = self.advance()
            if ch != want:
                found = literal[:i] + ch
                return self.errorf(
                    f"Expected '{literal}', but found {found!r} instead."
                )
        self.emit(TokenType.BOOL)
        return self.pop()

    # -- Numbers and datetimes ------------------------------------------

    def _lex_number_start(self) -> State | None:
        """After a leading '-': at least one digit must follow."""
        ch = self.advance()
        if is_digit(ch):
            return State.NUMBER
        if ch == ".":
            return self.errorf("Floats must start with a digit, not '.'.")
        return self.errorf(
            f"Expected a digit after '-', but got {describe(ch)} instead."
        )

    def _lex_number_or_date(self) -> State | None:
        """Unsigned digits; four of them followed by '-' starts a datetime."""
        ch = self.advance()
        if is_digit(ch):
            return State.NUMBER_OR_DATE
        if ch == "-" and self.pos - self.start == 5:
            return State.DATETIME
        self.retreat()
        return State.NUMBER

    def _lex_number(self) -> State | None:
        ch = self.advance()
        if is_digit(ch):
            return State.NUMBER
        if ch == ".":
            return State.FLOAT_START
        self.retreat()
        self.emit(TokenType.INTEGER)
        return self.pop()

    def _lex_float_start(self) -> State | None:
        ch = self.advance()
        if not is_digit(ch):
            return self.errorf(
                "Floats must have at least one digit after the '.', "
                f"but got {describe(ch)} instead."
            )
        return State.FLOAT

    def _lex_float(self) -> State | None:
        ch = self.advance()
        if is_digit(ch):
            return State.FLOAT
        self.retreat()
        self.emit(TokenType.FLOAT)
        return self.pop()

    def _lex_datetime(self) -> State | None:
        """Match the rest of ``YYYY-MM-DDTHH:MM:SSZ``; "YYYY-" is consumed."""
        for want in _DATETIME_TAIL:
            ch = self.advance()
            ok = is_digit(ch) if want == "D" else ch == want
            if not ok:
                lexeme = self.text[self.start:self.pos - self.width]
                return self.errorf(
                    f"Invalid datetime '{lexeme}': expected "
                    f"{'a digit' if want == 'D' else repr(want)} "
                    f"but got {describe(ch)}. Datetimes must look like "
                    "YYYY-MM-DDTHH:MM:SSZ."
                )
        self.emit(TokenType.DATETIME)
        return self.pop()

    # -- Arrays ---------------------------------------------------------

    def _lex_array_value(self) -> State | None:
        """Before an element: skip blanks and comments, or close the array."""
        ch = self.advance()
        if is_whitespace(ch) or is_nl(ch):
            self.ignore()
            return State.ARRAY_VALUE
        if ch == COMMENT_START:
            self.push(State.ARRAY_VALUE)
            return State.COMMENT_START
        if ch == ARRAY_END:
            return State.ARRAY_END

        self.retreat()
        self.push(State.ARRAY_VALUE_END)
        return State.VALUE

    def _lex_array_value_end(self) -> State | None:
        """After an element: a comma or the closing bracket."""
        ch = self.advance()
        if is_whitespace(ch) or is_nl(ch):
            self.ignore()
            return State.ARRAY_VALUE_END
        if ch == COMMENT_START:
            self.push(State.ARRAY_VALUE_END)
            return State.COMMENT_START
        if ch == ARRAY_VAL_TERM:
            self.ignore()
            return State.ARRAY_VALUE
        if ch == ARRAY_END:
            return State.ARRAY_END
        return self.errorf(
            f"Expected a comma or array terminator '{ARRAY_END}', "
            f"but got {describe(ch)} instead."
        )

    def _lex_array_end(self) -> State:
        self.emit(TokenType.ARRAY_END)
        return self.pop()

    # -- Comments -------------------------------------------------------

    def _lex_comment_start(self) -> State:
        self.emit(TokenType.COMMENT_START)
        return State.COMMENT

    def _lex_comment(self) -> State:
        """Consume to end of line; the line break itself is left alone."""
        ch = self.advance()
        if is_nl(ch) or ch == EOF:
            self.retreat()
            self.emit(TokenType.TEXT)
            return self.pop()
        return State.COMMENT


def tokenize(text: str, options: DecoderOptions | None = None) -> list[Token]:
    """Scan *text* to completion.  The last token is EOF or ERROR."""
    return list(Scanner(text, options))
