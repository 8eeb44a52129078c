"""Tests for the Scanner."""

import pytest

from toml_core import DecoderOptions, InternalError
from toml_core.scanner import EOF, Scanner, State, describe, tokenize
from toml_core.tokens import Token, TokenType as T


def kinds(text, options=None):
    return [(tok.type, tok.value) for tok in tokenize(text, options)]


def error_of(text, options=None):
    toks = tokenize(text, options)
    assert toks[-1].type is T.ERROR
    return toks[-1].value


# ---------------------------------------------------------------------------
# Cursor primitives
# ---------------------------------------------------------------------------

class TestCursor:
    def test_advance_and_retreat(self):
        s = Scanner("ab")
        assert s.advance() == "a"
        s.retreat()
        assert s.advance() == "a"
        assert s.advance() == "b"
        assert s.advance() == EOF

    def test_retreat_at_eof_is_noop(self):
        s = Scanner("a")
        s.advance()
        assert s.advance() == EOF
        s.retreat()
        assert s.pos == 1

    def test_retreat_twice_is_a_bug(self):
        s = Scanner("ab")
        s.advance()
        s.retreat()
        with pytest.raises(InternalError):
            s.retreat()

    def test_line_counter_follows_newlines(self):
        s = Scanner("\nx")
        s.advance()
        assert s.line == 2
        s.retreat()
        assert s.line == 1

    def test_lookahead_does_not_consume(self):
        s = Scanner("xy")
        assert s.lookahead() == "x"
        assert s.pos == 0

    def test_pop_empty_stack_is_a_bug(self):
        with pytest.raises(InternalError):
            Scanner("").pop()


def test_describe():
    assert describe("a") == "'a'"
    assert describe("\n") == "'\\n'"
    assert describe(EOF) == "EOF"


# ---------------------------------------------------------------------------
# Token stream
# ---------------------------------------------------------------------------

def test_empty_input():
    assert kinds("") == [(T.EOF, "")]


def test_blank_lines_only():
    assert kinds("  \n\t\r\n") == [(T.EOF, "")]


def test_key_value_string():
    assert kinds('name = "apple"') == [
        (T.KEY_START, ""),
        (T.TEXT, "name"),
        (T.STRING, "apple"),
        (T.EOF, ""),
    ]


def test_key_without_spaces():
    assert kinds("a=1") == [
        (T.KEY_START, ""),
        (T.TEXT, "a"),
        (T.INTEGER, "1"),
        (T.EOF, ""),
    ]


def test_table_header_segments():
    assert kinds("[fruit.physical]\n") == [
        (T.TABLE_START, "["),
        (T.TEXT, "fruit"),
        (T.TEXT, "physical"),
        (T.TABLE_END, "]"),
        (T.EOF, ""),
    ]


def test_comment():
    assert kinds("# hello\n") == [
        (T.COMMENT_START, "#"),
        (T.TEXT, " hello"),
        (T.EOF, ""),
    ]


def test_comment_after_value():
    assert kinds("a = true # yes") == [
        (T.KEY_START, ""),
        (T.TEXT, "a"),
        (T.BOOL, "true"),
        (T.COMMENT_START, "#"),
        (T.TEXT, " yes"),
        (T.EOF, ""),
    ]


def test_booleans():
    assert kinds("a = false")[2] == (T.BOOL, "false")
    assert kinds("a = true")[2] == (T.BOOL, "true")


def test_numbers():
    assert kinds("a = -17")[2] == (T.INTEGER, "-17")
    assert kinds("a = 3.14")[2] == (T.FLOAT, "3.14")
    assert kinds("a = -0.5")[2] == (T.FLOAT, "-0.5")


def test_datetime():
    assert kinds("a = 1979-05-27T07:32:00Z")[2] == (
        T.DATETIME,
        "1979-05-27T07:32:00Z",
    )


def test_array_tokens():
    assert kinds("a = [1, 2,]") == [
        (T.KEY_START, ""),
        (T.TEXT, "a"),
        (T.ARRAY_START, "["),
        (T.INTEGER, "1"),
        (T.INTEGER, "2"),
        (T.ARRAY_END, "]"),
        (T.EOF, ""),
    ]


def test_nested_multiline_array_with_comments():
    text = 'a = [ # open\n  [1],\n  ["x"] # last\n]\n'
    assert [t for t, _ in kinds(text)] == [
        T.KEY_START,
        T.TEXT,
        T.ARRAY_START,
        T.COMMENT_START,
        T.TEXT,
        T.ARRAY_START,
        T.INTEGER,
        T.ARRAY_END,
        T.ARRAY_START,
        T.STRING,
        T.ARRAY_END,
        T.COMMENT_START,
        T.TEXT,
        T.ARRAY_END,
        T.EOF,
    ]


def test_string_keeps_escapes_raw():
    assert kinds(r'a = "x\ty\u00e9"')[2] == (T.STRING, r"x\ty\u00e9")


def test_crlf_line_endings():
    assert [t for t, _ in kinds("a = 1\r\nb = 2\r\n")] == [
        T.KEY_START,
        T.TEXT,
        T.INTEGER,
        T.KEY_START,
        T.TEXT,
        T.INTEGER,
        T.EOF,
    ]


def test_token_lines():
    toks = tokenize("a = 1\n\n[t]\nb = 2\n")
    lines = {(tok.type, tok.value): tok.line for tok in toks}
    assert lines[(T.TEXT, "a")] == 1
    assert lines[(T.TEXT, "t")] == 3
    assert lines[(T.TEXT, "b")] == 4


def test_continuation_stack_drained_at_eof():
    s = Scanner("a = [[1], [2]]\n")
    toks = list(s)
    assert toks[-1].type is T.EOF
    assert s.stack == []
    assert s.state is None


def test_stack_holds_return_state_during_value():
    s = Scanner("a = 1")
    assert s.next_token().type is T.KEY_START
    assert s.stack == [State.TOP_VALUE_END]


def test_next_token_after_end_is_a_bug():
    s = Scanner("")
    assert s.next_token() == Token(T.EOF, "", 1)
    with pytest.raises(InternalError):
        s.next_token()


def test_iteration_stops_after_error():
    toks = tokenize('a = "\\q"\nb = 1')
    assert toks[-1].type is T.ERROR
    assert sum(1 for t in toks if t.is_terminal) == 1


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestScannerErrors:
    def test_invalid_escape(self):
        assert error_of(r'a = "\q"').startswith("Invalid escape character 'q'.")

    def test_minimal_escapes_reject_extended_codes(self):
        opts = DecoderOptions(extended_escapes=False)
        assert "Invalid escape character 'b'" in error_of(r'a = "\b"', opts)
        assert "Invalid escape character 'u'" in error_of(r'a = "\u0041"', opts)

    def test_minimal_escapes_accept_minimal_codes(self):
        opts = DecoderOptions(extended_escapes=False)
        assert kinds(r'a = "\0\t\n\r\"\\"', opts)[2][0] is T.STRING

    def test_short_unicode_escape(self):
        assert "4 hexadecimal digits after '\\u'" in error_of(r'a = "\u12"')

    def test_short_long_unicode_escape(self):
        assert "8 hexadecimal digits after '\\U'" in error_of(r'a = "\U0001F60"')

    def test_surrogate_unicode_escape(self):
        assert error_of(r'a = "\uDFFF"') == (
            "Escaped character '\\uDFFF' is not a valid Unicode code point."
        )

    def test_unicode_escape_above_max_code_point(self):
        assert error_of(r'a = "\U00110000"') == (
            "Escaped character '\\U00110000' is not a valid Unicode code point."
        )

    def test_unicode_escape_just_below_surrogates(self):
        assert kinds(r'a = "\uD7FF"')[2] == (T.STRING, r"\uD7FF")

    def test_newline_in_string(self):
        assert error_of('a = "abc\n"') == "Strings cannot contain new lines."

    def test_unterminated_string(self):
        assert error_of('a = "abc') == "Unexpected EOF in string."

    def test_float_without_leading_digit(self):
        assert "Floats must start with a digit" in error_of("a = .5")
        assert "Floats must start with a digit" in error_of("a = -.5")

    def test_float_without_fraction(self):
        assert "at least one digit after the '.'" in error_of("a = 1.")

    def test_minus_without_digit(self):
        assert "Expected a digit after '-'" in error_of("a = -x")

    def test_bad_boolean_names_prefix(self):
        assert error_of("a = tru") == "Expected 'true', but found 'tru' instead."
        assert error_of("a = fx") == "Expected 'false', but found 'fx' instead."

    def test_value_must_be_terminated(self):
        msg = error_of("a = 1 x")
        assert msg.startswith("Expected a top-level item to end with a new line")
        assert "'x'" in msg

    def test_trailing_junk_after_boolean(self):
        assert "but got 'x'" in error_of("a = truex")

    def test_malformed_number(self):
        assert "but got '.'" in error_of("a = 1.2.3")

    def test_missing_key_separator(self):
        assert error_of("a 1") == "Expected key separator '=', but got '1' instead."
        assert "but got EOF" in error_of("a")

    def test_key_starting_with_separator(self):
        assert error_of("= 1") == "Unexpected key separator '='."

    def test_newline_before_value(self):
        assert error_of("a =\n1") == "Expected value but found '\\n' instead."

    def test_unexpected_value_character(self):
        assert error_of("a = @") == "Expected value but found '@' instead."

    def test_empty_table_segment(self):
        assert "Table names cannot be empty" in error_of("[a..b]")
        assert "Table names cannot be empty" in error_of("[]")

    def test_unterminated_table_header(self):
        assert error_of("[a") == "Unexpected EOF in table name."
        assert error_of("[a\n]") == "Unexpected '\\n' in table name."

    def test_junk_after_table_header(self):
        assert "but got 'b'" in error_of("[a] b = 1")

    def test_array_missing_comma(self):
        assert error_of("a = [1 2]") == (
            "Expected a comma or array terminator ']', but got '2' instead."
        )

    def test_bad_datetime_shape(self):
        assert error_of("a = 2024-01-02").startswith("Invalid datetime '2024-01-02'")
        assert "Invalid datetime" in error_of("a = 2024-1-02T00:00:00Z")

    def test_error_line(self):
        toks = tokenize("a = 1\nb = 2\nc = @")
        assert toks[-1].line == 3
