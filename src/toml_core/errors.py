"""
Error types for TOML decoding.

Every user-facing failure is a ``ParseError``: either a ``LexError`` (the
scanner could not form a token) or a ``SemanticError`` (the tokens were fine
but the document is not).  ``InternalError`` is reserved for the scanner and
parser disagreeing about their contract, and is deliberately not a
``ParseError``.
"""

from __future__ import annotations

from dataclasses import dataclass


class TomlCoreError(Exception):
    """Base exception for all TOML Core errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ParseError(TomlCoreError):
    """
    Raised when source text is not a well-formed document.

    The first error aborts the whole decode; no partial document is ever
    returned alongside it.
    """

    @property
    def line(self) -> int | None:
        return self.context.line if self.context else None

    @property
    def key(self) -> str | None:
        return self.context.key if self.context else None


class LexError(ParseError):
    """
    Raised when the scanner rejects the input.

    Examples:
    - Unterminated string or a line break inside one
    - Invalid escape code or unicode escape
    - Malformed number, boolean or datetime
    - Missing key separator
    - Value not followed by a comment, line break or EOF
    """

    pass


class SemanticError(ParseError):
    """
    Raised when well-formed tokens describe an invalid document.

    Examples:
    - Duplicate key in a table
    - Re-opening a table that was already defined explicitly
    - Heterogeneous array
    - Integer or float literal out of range
    """

    pass


class InternalError(TomlCoreError):
    """
    Raised when the scanner and parser have diverged from each other.

    This is never the result of bad input; it signals a defect in the
    decoder itself.
    """

    pass


@dataclass
class ErrorContext:
    """
    Where an error happened.

    Attributes:
        line: Approximate source line (1-indexed)
        key: Dotted key path being processed, if any
    """

    line: int
    key: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "line 3, key 'fruit.name'"
        """
        location = f"line {self.line}"
        if self.key:
            location += f", key '{self.key}'"
        return location


def make_lex_error(message: str, line: int, key: str | None = None) -> LexError:
    """
    Helper to create a LexError with context.

    Args:
        message: Error description (as reported by the scanner)
        line: Line number the scanner was on
        key: Optional dotted key path under construction

    Returns:
        LexError with context attached
    """
    return LexError(message, ErrorContext(line=line, key=key or None))


def make_semantic_error(
    message: str,
    line: int | None = None,
    key: str | None = None,
) -> SemanticError:
    """
    Helper to create a SemanticError with optional context.

    Args:
        message: Error description
        line: Optional line number
        key: Optional dotted key path

    Returns:
        SemanticError with context if a line is known
    """
    if line is not None:
        return SemanticError(message, ErrorContext(line=line, key=key or None))
    return SemanticError(message)
