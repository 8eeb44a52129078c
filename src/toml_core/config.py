"""Decoder options."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DecoderOptions:
    """Knobs accepted by ``parse`` and ``Scanner``.

    ``extended_escapes`` selects which backslash codes a string may use:

    - True (default): ``\\0 \\b \\t \\n \\f \\r \\" \\\\ \\uXXXX \\UXXXXXXXX``
    - False: ``\\0 \\t \\n \\r \\" \\\\`` only
    """

    extended_escapes: bool = True

    @property
    def escape_codes(self) -> frozenset[str]:
        if self.extended_escapes:
            return _EXTENDED_ESCAPES
        return _MINIMAL_ESCAPES


_MINIMAL_ESCAPES = frozenset("0tnr\"\\")
_EXTENDED_ESCAPES = _MINIMAL_ESCAPES | frozenset("bfuU")

DEFAULT_OPTIONS = DecoderOptions()
