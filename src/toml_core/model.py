"""Data model for decoded TOML documents: key paths and values."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Union


# ---------------------------------------------------------------------------
# Key
# ---------------------------------------------------------------------------

class Key(tuple):
    """An ordered path of key segments, e.g. ``Key(("fruit", "color"))``.

    Two keys are equal iff their segments are equal.  ``str()`` joins the
    segments with ``.``.
    """

    __slots__ = ()

    def __new__(cls, segments=()) -> Key:
        return super().__new__(cls, segments)

    def add(self, segment: str) -> Key:
        """Return a new key one segment deeper."""
        return Key((*self, segment))

    def __str__(self) -> str:
        return ".".join(self)

    def __repr__(self) -> str:
        return f"Key({str(self)!r})"


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

# Tables are plain dicts (insertion ordered), arrays plain lists.
Table = dict[str, Any]
Array = list[Any]

Value = Union[str, int, float, bool, datetime, Array, Table]
