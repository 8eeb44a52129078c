"""Document — the final output of a TOML decode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .model import Key, Table
from .typecheck import TomlType


_MISSING = object()


@dataclass
class Document:
    """Holds the fully decoded result of a TOML source."""

    mapping: Table = field(default_factory=dict)
    keys: list[Key] = field(default_factory=list)
    types: dict[Key, TomlType] = field(default_factory=dict)

    # -- Convenience accessors ------------------------------------------

    def to_dict(self) -> Table:
        return self.mapping

    def get(self, *segments: str, default: Any = None) -> Any:
        """Walk the mapping along *segments*; *default* if any step is missing."""
        value = self._lookup(segments)
        return default if value is _MISSING else value

    def is_defined(self, *segments: str) -> bool:
        """True if the key path exists, including implicitly created tables."""
        return bool(segments) and self._lookup(segments) is not _MISSING

    def type_of(self, *segments: str) -> str:
        """Human-readable type recorded for a key path ("" if none)."""
        typ = self.types.get(Key(segments))
        return "" if typ is None else str(typ)

    def _lookup(self, segments) -> Any:
        value: Any = self.mapping
        for seg in segments:
            if not isinstance(value, dict) or seg not in value:
                return _MISSING
            value = value[seg]
        return value
