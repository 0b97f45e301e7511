"""Allowlisted mappings between public field names and storage columns."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from gopx.exceptions import ColumnMappingError

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def check_identifier(column: str) -> str:
    """Return *column* if it is a plain (optionally table-qualified) identifier.

    Storage engines cannot bind identifiers as parameters, so columns are
    written into query text. This is the last gate before that happens.
    """
    if not _IDENTIFIER_RE.match(column):
        raise ColumnMappingError(f"Not a valid column identifier: {column!r}")
    return column


@dataclass(frozen=True)
class ColumnMapping:
    """Index-aligned public (API-facing) and internal (storage) column names.

    Public names are the only vocabulary accepted from callers.
    """

    public: tuple[str, ...]
    internal: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.public) != len(self.internal):
            raise ColumnMappingError(
                f"Column mapping is misaligned: {len(self.public)} public names, "
                f"{len(self.internal)} internal names"
            )
        if len(set(self.public)) != len(self.public):
            raise ColumnMappingError(f"Duplicate public column names: {self.public}")
        for name in self.public:
            if name != name.strip().lower() or not name:
                raise ColumnMappingError(f"Public column names must be lowercase: {name!r}")
        for column in self.internal:
            check_identifier(column)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> ColumnMapping:
        """Build a mapping from ``(public, internal)`` pairs."""
        pairs = list(pairs)
        return cls(
            public=tuple(public for public, _ in pairs),
            internal=tuple(internal for _, internal in pairs),
        )

    def __contains__(self, name: object) -> bool:
        return name in self.public

    def __len__(self) -> int:
        return len(self.public)

    def internal_for(self, name: str) -> str:
        """Internal column for a public name.

        Raises:
            KeyError: If *name* is not a public name of this mapping.
        """
        try:
            return self.internal[self.public.index(name)]
        except ValueError:
            raise KeyError(name) from None
