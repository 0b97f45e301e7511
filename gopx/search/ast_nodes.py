"""Data classes for tokenized search queries and classified qualifier values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# Query-text spelling of an unbounded range side (``*..2016-12-31``).
WILDCARD = "*"


@dataclass(frozen=True)
class SearchQuery:
    """A free-text term plus ``key:value`` qualifiers.

    Qualifier keys are kept as typed; whether a key means anything is
    decided by the entity being searched.
    """

    term: str = ""
    qualifiers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "qualifiers", MappingProxyType(dict(self.qualifiers)))

    def get(self, name: str, default: str = "") -> str:
        return self.qualifiers.get(name, default)

    def with_defaults(self, **defaults: str) -> SearchQuery:
        """Return a copy with blank or missing qualifiers filled from *defaults*."""
        merged = dict(self.qualifiers)
        for name, value in defaults.items():
            if not merged.get(name, "").strip():
                merged[name] = value
        return SearchQuery(term=self.term, qualifiers=merged)

    def to_query_string(self) -> str:
        """Rebuild query text; tokenizing it again yields the same query."""
        parts = [f"{key}:{value}" for key, value in self.qualifiers.items()]
        if self.term:
            parts.insert(0, self.term)
        return " ".join(parts)


@dataclass(frozen=True)
class Comparison:
    """A qualifier value compared with one operator (``=``, ``>``, ``>=``, ``<``, ``<=``)."""

    operator: str
    value: str


@dataclass(frozen=True)
class Range:
    """An inclusive range; ``None`` marks a side as unbounded."""

    lower: str | None
    upper: str | None

    @property
    def is_unbounded(self) -> bool:
        """True for ``*..*``, which constrains nothing."""
        return self.lower is None and self.upper is None


RelationalValue = Comparison | Range
