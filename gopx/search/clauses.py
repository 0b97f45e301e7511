"""Build parameterized SQL filter clauses.

Every clause is a fragment using ``?`` placeholders plus the values bound
to them, in order. Caller-supplied values only ever travel as parameters.
Column names are the one thing written into fragment text, so each one
must come from an entity's allowlist and pass ``check_identifier``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from gopx.exceptions import RelationalValueError
from gopx.search.ast_nodes import Comparison, Range
from gopx.search.columns import ColumnMapping, check_identifier
from gopx.search.relational import COMPARISON_OPERATORS, parse_relational

PLACEHOLDER = "?"


def bind_positional(
    fragment: str, params: Iterable[Any], prefix: str = "p"
) -> tuple[str, dict[str, Any]]:
    """Rewrite ``?`` placeholders as named binds (``:p0``, ``:p1``, ...).

    Returns the rewritten fragment and the bind-parameter dict, suitable
    for ``sqlalchemy.text()``.
    """
    pieces = fragment.split(PLACEHOLDER)
    params = tuple(params)
    if len(pieces) - 1 != len(params):
        raise ValueError(f"{len(pieces) - 1} placeholders but {len(params)} parameters")
    names = [f"{prefix}{i}" for i in range(len(params))]
    rewritten = pieces[0] + "".join(f":{name}{piece}" for name, piece in zip(names, pieces[1:]))
    return rewritten, dict(zip(names, params))


@dataclass(frozen=True)
class Clause:
    """A filter fragment and its bound parameters.

    The empty clause (no fragment) filters nothing and is dropped when
    clauses are combined.
    """

    fragment: str = ""
    params: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if self.fragment.count(PLACEHOLDER) != len(self.params):
            raise ValueError(
                f"Clause has {self.fragment.count(PLACEHOLDER)} placeholders "
                f"but {len(self.params)} parameters: {self.fragment!r}"
            )

    def __bool__(self) -> bool:
        return bool(self.fragment)

    @classmethod
    def and_(cls, clauses: Iterable[Clause]) -> Clause:
        """Join non-empty clauses with ``and``."""
        return cls._join(clauses, " and ", group=False)

    @classmethod
    def or_(cls, clauses: Iterable[Clause]) -> Clause:
        """Join non-empty clauses with ``or`` and parenthesize the group."""
        return cls._join(clauses, " or ", group=True)

    @classmethod
    def _join(cls, clauses: Iterable[Clause], separator: str, *, group: bool) -> Clause:
        parts = [c for c in clauses if c]
        if not parts:
            return cls()
        fragment = separator.join(c.fragment for c in parts)
        if group:
            fragment = f"({fragment})"
        params: tuple[Any, ...] = ()
        for c in parts:
            params += c.params
        return cls(fragment, params)


def multi_word_clauses(column: str, value: str) -> list[Clause]:
    """One ``column like ?`` clause per whitespace-separated word of *value*."""
    column = check_identifier(column)
    return [Clause(f"{column} like {PLACEHOLDER}", (f"%{word}%",)) for word in value.split()]


def exact_clause(column: str, value: str) -> Clause:
    """An equality filter, ``(column = ?)``."""
    column = check_identifier(column)
    return Clause(f"({column} = {PLACEHOLDER})", (value,))


def relational_clause(column: str, value: str) -> Clause:
    """Build a comparison or range filter on *column* from a qualifier value.

    ``*..*`` yields the empty clause.

    Raises:
        RelationalValueError: If the value does not classify into
            something this function can render.
    """
    column = check_identifier(column)
    relational = parse_relational(value)

    match relational:
        case Comparison(operator=op, value=operand) if op in COMPARISON_OPERATORS:
            return Clause(f"({column} {op} {PLACEHOLDER})", (operand,))
        case Range(lower=None, upper=None):
            return Clause()
        case Range(lower=None, upper=upper):
            return Clause(f"({column} <= {PLACEHOLDER})", (upper,))
        case Range(lower=lower, upper=None):
            return Clause(f"({column} >= {PLACEHOLDER})", (lower,))
        case Range(lower=lower, upper=upper):
            return Clause(
                f"({column} >= {PLACEHOLDER} and {column} <= {PLACEHOLDER})",
                (lower, upper),
            )

    raise RelationalValueError(column, value, f"unsupported relational value {relational!r}")


def in_qualifier_clause(columns: ColumnMapping, search_term: str, in_value: str) -> Clause:
    """Match *search_term* against the fields listed in an ``in:`` qualifier.

    *in_value* is a comma-separated list of public field names. Unknown
    and empty names are skipped. Each remaining field contributes one
    ``like`` clause per word of the term against its internal column,
    and all of them are OR-ed together.
    """
    if not search_term.strip():
        return Clause()

    field_clauses: list[Clause] = []
    for name in in_value.split(","):
        name = name.strip().lower()
        if not name or name not in columns:
            continue
        field_clauses.extend(multi_word_clauses(columns.internal_for(name), search_term))

    return Clause.or_(field_clauses)
