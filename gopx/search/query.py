"""Compile search requests for packages and users into SQL filter parts."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from gopx.exceptions import ColumnMappingError
from gopx.search.ast_nodes import SearchQuery
from gopx.search.clauses import (
    Clause,
    bind_positional,
    exact_clause,
    in_qualifier_clause,
    multi_word_clauses,
    relational_clause,
)
from gopx.search.columns import ColumnMapping, check_identifier
from gopx.search.sorting import (
    PaginationConfig,
    SortingConfig,
    clamp_pagination,
    order_expression,
)
from gopx.search.tokenizer import decode_query_value, tokenize

log = logging.getLogger(__name__)

# Qualifier naming the fields the free-text term is matched against.
IN_QUALIFIER = "in"

DEFAULT_MAX_PAGE_SIZE = 100


class FilterKind(enum.Enum):
    """How a qualifier value turns into a filter."""

    RELATIONAL = "relational"  # >=10, 2016-01-01..*, 5
    MULTI_WORD = "multi_word"  # any word contained in the column
    EXACT = "exact"  # column equals the value


@dataclass(frozen=True)
class Qualifier:
    """A searchable qualifier: the column it filters and how."""

    column: str
    kind: FilterKind

    def clause(self, value: str) -> Clause:
        if self.kind is FilterKind.RELATIONAL:
            return relational_clause(self.column, value)
        if self.kind is FilterKind.MULTI_WORD:
            return Clause.or_(multi_word_clauses(self.column, value))
        return exact_clause(self.column, value)


@dataclass(frozen=True)
class CompiledSearch:
    """A search ready for the data-access layer.

    ``where`` uses ``?`` placeholders bound, in order, to ``params``.
    An empty ``where`` matches everything.
    """

    where: str
    params: tuple[Any, ...]
    order_by: str
    limit: int
    offset: int

    def bind(self, prefix: str = "p") -> tuple[str, dict[str, Any]]:
        """The filter with named binds instead of ``?``, plus its parameter dict."""
        return bind_positional(self.where, self.params, prefix)


@dataclass(frozen=True)
class EntitySearch:
    """Search configuration of one entity type.

    Attributes:
        name: Entity name, used in log messages.
        in_columns: Fields the free-text term may be matched against,
            selectable with the ``in:`` qualifier.
        qualifiers: Qualifier name to filter, in the order their
            clauses are emitted.
        sort_columns: Public sort keys and the columns they sort on.
        default_sort: Sort key used when none of the requested keys is valid.
        max_page_size: Page-size ceiling.
    """

    name: str
    in_columns: ColumnMapping
    qualifiers: Mapping[str, Qualifier]
    sort_columns: ColumnMapping
    default_sort: str
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    _default_in: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "qualifiers", MappingProxyType(dict(self.qualifiers)))
        object.__setattr__(self, "_default_in", ",".join(self.in_columns.public))

        if IN_QUALIFIER in self.qualifiers:
            raise ColumnMappingError(f"{self.name}: '{IN_QUALIFIER}' is a reserved qualifier")
        for qualifier in self.qualifiers.values():
            check_identifier(qualifier.column)
        if self.default_sort not in self.sort_columns:
            raise ColumnMappingError(
                f"{self.name}: default sort key '{self.default_sort}' is not sortable"
            )
        if self.max_page_size <= 0:
            raise ColumnMappingError(f"{self.name}: max page size must be positive")

    def with_max_page_size(self, max_page_size: int) -> EntitySearch:
        """Copy of this configuration with another page-size ceiling."""
        return replace(self, max_page_size=max_page_size)

    def compile(
        self,
        query: SearchQuery | str = "",
        pagination: PaginationConfig | None = None,
        sorting: SortingConfig | None = None,
    ) -> CompiledSearch:
        """Compile a search request.

        Args:
            query: Raw query text or an already tokenized query.
            pagination: Requested page; defaults to the first, largest page.
            sorting: Requested sort; defaults to the entity's default key, ascending.

        Returns:
            The compiled filter, ordering and window.

        Raises:
            SearchParseError: If raw query text cannot be tokenized.
            RelationalValueError: If a relational qualifier cannot be classified.
        """
        if isinstance(query, str):
            query = tokenize(query)
        pagination = pagination or PaginationConfig()
        sorting = sorting or SortingConfig()

        query = query.with_defaults(**{IN_QUALIFIER: self._default_in})

        clauses = [
            in_qualifier_clause(
                self.in_columns,
                decode_query_value(query.term),
                decode_query_value(query.get(IN_QUALIFIER)),
            )
        ]
        for name, qualifier in self.qualifiers.items():
            value = decode_query_value(query.get(name)).strip()
            if value:
                clauses.append(qualifier.clause(value))

        ignored = set(query.qualifiers) - set(self.qualifiers) - {IN_QUALIFIER}
        if ignored:
            log.debug("Ignoring unknown %s qualifiers: %s", self.name, ", ".join(sorted(ignored)))

        where = Clause.and_(clauses)
        limit, offset = clamp_pagination(pagination.page, pagination.per_page, self.max_page_size)
        order_by = order_expression(
            self.sort_columns, sorting.sort_by, sorting.order, self.default_sort
        )

        log.debug(
            "Compiled %s search %r: where=%r params=%r order_by=%r limit=%d offset=%d",
            self.name,
            query.to_query_string(),
            where.fragment,
            where.params,
            order_by,
            limit,
            offset,
        )
        return CompiledSearch(where.fragment, where.params, order_by, limit, offset)


def compile_search(
    entity: EntitySearch,
    q: str | None = None,
    sort: str | None = None,
    order: str | None = None,
    page: object = None,
    per_page: object = None,
) -> CompiledSearch:
    """Compile a search from raw query-parameter values.

    This is the entry point for request handlers: every argument is the
    string a client sent (or ``None``), and nothing in them is trusted.
    """
    return entity.compile(
        q or "",
        PaginationConfig.from_params(page, per_page),
        SortingConfig.from_params(sort, order),
    )


PACKAGES = EntitySearch(
    name="packages",
    in_columns=ColumnMapping.from_pairs(
        [
            ("name", "name"),
            ("desc", "description"),
            ("tag", "tag"),
        ]
    ),
    qualifiers={
        "downloads": Qualifier("downloads", FilterKind.RELATIONAL),
        "created": Qualifier("published_at", FilterKind.RELATIONAL),
        "updated": Qualifier("last_released_at", FilterKind.RELATIONAL),
        "owner": Qualifier("owner_username", FilterKind.EXACT),
    },
    sort_columns=ColumnMapping.from_pairs(
        [
            ("downloads", "downloads"),
            ("created", "published_at"),
            ("updated", "last_released_at"),
            ("name", "name"),
            ("id", "id"),
        ]
    ),
    default_sort="downloads",
)

USERS = EntitySearch(
    name="users",
    in_columns=ColumnMapping.from_pairs(
        [
            ("username", "username"),
            ("name", "name"),
            ("email", "email"),
        ]
    ),
    qualifiers={
        "packages": Qualifier("packages_count", FilterKind.RELATIONAL),
        "location": Qualifier("location", FilterKind.MULTI_WORD),
        "joined": Qualifier("joined_at", FilterKind.RELATIONAL),
    },
    sort_columns=ColumnMapping.from_pairs(
        [
            ("joined", "joined_at"),
            ("packages", "packages_count"),
            ("username", "username"),
            ("id", "id"),
        ]
    ),
    default_sort="joined",
)

ENTITIES: Mapping[str, EntitySearch] = MappingProxyType({"packages": PACKAGES, "users": USERS})
