"""Search query compiling for packages and users."""

from gopx.search.ast_nodes import Comparison, Range, SearchQuery
from gopx.search.clauses import Clause, in_qualifier_clause, multi_word_clauses, relational_clause
from gopx.search.columns import ColumnMapping
from gopx.search.query import (
    PACKAGES,
    USERS,
    CompiledSearch,
    EntitySearch,
    FilterKind,
    Qualifier,
    compile_search,
)
from gopx.search.relational import parse_relational
from gopx.search.sorting import (
    PaginationConfig,
    SortingConfig,
    clamp_pagination,
    sanitize_order,
    sanitize_sort,
)
from gopx.search.tokenizer import decode_query_value, tokenize

__all__ = [
    "PACKAGES",
    "USERS",
    "Clause",
    "ColumnMapping",
    "Comparison",
    "CompiledSearch",
    "EntitySearch",
    "FilterKind",
    "PaginationConfig",
    "Qualifier",
    "Range",
    "SearchQuery",
    "SortingConfig",
    "clamp_pagination",
    "compile_search",
    "decode_query_value",
    "in_qualifier_clause",
    "multi_word_clauses",
    "parse_relational",
    "relational_clause",
    "sanitize_order",
    "sanitize_sort",
    "tokenize",
]
