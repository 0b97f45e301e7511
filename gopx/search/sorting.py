"""Sort and pagination sanitizing for search requests."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from gopx.search.columns import ColumnMapping

SORT_ORDERS: tuple[str, ...] = ("ASC", "DESC")
DEFAULT_SORT_ORDER = SORT_ORDERS[0]


def _parse_int(value: object, default: int) -> int:
    """Parse a query-parameter integer, falling back to *default*."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class PaginationConfig:
    """Requested page (1-based) and page size; 0 means "use the maximum"."""

    page: int = 1
    per_page: int = 0

    @classmethod
    def from_params(cls, page: object = None, per_page: object = None) -> PaginationConfig:
        """Build from raw query-parameter values; garbage becomes the default."""
        return cls(page=_parse_int(page, 1), per_page=_parse_int(per_page, 0))


@dataclass(frozen=True)
class SortingConfig:
    """Requested public sort keys and direction, not yet sanitized."""

    sort_by: tuple[str, ...] = ()
    order: str = DEFAULT_SORT_ORDER

    @classmethod
    def from_params(cls, sort: str | None = None, order: str | None = None) -> SortingConfig:
        """Build from a comma-separated ``sort`` parameter and an ``order`` parameter."""
        keys = tuple(sort.split(",")) if sort else ()
        return cls(sort_by=keys, order=order or DEFAULT_SORT_ORDER)


def sanitize_sort(requested: Iterable[str], allowed: Iterable[str]) -> list[str]:
    """Keep the requested sort keys that are allowed, in request order.

    Keys are trimmed and lowercased first. Duplicates are kept.
    """
    allowed = set(allowed)
    keys: list[str] = []
    for key in requested:
        key = key.strip().lower()
        if key and key in allowed:
            keys.append(key)
    return keys


def sanitize_order(requested: str | None) -> str:
    """Return ``ASC`` or ``DESC``; anything else becomes the default."""
    order = (requested or "").strip().upper()
    if order not in SORT_ORDERS:
        return DEFAULT_SORT_ORDER
    return order


def clamp_pagination(page: int, per_page: int, max_per_page: int) -> tuple[int, int]:
    """Turn a page request into ``(limit, offset)``.

    Pages below 1 become 1 and page sizes outside ``(0, max_per_page]``
    become ``max_per_page``. Pages past the end are allowed and simply
    select nothing.
    """
    if page < 1:
        page = 1
    if per_page <= 0 or per_page > max_per_page:
        per_page = max_per_page
    return per_page, (page - 1) * per_page


def order_expression(
    columns: ColumnMapping,
    requested: Iterable[str],
    order: str | None,
    default: str,
) -> str:
    """Build an ORDER BY expression over internal columns.

    The direction applies to every sort column, e.g.
    ``published_at DESC, name DESC``.
    """
    keys = sanitize_sort(requested, columns.public) or [default]
    direction = sanitize_order(order)
    return ", ".join(f"{columns.internal_for(key)} {direction}" for key in keys)
