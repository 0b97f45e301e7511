"""Unit tests for sort and pagination sanitizing."""

from __future__ import annotations

import pytest

from gopx.search.columns import ColumnMapping
from gopx.search.sorting import (
    PaginationConfig,
    SortingConfig,
    clamp_pagination,
    order_expression,
    sanitize_order,
    sanitize_sort,
)

USER_SORT = ColumnMapping.from_pairs(
    [("joined", "joined_at"), ("packages", "packages_count"), ("username", "username")]
)


class TestSanitizeSort:
    def test_keeps_allowed_in_order(self) -> None:
        assert sanitize_sort(["Packages", " id ", "bogus"], ["packages", "username", "id"]) == [
            "packages",
            "id",
        ]

    def test_nothing_allowed(self) -> None:
        assert sanitize_sort(["bogus", ""], ["id"]) == []

    def test_duplicates_kept(self) -> None:
        assert sanitize_sort(["id", "ID"], ["id"]) == ["id", "id"]


class TestSanitizeOrder:
    @pytest.mark.parametrize(
        ("requested", "expected"),
        [("desc", "DESC"), (" Asc ", "ASC"), ("sideways", "ASC"), ("", "ASC"), (None, "ASC")],
    )
    def test_order(self, requested: str | None, expected: str) -> None:
        assert sanitize_order(requested) == expected


class TestClampPagination:
    def test_defaults_to_max_page(self) -> None:
        assert clamp_pagination(0, 0, 100) == (100, 0)

    def test_third_page(self) -> None:
        assert clamp_pagination(3, 10, 100) == (10, 20)

    def test_oversized_page_clamped(self) -> None:
        assert clamp_pagination(2, 500, 100) == (100, 100)

    def test_negative_values(self) -> None:
        assert clamp_pagination(-4, -1, 25) == (25, 0)


class TestOrderExpression:
    def test_direction_on_every_column(self) -> None:
        assert (
            order_expression(USER_SORT, ["packages", "username"], "desc", "joined")
            == "packages_count DESC, username DESC"
        )

    def test_falls_back_to_default(self) -> None:
        assert order_expression(USER_SORT, ["bogus"], None, "joined") == "joined_at ASC"


class TestFromParams:
    def test_pagination_garbage(self) -> None:
        assert PaginationConfig.from_params("abc", None) == PaginationConfig(1, 0)

    def test_pagination_numbers(self) -> None:
        assert PaginationConfig.from_params(" 2 ", "15") == PaginationConfig(2, 15)

    def test_sorting_split(self) -> None:
        s = SortingConfig.from_params("packages,username", "desc")
        assert s.sort_by == ("packages", "username")
        assert s.order == "desc"

    def test_sorting_defaults(self) -> None:
        assert SortingConfig.from_params(None, None) == SortingConfig((), "ASC")
