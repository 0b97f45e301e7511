"""Unit tests for the search query tokenizer."""

from __future__ import annotations

import pytest

from gopx.search.ast_nodes import SearchQuery
from gopx.search.tokenizer import decode_query_value, tokenize

# ---------------------------------------------------------------------------
# Free-text term
# ---------------------------------------------------------------------------


class TestTerm:
    def test_single_word(self) -> None:
        q = tokenize("websocket")
        assert q.term == "websocket"
        assert dict(q.qualifiers) == {}

    def test_words_joined_in_order(self) -> None:
        q = tokenize("fast  websocket   client")
        assert q.term == "fast websocket client"

    def test_words_around_qualifiers(self) -> None:
        q = tokenize("fast in:name websocket downloads:>10 client")
        assert q.term == "fast websocket client"

    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    def test_blank_query(self, query: str) -> None:
        assert tokenize(query) == SearchQuery()

    def test_colon_without_key_is_a_word(self) -> None:
        q = tokenize(":oops")
        assert q.term == ":oops"
        assert dict(q.qualifiers) == {}

    def test_colon_without_value_is_a_word(self) -> None:
        q = tokenize("owner:")
        assert q.term == "owner:"
        assert dict(q.qualifiers) == {}

    def test_vertical_tab_separates_words(self) -> None:
        q = tokenize("foo\vbar")
        assert q.term == "foo bar"

    def test_no_break_space_separates_qualifier(self) -> None:
        q = tokenize("foo in:name")
        assert q.term == "foo"
        assert dict(q.qualifiers) == {"in": "name"}

    def test_em_space_separates_qualifier(self) -> None:
        q = tokenize("foo in:name")
        assert q.term == "foo"
        assert dict(q.qualifiers) == {"in": "name"}


# ---------------------------------------------------------------------------
# Qualifiers
# ---------------------------------------------------------------------------


class TestQualifiers:
    def test_single_qualifier(self) -> None:
        q = tokenize("owner:alice")
        assert q.term == ""
        assert q.get("owner") == "alice"

    def test_value_keeps_later_colons(self) -> None:
        q = tokenize("created:2020-01-01T10:00")
        assert q.get("created") == "2020-01-01T10:00"

    def test_last_occurrence_wins(self) -> None:
        q = tokenize("owner:alice owner:bob")
        assert q.get("owner") == "bob"

    def test_keys_kept_as_typed(self) -> None:
        q = tokenize("Owner:alice")
        assert q.get("Owner") == "alice"
        assert q.get("owner") == ""

    def test_plus_not_decoded(self) -> None:
        q = tokenize("location:new+york")
        assert q.get("location") == "new+york"

    def test_qualifiers_are_read_only(self) -> None:
        q = tokenize("owner:alice")
        with pytest.raises(TypeError):
            q.qualifiers["owner"] = "bob"  # type: ignore[index]


class TestSearchQuery:
    def test_with_defaults_fills_missing(self) -> None:
        q = SearchQuery("x").with_defaults(**{"in": "name,desc"})
        assert q.get("in") == "name,desc"

    def test_with_defaults_fills_blank(self) -> None:
        q = SearchQuery("x", {"in": "  "}).with_defaults(**{"in": "name"})
        assert q.get("in") == "name"

    def test_with_defaults_keeps_given_value(self) -> None:
        q = SearchQuery("x", {"in": "tag"}).with_defaults(**{"in": "name"})
        assert q.get("in") == "tag"

    @pytest.mark.parametrize(
        "query",
        [
            "hello in:name,desc downloads:>=1000",
            "owner:alice",
            "fast websocket created:2020-01-01..*",
        ],
    )
    def test_query_string_tokenizes_to_same_query(self, query: str) -> None:
        q = tokenize(query)
        assert tokenize(q.to_query_string()) == q


def test_decode_query_value() -> None:
    assert decode_query_value("new+york+city") == "new york city"
    assert decode_query_value("plain") == "plain"
