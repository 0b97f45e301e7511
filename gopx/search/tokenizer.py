"""Split raw query text into a free-text term and ``key:value`` qualifiers."""

from __future__ import annotations

from importlib import resources
from typing import Any

from lark import Lark, Token, Transformer, UnexpectedInput

from gopx.exceptions import SearchParseError
from gopx.search.ast_nodes import SearchQuery

# Clients send spaces inside qualifier values as '+'.
SPACE_PLACEHOLDER = "+"


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("gopx.search").joinpath("grammar.lark").read_text()


_parser = Lark(_load_grammar(), parser="lalr")


class _QueryTransformer(Transformer):
    """Transform the Lark parse tree into a SearchQuery."""

    def start(self, items: list[Any]) -> SearchQuery:
        words: list[str] = []
        qualifiers: dict[str, str] = {}
        for item in items:
            if isinstance(item, tuple):
                key, value = item
                # Last occurrence of a key wins
                qualifiers[key] = value
            else:
                words.append(item)
        return SearchQuery(term=" ".join(words), qualifiers=qualifiers)

    def qualifier(self, items: list[Any]) -> tuple[str, str]:
        key, _, value = str(items[0]).partition(":")
        return key, value

    def word(self, items: list[Any]) -> str:
        return str(items[0])

    def QUALIFIER(self, token: Token) -> str:
        return str(token)

    def WORD(self, token: Token) -> str:
        return str(token)


_transformer = _QueryTransformer()


def decode_query_value(value: str) -> str:
    """Turn the ``+`` space placeholder back into spaces."""
    return value.replace(SPACE_PLACEHOLDER, " ")


def tokenize(query_string: str) -> SearchQuery:
    """Tokenize a raw search string.

    Tokens shaped like ``key:value`` become qualifiers; every other
    token is part of the free-text term, joined with single spaces in
    the order they appear. Values are returned as typed, ``+`` is not
    decoded here.

    Args:
        query_string: The raw query, e.g. ``gopx in:name downloads:>=10``.

    Returns:
        The tokenized SearchQuery.

    Raises:
        SearchParseError: If the query cannot be tokenized.
    """
    query_string = query_string.strip()
    if not query_string:
        return SearchQuery()

    try:
        tree = _parser.parse(query_string)
        return _transformer.transform(tree)
    except UnexpectedInput as e:
        raise SearchParseError(query_string, str(e)) from e
