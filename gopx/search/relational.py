"""Classify qualifier values as comparisons or ranges.

Examples::

    packages:<=1000          Comparison("<=", "1000")
    packages:1000            Comparison("=", "1000")
    joined:2016-04-30..*     Range("2016-04-30", None)
    joined:*..2016-07-04     Range(None, "2016-07-04")
"""

from __future__ import annotations

import re

from gopx.search.ast_nodes import WILDCARD, Comparison, Range, RelationalValue

# Alternation order matters: two-character operators first.
_COMPARISON_RE = re.compile(r"^(>=|>|<=|<)(.+)$")
_RANGE_RE = re.compile(r"^([^.]+)\.\.([^.]+)$")

COMPARISON_OPERATORS: frozenset[str] = frozenset({"=", ">", ">=", "<", "<="})


def _bound(value: str) -> str | None:
    return None if value == WILDCARD else value


def parse_relational(value: str) -> RelationalValue:
    """Classify a single qualifier value.

    A leading comparison operator wins over a range, and anything that
    is neither is an equality comparison, so every string classifies.
    """
    match = _COMPARISON_RE.match(value)
    if match:
        return Comparison(match.group(1), match.group(2))

    match = _RANGE_RE.match(value)
    if match:
        return Range(_bound(match.group(1)), _bound(match.group(2)))

    return Comparison("=", value)
