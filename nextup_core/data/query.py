# =============================================================================
# nextup_core/data/query.py
# List query contract shared by the live and demo data paths
# =============================================================================
"""
A `ListQuery` describes pagination, filters, search and ordering once, and is
applied either to a PostgREST request builder (`apply_to_builder`) or to an
in-memory list of rows (`apply_query`). Both paths follow the same rules:

- list filter values use array containment (every given value present)
- string values use equality, or a case-insensitive LIKE pattern when
  `match_patterns` is on and the value contains '%'
- other scalars use equality
- None, "" and [] filter values are ignored
- search is a case-insensitive substring match on one field
- ordering puts nulls last ascending and first descending, as Postgres does
- per_page == 0 returns every match
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class OrderBy:
    field: str
    ascending: bool = False


@dataclass
class ListQuery:
    page: int = 1
    per_page: int = 0
    filters: Dict[str, Any] = field(default_factory=dict)
    order_by: Optional[OrderBy] = None
    search_field: Optional[str] = None
    search_text: Optional[str] = None
    select: str = "*"
    match_patterns: bool = False

    def validate(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.per_page < 0:
            raise ValueError(f"per_page must be >= 0, got {self.per_page}")

    @property
    def has_search(self) -> bool:
        return bool(self.search_field) and bool(self.search_text)

    @property
    def bounds(self) -> Optional[Tuple[int, int]]:
        """Inclusive (start, end) row range, or None when unpaginated."""
        if self.per_page == 0:
            return None
        start = (self.page - 1) * self.per_page
        return start, start + self.per_page - 1

    def active_filters(self) -> Iterator[Tuple[str, str, Any]]:
        """Yield (field, operator, value) for every filter that applies."""
        for key, value in self.filters.items():
            if value is None or value == "" or value == []:
                continue
            if isinstance(value, (list, tuple, set)):
                yield key, "contains", list(value)
            elif isinstance(value, str) and self.match_patterns and "%" in value:
                yield key, "ilike", value
            else:
                yield key, "eq", value


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def like_to_regex(pattern: str) -> re.Pattern:
    """Translate a SQL LIKE pattern (with backslash escapes) to a regex."""
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


# =============================================================================
# LIVE PATH
# =============================================================================

def apply_to_builder(builder, query: ListQuery):
    """
    Add the query's filters, search, ordering and range to a PostgREST
    select builder and return it.
    """
    for key, op, value in query.active_filters():
        if op == "contains":
            builder = builder.contains(key, value)
        elif op == "ilike":
            builder = builder.ilike(key, value)
        else:
            builder = builder.eq(key, value)

    if query.has_search:
        builder = builder.ilike(query.search_field, f"%{escape_like(query.search_text)}%")

    if query.order_by is not None:
        builder = builder.order(query.order_by.field, desc=not query.order_by.ascending)

    if query.bounds is not None:
        builder = builder.range(*query.bounds)

    return builder


# =============================================================================
# IN-MEMORY PATH
# =============================================================================

def _matches(row: Dict[str, Any], key: str, op: str, value: Any) -> bool:
    actual = row.get(key)
    if op == "contains":
        if not isinstance(actual, (list, tuple, set)):
            return False
        return set(value).issubset(set(actual))
    if op == "ilike":
        return actual is not None and like_to_regex(value).fullmatch(str(actual)) is not None
    return actual == value


def _sort_key(name: str):
    def key(row: Dict[str, Any]):
        value = row.get(name)
        return (value is None, value)
    return key


def apply_query(rows: List[Dict[str, Any]], query: ListQuery) -> Tuple[List[Dict[str, Any]], int]:
    """
    Filter, search, sort and paginate rows in memory.

    Returns:
        (page rows, total number of matches before pagination)
    """
    query.validate()
    selected = list(rows)

    for key, op, value in query.active_filters():
        selected = [row for row in selected if _matches(row, key, op, value)]

    if query.has_search:
        needle = query.search_text.lower()
        selected = [
            row for row in selected
            if row.get(query.search_field) is not None
            and needle in str(row.get(query.search_field)).lower()
        ]

    if query.order_by is not None:
        selected = sorted(
            selected,
            key=_sort_key(query.order_by.field),
            reverse=not query.order_by.ascending,
        )

    total = len(selected)
    if query.bounds is not None:
        start, end = query.bounds
        selected = selected[start:end + 1]

    return selected, total
