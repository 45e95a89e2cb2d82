# =============================================================================
# tests/unit/test_query.py
# Unit Tests for the list query contract
# =============================================================================

import pytest
from unittest.mock import MagicMock

from nextup_core.data.query import (
    ListQuery,
    OrderBy,
    apply_query,
    apply_to_builder,
    escape_like,
    like_to_regex,
)


ROWS = [
    {"id": "a", "title": "Alpha App", "tags": ["python", "ai"], "score": 3, "kind": "offering"},
    {"id": "b", "title": "beta tool", "tags": ["python"], "score": None, "kind": "seeking"},
    {"id": "c", "title": "Gamma", "tags": ["go", "ai"], "score": 1, "kind": "offering"},
    {"id": "d", "title": "100% Delta", "tags": [], "score": 2, "kind": "offering"},
]


def ids(rows):
    return [row["id"] for row in rows]


class TestListQueryValidation:
    """Test query parameter checks"""

    def test_page_below_one_rejected(self):
        with pytest.raises(ValueError):
            ListQuery(page=0).validate()

    def test_negative_per_page_rejected(self):
        with pytest.raises(ValueError):
            ListQuery(per_page=-1).validate()

    def test_unpaginated_has_no_bounds(self):
        assert ListQuery().bounds is None

    def test_bounds_are_inclusive(self):
        assert ListQuery(page=3, per_page=5).bounds == (10, 14)


class TestFilters:
    """Test in-memory filtering"""

    def test_list_filter_is_containment(self):
        rows, total = apply_query(ROWS, ListQuery(filters={"tags": ["python", "ai"]}))
        assert ids(rows) == ["a"]
        assert total == 1

    def test_scalar_filter_is_equality(self):
        rows, _ = apply_query(ROWS, ListQuery(filters={"kind": "seeking"}))
        assert ids(rows) == ["b"]

    def test_empty_values_are_ignored(self):
        rows, total = apply_query(ROWS, ListQuery(filters={"kind": "", "tags": [], "score": None}))
        assert total == len(ROWS)

    def test_percent_is_literal_without_pattern_matching(self):
        rows, _ = apply_query(ROWS, ListQuery(filters={"title": "100%"}))
        assert rows == []

    def test_pattern_matching_when_enabled(self):
        rows, _ = apply_query(ROWS, ListQuery(filters={"title": "%TOOL"}, match_patterns=True))
        assert ids(rows) == ["b"]


class TestSearch:
    """Test case-insensitive substring search"""

    def test_search_ignores_case(self):
        rows, _ = apply_query(ROWS, ListQuery(search_field="title", search_text="ALPHA"))
        assert ids(rows) == ["a"]

    def test_search_text_wildcards_are_literal(self):
        rows, _ = apply_query(ROWS, ListQuery(search_field="title", search_text="100%"))
        assert ids(rows) == ["d"]

    def test_search_without_field_is_ignored(self):
        _, total = apply_query(ROWS, ListQuery(search_text="alpha"))
        assert total == len(ROWS)


class TestOrdering:
    """Test ordering and null placement"""

    def test_nulls_last_ascending(self):
        rows, _ = apply_query(ROWS, ListQuery(order_by=OrderBy("score", ascending=True)))
        assert ids(rows) == ["c", "d", "a", "b"]

    def test_nulls_first_descending(self):
        rows, _ = apply_query(ROWS, ListQuery(order_by=OrderBy("score", ascending=False)))
        assert ids(rows) == ["b", "a", "d", "c"]


class TestPagination:
    """Test page slicing and totals"""

    def test_total_counts_all_matches(self):
        rows, total = apply_query(ROWS, ListQuery(page=1, per_page=3))
        assert len(rows) == 3
        assert total == 4

    def test_page_past_end_is_empty(self):
        rows, total = apply_query(ROWS, ListQuery(page=5, per_page=3))
        assert rows == []
        assert total == 4

    @pytest.mark.parametrize("per_page", [1, 2, 3, 4, 7])
    def test_pages_cover_the_set_exactly_once(self, per_page):
        ordered, n = apply_query(ROWS, ListQuery(order_by=OrderBy("title", ascending=True)))
        pages = -(-n // per_page)
        collected = []
        for page in range(1, pages + 1):
            rows, _ = apply_query(ROWS, ListQuery(page=page, per_page=per_page,
                                                  order_by=OrderBy("title", ascending=True)))
            collected.extend(rows)
        assert ids(collected) == ids(ordered)


class TestLikeHelpers:
    """Test LIKE escaping"""

    def test_escape_like(self):
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"

    def test_escaped_pattern_matches_literally(self):
        regex = like_to_regex(f"%{escape_like('50%')}%")
        assert regex.fullmatch("save 50% now")
        assert not regex.fullmatch("save 500 now")

    def test_underscore_matches_one_character(self):
        assert like_to_regex("a_c").fullmatch("ABC")
        assert not like_to_regex("a_c").fullmatch("abbc")


class TestApplyToBuilder:
    """Test translation to PostgREST builder calls"""

    def test_builder_calls(self):
        builder = MagicMock()
        builder.contains.return_value = builder
        builder.eq.return_value = builder
        builder.ilike.return_value = builder
        builder.order.return_value = builder
        builder.range.return_value = builder

        query = ListQuery(
            page=2,
            per_page=10,
            filters={"skill_tags": ["python"], "category": "AI/ML", "owner_id": None},
            order_by=OrderBy("created_at"),
            search_field="title",
            search_text="50%",
        )
        apply_to_builder(builder, query)

        builder.contains.assert_called_once_with("skill_tags", ["python"])
        builder.eq.assert_called_once_with("category", "AI/ML")
        builder.ilike.assert_called_once_with("title", "%50\\%%")
        builder.order.assert_called_once_with("created_at", desc=True)
        builder.range.assert_called_once_with(10, 19)

    def test_unpaginated_query_has_no_range(self):
        builder = MagicMock()
        apply_to_builder(builder, ListQuery())
        builder.range.assert_not_called()
