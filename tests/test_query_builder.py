"""
Unit tests for the WHERE / ORDER BY builder.
"""
import pytest

from repositories.query_builder import (
    EQUALS,
    IN_LIST,
    SEARCH,
    FilterField,
    SortSpec,
    build_order_by,
    build_query,
    build_where,
    split_list,
)
from repositories.receipt_repo import RECEIPT_FILTERS, RECEIPT_SORT
from repositories.user_repo import USER_FILTERS, USER_SORT

FIELDS = (
    FilterField("id", ("t.id",), EQUALS),
    FilterField("q", ("t.name", "t.email"), SEARCH),
    FilterField("status", ("t.status",), IN_LIST),
)
SORT = SortSpec(allowed=("name", "created"), default_column="created", default_direction="desc", prefix="t.")


# =====================================================================
# WHERE
# =====================================================================
class TestBuildWhere:
    def test_no_filters(self):
        assert build_where({}, FIELDS) == ("", [])

    def test_absent_values_are_skipped(self):
        clause, params = build_where({"id": None, "q": "", "status": "   "}, FIELDS)
        assert clause == ""
        assert params == []
        assert "NULL" not in clause

    def test_equals(self):
        clause, params = build_where({"id": 5}, FIELDS)
        assert clause == "WHERE t.id = %s"
        assert params == [5]

    def test_zero_is_a_value(self):
        _, params = build_where({"id": 0}, FIELDS)
        assert params == [0]

    def test_search_is_lowercased_and_wrapped(self):
        clause, params = build_where({"q": " Taxi "}, FIELDS)
        assert clause == "WHERE (LOWER(t.name) LIKE %s OR LOWER(t.email) LIKE %s)"
        assert params == ["%taxi%", "%taxi%"]

    def test_in_list_trims_and_keeps_order(self):
        clause, params = build_where({"status": "approved, rejected"}, FIELDS)
        assert clause == "WHERE t.status IN (%s, %s)"
        assert params == ["approved", "rejected"]

    def test_in_list_drops_empty_items(self):
        clause, params = build_where({"status": "approved,, ,"}, FIELDS)
        assert clause == "WHERE t.status IN (%s)"
        assert params == ["approved"]

    def test_in_list_of_only_commas_adds_nothing(self):
        assert build_where({"status": ", ,"}, FIELDS) == ("", [])

    def test_in_list_accepts_sequences(self):
        clause, params = build_where({"status": ["approved", ""]}, FIELDS)
        assert clause == "WHERE t.status IN (%s)"
        assert params == ["approved"]

    def test_predicates_follow_declaration_order(self):
        clause, params = build_where({"status": "approved", "q": "x", "id": 1}, FIELDS)
        assert clause == (
            "WHERE t.id = %s AND (LOWER(t.name) LIKE %s OR LOWER(t.email) LIKE %s) "
            "AND t.status IN (%s)"
        )
        assert params == [1, "%x%", "%x%", "approved"]

    def test_values_never_reach_the_clause(self):
        clause, params = build_where({"id": "1; DROP TABLE receipt", "q": "' OR 1=1 --"}, FIELDS)
        assert "DROP" not in clause
        assert "OR 1=1" not in clause
        assert params[0] == "1; DROP TABLE receipt"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_where({"x": 1}, (FilterField("x", ("t.x",), "between"),))


def test_split_list():
    assert split_list(" a ,b,, c ") == ["a", "b", "c"]


# =====================================================================
# ORDER BY
# =====================================================================
class TestBuildOrderBy:
    def test_default_when_missing(self):
        assert build_order_by(None, SORT) == "ORDER BY t.created DESC"

    def test_allowed_column(self):
        assert build_order_by("name:asc", SORT) == "ORDER BY t.name ASC"

    def test_direction_is_case_insensitive(self):
        assert build_order_by("name:DeSc", SORT) == "ORDER BY t.name DESC"

    @pytest.mark.parametrize("sort_by", [
        "evil;drop:asc",
        "name:sideways",
        "name",
        "name:",
        ":asc",
        "password_hashed:asc",
        "name:asc; DROP TABLE receipt",
        "",
        42,
    ])
    def test_anything_else_falls_back(self, sort_by):
        assert build_order_by(sort_by, SORT) == "ORDER BY t.created DESC"


def test_build_query_assembles_clauses():
    sql, params = build_query("SELECT * FROM t", {"id": 3}, FIELDS, SORT, "name:asc")
    assert sql == "SELECT * FROM t\nWHERE t.id = %s\nORDER BY t.name ASC;"
    assert params == [3]


def test_build_query_without_filters():
    sql, params = build_query("SELECT * FROM t\n", {}, FIELDS, SORT)
    assert sql == "SELECT * FROM t\nORDER BY t.created DESC;"
    assert params == []


# =====================================================================
# Entity specs
# =====================================================================
class TestEntitySpecs:
    def test_receipt_default_sort(self):
        assert build_order_by(None, RECEIPT_SORT) == "ORDER BY r.request_date DESC"

    def test_receipt_sort_columns(self):
        assert RECEIPT_SORT.allowed == ("request_date", "status", "amount")

    def test_receipt_search_columns(self):
        clause, params = build_where({"search": "Dana"}, RECEIPT_FILTERS)
        assert clause == (
            "WHERE (LOWER(r.description) LIKE %s OR LOWER(u.user_name) LIKE %s "
            "OR LOWER(u.email) LIKE %s)"
        )
        assert params == ["%dana%"] * 3

    def test_user_default_sort(self):
        assert build_order_by("evil;drop:asc", USER_SORT) == "ORDER BY u.user_name ASC"

    def test_user_sort_columns(self):
        assert USER_SORT.allowed == ("user_name", "email", "role")
