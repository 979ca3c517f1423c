import math
from unittest.mock import MagicMock

import pytest

from core_logic.data_models import QueryParameters
from core_logic.query_builder import TableListQueryBuilder
from core_logic.safe_connector import QueryExecutionError

RELATED_ALIASES = {
    "translations_namespace", "translations_key",
    "locales_language", "locales_hello_world", "locales_locale_code", "locales_country", "locales_timezone",
}


def test_lists_all_settings(builder):
    result = builder.build_list("settings", QueryParameters(limit=10, page=1))
    assert len(result.items) == 2
    assert result.total == 2
    assert result.page == 1
    assert result.limit == 10
    assert result.total_pages == 1
    assert result.columns == ["id", "name", "value", "autoload"]


def test_filters_settings_by_name(builder):
    result = builder.build_list("settings", QueryParameters(filter={"name": "setup"}))
    assert result.total == 1
    assert result.items[0]["name"] == "setup_done"


def test_unknown_filter_key_is_ignored(builder):
    result = builder.build_list("settings", QueryParameters(filter={"no_such_column": "x"}))
    assert result.total == 2


def test_default_order_is_first_column_descending(builder):
    result = builder.build_list("settings")
    assert [row["id"] for row in result.items] == [2, 1]


@pytest.mark.parametrize("direction, first", [("asc", "setup_done"), ("desc", "site_name")])
def test_orders_by_main_column(builder, direction, first):
    result = builder.build_list("settings", QueryParameters(order="name", orderDir=direction))
    assert result.items[0]["name"] == first


def test_unresolvable_order_falls_back_to_first_column(builder):
    result = builder.build_list("settings", QueryParameters(order="nope", orderDir="asc"))
    assert [row["id"] for row in result.items] == [1, 2]


@pytest.mark.parametrize("limit", [1, 2, 3])
def test_total_and_total_pages(builder, limit):
    result = builder.build_list("settings", QueryParameters(limit=limit))
    assert result.total == 2
    assert result.total_pages == max(1, math.ceil(2 / limit))
    assert len(result.items) == min(limit, 2)


def test_pagination(builder):
    page1 = builder.build_list("settings", QueryParameters(limit=1, page=1, orderDir="asc"))
    page2 = builder.build_list("settings", QueryParameters(limit=1, page=2, orderDir="asc"))
    assert [r["name"] for r in page1.items] == ["site_name"]
    assert [r["name"] for r in page2.items] == ["setup_done"]
    assert page1.total == page2.total == 2
    assert page1.total_pages == page2.total_pages == 2


def test_page_beyond_last(builder):
    first = builder.build_list("settings", QueryParameters(limit=1, page=1))
    beyond = builder.build_list("settings", QueryParameters(limit=1, page=9))
    assert beyond.items == []
    assert beyond.page == 9
    assert (beyond.total, beyond.total_pages) == (first.total, first.total_pages)
    assert beyond.columns == first.columns


def test_oversized_limit_is_clamped(builder):
    assert builder.build_list("settings", QueryParameters(limit=5000)).limit == 100


@pytest.mark.parametrize("token", ["bad-name", "settings; DROP TABLE settings", "", '"settings"'])
def test_malformed_table_executes_nothing(builder, statement_log, token):
    result = builder.build_list(token, QueryParameters())
    assert result.items == []
    assert result.total == 0
    assert result.columns == []
    assert statement_log == []


def test_unknown_table_runs_no_list_statement(builder, connector, monkeypatch):
    spy = MagicMock(wraps=connector.execute_read_only_query)
    monkeypatch.setattr(connector, "execute_read_only_query", spy)

    result = builder.build_list("no_such_table", QueryParameters())

    assert (result.items, result.total, result.columns) == ([], 0, [])
    spy.assert_not_called()


def test_filter_values_never_reach_sql_text(builder):
    hostile = "x' OR '1'='1"
    plan = builder.plan("settings", QueryParameters(filter={"name": hostile}))
    assert hostile not in plan.select_sql
    assert hostile not in plan.count_sql
    assert plan.bind_params == {"f0": f"%{hostile}%"}
    assert builder.build_list("settings", QueryParameters(filter={"name": hostile})).total == 0


def test_plan_only_uses_known_identifiers(builder):
    plan = builder.plan("settings", QueryParameters(order="name; DROP", filter={"value)": "1"}))
    assert plan.applied_filters == []
    assert plan.order_by == "id"
    assert "DROP" not in plan.select_sql


def test_non_text_column_filter_is_cast_to_text(builder):
    plan = builder.plan("settings", QueryParameters(filter={"id": "1", "name": "site"}))
    assert 'CAST("t"."id" AS TEXT) LIKE :f0' in plan.select_sql
    assert '"t"."name" LIKE :f1' in plan.select_sql
    assert "CAST" not in plan.select_sql.split(":f0", 1)[1]

    result = builder.build_list("settings", QueryParameters(filter={"id": "2"}))
    assert [row["name"] for row in result.items] == ["setup_done"]


def test_mysql_casts_to_char(introspector):
    connector = MagicMock()
    connector.engine.dialect.name = "mysql"
    plan = TableListQueryBuilder(connector, introspector).plan("settings", QueryParameters(filter={"id": "1"}))
    assert 'CAST("t"."id" AS CHAR) LIKE :f0' in plan.count_sql


# --- Foreign key projection ---

def test_foreign_key_columns_are_projected(builder):
    result = builder.build_list("translations_languages", QueryParameters(limit=10, page=1))
    assert result.columns[:4] == ["id", "id_translations", "id_locale_code", "value"]
    assert set(result.columns[4:]) == RELATED_ALIASES
    assert len(result.items) == 2
    for item in result.items:
        assert set(item) == set(result.columns)
        assert item["translations_key"] == "dashboard"


def test_projected_columns_reported_without_matches(builder):
    result = builder.build_list("translations_languages", QueryParameters(filter={"value": "zzz"}))
    assert result.items == []
    assert set(result.columns) == {"id", "id_translations", "id_locale_code", "value"} | RELATED_ALIASES


@pytest.mark.parametrize("direction, expected", [
    ("asc", ["English", "Portuguese"]),
    ("desc", ["Portuguese", "English"]),
])
def test_orders_by_related_column(builder, direction, expected):
    result = builder.build_list("translations_languages", QueryParameters(order="locales_language", orderDir=direction))
    assert [row["locales_language"] for row in result.items] == expected


def test_filters_by_related_column(builder):
    result = builder.build_list("translations_languages", QueryParameters(filter={"locales_language": "Eng"}))
    assert result.total == 1
    assert result.items[0]["value"] == "Dashboard"
    assert result.items[0]["locales_locale_code"] == "en"


def test_unexposed_related_key_is_ignored(builder):
    result = builder.build_list("translations_languages", QueryParameters(filter={"locales_id": "1", "locales_nope": "x"}))
    assert result.total == 2


def test_self_reference_and_multiple_joins(builder):
    result = builder.build_list("posts", QueryParameters(order="title", orderDir="asc", limit=100))
    assert result.total == 5
    assert {"post_types_slug", "user_name", "posts_title"} <= set(result.columns)

    first = result.items[0]
    assert first["title"] == "About Page"
    assert first["post_types_slug"] == "page"
    assert first["user_name"] == "Author One"
    assert first["posts_title"] is None


def test_table_without_foreign_keys_has_plain_plan(builder):
    plan = builder.plan("settings", QueryParameters())
    assert "JOIN" not in plan.select_sql
    assert "WHERE" not in plan.count_sql


def test_store_failure_propagates(introspector):
    connector = MagicMock()
    connector.execute_read_only_query.side_effect = QueryExecutionError("connection lost")
    with pytest.raises(QueryExecutionError):
        TableListQueryBuilder(connector, introspector).build_list("settings", QueryParameters())
