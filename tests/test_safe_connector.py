from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from core_logic.safe_connector import QueryExecutionError, SafeDatabaseConnector


@pytest.mark.parametrize("statement", [
    "DELETE FROM settings",
    "UPDATE settings SET value = 'x'",
    "DROP TABLE settings",
    "INSERT INTO settings (name, value) VALUES ('a', 'b')",
])
def test_rejects_non_read_statements(connector, statement_log, statement):
    with pytest.raises(PermissionError):
        connector.execute_read_only_query(statement)
    assert statement_log == []


def test_accepts_select_with_leading_whitespace(connector):
    assert connector.execute_read_only_query("  select 1 AS one") == [{"one": 1}]


def test_accepts_with_statement(connector):
    rows = connector.execute_read_only_query("WITH s AS (SELECT name FROM settings) SELECT COUNT(*) AS c FROM s")
    assert rows == [{"c": 2}]


def test_values_travel_as_bound_parameters(connector, statement_log):
    rows = connector.execute_read_only_query("SELECT name FROM settings WHERE value = :value", {"value": "My Site"})
    assert rows == [{"name": "site_name"}]
    assert "My Site" not in statement_log[-1]


def test_missing_table_is_execution_error(connector):
    with pytest.raises(QueryExecutionError):
        connector.execute_read_only_query("SELECT * FROM no_such_table")


def test_statement_timeout_is_reported_as_timeout():
    engine = MagicMock()
    engine.dialect.name = "sqlite"
    engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))
    with pytest.raises(TimeoutError):
        SafeDatabaseConnector(engine=engine).execute_read_only_query("SELECT 1")


def test_accepts_existing_engine():
    engine = create_engine("sqlite://")
    connector = SafeDatabaseConnector(engine=engine)
    assert connector.engine is engine
    assert connector.execute_read_only_query("SELECT 2 AS two") == [{"two": 2}]


def test_needs_uri_or_engine():
    with pytest.raises(ValueError):
        SafeDatabaseConnector()
