from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event, text

from core_logic.content_cache import InMemoryCacheStore
from core_logic.content_list import ContentListProjection
from core_logic.content_source import ContentSourceResolver
from core_logic.query_builder import TableListQueryBuilder
from core_logic.safe_connector import SafeDatabaseConnector
from ingestion.demo_seed import seed_demo_database
from ingestion.introspection import SchemaIntrospector


@pytest.fixture()
def db_uri(tmp_path):
    """A seeded SQLite file: settings, user, locales, translations, and the content tables."""
    uri = f"sqlite:///{tmp_path / 'content.db'}"
    seed_engine = create_engine(uri)
    seed_demo_database(seed_engine)
    seed_engine.dispose()
    return uri


@pytest.fixture()
def connector(db_uri):
    connector = SafeDatabaseConnector(db_uri)
    yield connector
    connector.engine.dispose()


@pytest.fixture()
def introspector(connector):
    return SchemaIntrospector(connector)


@pytest.fixture()
def builder(connector, introspector):
    return TableListQueryBuilder(connector, introspector)


@pytest.fixture()
def projection(connector, introspector):
    return ContentListProjection(connector, introspector)


@pytest.fixture()
def resolver(connector, introspector):
    return ContentSourceResolver(connector, introspector)


@pytest.fixture()
def memory_store():
    return MagicMock(wraps=InMemoryCacheStore())


@pytest.fixture()
def statement_log(connector):
    """Every SQL statement sent to the store while the test runs."""
    statements = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(connector.engine, "before_cursor_execute", _record)
    yield statements
    event.remove(connector.engine, "before_cursor_execute", _record)


@pytest.fixture()
def run_ddl(connector):
    """Applies schema changes outside the read-only connector."""
    def _run(*statements):
        with connector.engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))
    return _run
