# ContentLink/core_logic/safe_connector.py
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from typing import Any, List, Dict, Mapping, Optional
import logging

from config.settings import MAX_QUERY_TIMEOUT_SECONDS

security_logger = logging.getLogger('ContentLink.Security')
security_logger.setLevel(logging.WARNING)


class QueryExecutionError(RuntimeError):
    """The relational store failed to run a statement (connectivity, bad SQL, ...)."""


def set_pg_statement_timeout(dbapi_connection, connection_record):
    """Sets a statement-level timeout on PostgreSQL connections upon creation."""
    cursor = dbapi_connection.cursor()
    # Timeout is set in milliseconds in PostgreSQL
    timeout_ms = MAX_QUERY_TIMEOUT_SECONDS * 1000
    cursor.execute(f"SET statement_timeout = {timeout_ms}")
    cursor.close()


class SafeDatabaseConnector:
    """
    Read-only gateway to the relational store.
    Every statement the engine issues goes through execute_read_only_query;
    identifiers are already sanitized and values travel as bound parameters.
    """
    def __init__(self, db_uri: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None and db_uri is None:
            raise ValueError("SafeDatabaseConnector needs a db_uri or an engine.")
        self.engine = engine if engine is not None else create_engine(db_uri)
        if self.engine.dialect.name == "postgresql":
            event.listen(self.engine, "connect", set_pg_statement_timeout)

    def execute_read_only_query(self, sql_query: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict]:
        """Executes a read statement with bound parameters and returns rows as dicts."""

        # --- 1. Security Check (HARD STOP) ---
        normalized_query = sql_query.strip().upper()

        if not (normalized_query.startswith("SELECT") or normalized_query.startswith("WITH")):
            security_logger.error(f"SECURITY ALERT: Non-SELECT/WITH statement attempt: {sql_query}")
            raise PermissionError("Statement failed security validation. Only read (SELECT/WITH) statements are allowed.")

        # --- 2. Execution with Timeout & Error Handling ---
        try:
            with self.engine.connect() as connection:
                result = connection.execute(text(sql_query), dict(params or {}))
                column_names = list(result.keys())
                return [dict(zip(column_names, row)) for row in result.all()]

        except OperationalError as e:
            if "statement timeout" in str(e):
                raise TimeoutError(f"Query execution exceeded time limits (>{MAX_QUERY_TIMEOUT_SECONDS}s).") from e
            security_logger.error(f"Store failure while executing statement: {e!r}")
            raise QueryExecutionError(f"Database Execution Error: {e!r}") from e

        except SQLAlchemyError as e:
            security_logger.error(f"Store failure while executing statement: {e!r}")
            raise QueryExecutionError(f"A general error occurred during database operation: {e!r}") from e
