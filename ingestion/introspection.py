# ContentLink/ingestion/introspection.py
from sqlalchemy import inspect
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.types import Integer, Numeric, String
from typing import Callable, List, Optional, TypeVar
import logging

from config.settings import INTERNAL_TABLE_PREFIXES
from core_logic.data_models import (
    ColumnCategory, ColumnDescriptor, ForeignKeyDescriptor, RelatedTableInfo, TableDescriptor
)
from core_logic.identifiers import Identifier, sanitize_identifier
from core_logic.safe_connector import SafeDatabaseConnector, QueryExecutionError

ingestion_logger = logging.getLogger('ContentLink.Introspection')
ingestion_logger.setLevel(logging.INFO)

T = TypeVar("T")


def categorize_type(column_type) -> ColumnCategory:
    """Maps a reflected SQLAlchemy type onto a ColumnCategory."""
    if isinstance(column_type, String):
        return ColumnCategory.TEXT
    if isinstance(column_type, (Integer, Numeric)):
        return ColumnCategory.NUMERIC
    return ColumnCategory.OTHER


class SchemaIntrospector:
    """
    Reads table, column and foreign key metadata from the live store.
    Nothing is cached: each call builds a fresh Inspector, so schema changes
    between two calls are always visible.
    """
    def __init__(self, connector: SafeDatabaseConnector):
        self.engine = connector.engine

    def _reflect(self, action: Callable[[Inspector], T], table_name: Optional[str] = None, missing: T = None) -> T:
        """Runs one reflection call. A missing table yields `missing`; store failures raise."""
        try:
            return action(inspect(self.engine))
        except NoSuchTableError:
            return missing
        except SQLAlchemyError as e:
            ingestion_logger.error(f"Introspection failed for '{table_name or '*'}': {e!r}")
            raise QueryExecutionError(f"Schema introspection failed: {e!r}") from e

    def list_tables(self) -> List[str]:
        """User table names, without the store's internal and migration bookkeeping tables."""
        names = self._reflect(lambda insp: insp.get_table_names(), missing=[])
        tables = [n for n in names if not n.startswith(INTERNAL_TABLE_PREFIXES)]
        ingestion_logger.debug(f"Found {len(tables)} user tables.")
        return tables

    def _primary_key_names(self, table: Identifier) -> List[str]:
        constraint = self._reflect(lambda insp: insp.get_pk_constraint(table), table, missing={})
        return list((constraint or {}).get("constrained_columns") or [])

    def list_columns(self, table_name: str) -> List[ColumnDescriptor]:
        table = sanitize_identifier(table_name)
        if table is None:
            return []
        columns_data = self._reflect(lambda insp: insp.get_columns(table), table, missing=[])
        if not columns_data:
            return []

        pk_names = self._primary_key_names(table)
        return [
            ColumnDescriptor(
                name=col['name'],
                data_type=str(col['type']),
                category=categorize_type(col['type']),
                primary_key=col['name'] in pk_names,
            )
            for col in columns_data
        ]

    def list_foreign_keys(self, table_name: str) -> List[ForeignKeyDescriptor]:
        """Single-column foreign keys declared on the table."""
        table = sanitize_identifier(table_name)
        if table is None:
            return []
        fks_data = self._reflect(lambda insp: insp.get_foreign_keys(table), table, missing=[])

        foreign_keys = []
        for fk in fks_data or []:
            constrained = fk.get('constrained_columns') or []
            referred = fk.get('referred_columns') or []
            if len(constrained) != 1 or len(referred) != 1 or not fk.get('referred_table'):
                continue
            foreign_keys.append(ForeignKeyDescriptor(
                column=constrained[0],
                referenced_table=fk['referred_table'],
                referenced_column=referred[0],
            ))
        return foreign_keys

    def list_text_columns(self, table_name: str) -> List[str]:
        return [c.name for c in self.list_columns(table_name) if c.category == ColumnCategory.TEXT]

    def get_primary_key(self, table_name: str) -> Optional[ColumnDescriptor]:
        """The table's primary key column, or None for composite or missing keys."""
        keys = [c for c in self.list_columns(table_name) if c.primary_key]
        return keys[0] if len(keys) == 1 else None

    def describe_table(self, table_name: str) -> Optional[TableDescriptor]:
        columns = self.list_columns(table_name)
        if not columns:
            return None
        return TableDescriptor(
            name=table_name,
            columns=columns,
            foreign_keys=self.list_foreign_keys(table_name),
        )

    def get_related_table_info(self, table_name: str) -> List[RelatedTableInfo]:
        """Foreign keys of the table paired with the text columns of each referenced table."""
        related = []
        for fk in self.list_foreign_keys(table_name):
            text_columns = self.list_text_columns(fk.referenced_table)
            if not text_columns:
                continue
            related.append(RelatedTableInfo(
                table=fk.referenced_table,
                fk_column=fk.column,
                ref_column=fk.referenced_column,
                text_columns=text_columns,
            ))
        return related
