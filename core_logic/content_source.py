# ContentLink/core_logic/content_source.py
"""
Decides where a type token's records live.

A token naming an existing table ('settings', 'user', ...) is a TABLE
source. Any other token is a CONTENT source: rows of the polymorphic posts
table whose post type slug equals the token. The kind is resolved once per
request and passed down to list and record lookups.
"""
import re
from typing import Any, Dict, Optional, Union
import logging

from config.content_model import (
    CONTENT_TABLE, DISCRIMINATOR_TABLE, DISCRIMINATOR_COLUMN, DISCRIMINATOR_SLUG_COLUMN, TABLE_DELETE_TEMPLATE,
)
from config.settings import META_VALIDATION_MODE
from core_logic.content_cache import CacheStore, ContentCache
from core_logic.content_list import ContentListProjection
from core_logic.data_models import (
    ColumnCategory, ContentListParameters, ContentRecordResult, QueryParameters, QueryResult, SourceKind,
)
from core_logic.identifiers import Identifier, sanitize_identifier, quote_identifier
from core_logic.meta_values import decode_meta_values, parse_meta_schema
from core_logic.query_builder import TableListQueryBuilder
from core_logic.safe_connector import SafeDatabaseConnector
from ingestion.introspection import SchemaIntrospector

source_logger = logging.getLogger('ContentLink.Source')
source_logger.setLevel(logging.INFO)

# ASCII digits only; fullmatch so a trailing newline never passes
INTEGER_ID = re.compile(r"-?[0-9]+")
CONTENT_ID = re.compile(r"[0-9]+")

ParamsLike = Union[QueryParameters, Dict[str, Any], None]


class ContentSourceResolver:
    """Routes list and single-record requests to a table or to a content partition."""

    def __init__(
        self,
        connector: SafeDatabaseConnector,
        introspector: SchemaIntrospector,
        cache_store: Optional[CacheStore] = None,
        meta_validation_mode: str = META_VALIDATION_MODE,
    ):
        self.connector = connector
        self.introspector = introspector
        self.table_builder = TableListQueryBuilder(connector, introspector)
        self.content_projection = ContentListProjection(connector, introspector)
        self.cache = ContentCache(cache_store)
        self.meta_validation_mode = meta_validation_mode

    def resolve_kind(self, type_token: str) -> SourceKind:
        """TABLE iff the token currently names a user table, otherwise CONTENT."""
        if type_token in self.introspector.list_tables():
            return SourceKind.TABLE
        return SourceKind.CONTENT

    # --- Listing ---

    def list_records(self, type_token: str, params: ParamsLike = None, kind: Optional[SourceKind] = None) -> QueryResult:
        """One page of the token's records, served through the cache."""
        kind = kind or self.resolve_kind(type_token)

        if kind == SourceKind.TABLE:
            table_params = _coerce(params, QueryParameters)
            return self.cache.get_or_fetch(
                type_token, table_params, lambda: self.table_builder.build_list(type_token, table_params)
            )

        content_params = _coerce(params, ContentListParameters)
        return self.cache.get_or_fetch(
            CONTENT_TABLE,
            content_params,
            lambda: self.content_projection.list_items(type_token, content_params),
            partition=type_token,
        )

    # --- Single record ---

    def get_record_by_id(self, type_token: str, record_id, kind: Optional[SourceKind] = None) -> ContentRecordResult:
        kind = kind or self.resolve_kind(type_token)
        if kind == SourceKind.TABLE:
            return ContentRecordResult(kind=kind, record=self._get_table_record(type_token, record_id))
        record, meta = self._get_content_record(type_token, record_id)
        return ContentRecordResult(kind=kind, record=record, meta=meta)

    def _get_table_record(self, table_name: str, record_id) -> Optional[Dict[str, Any]]:
        table = sanitize_identifier(table_name)
        if table is None or record_id is None or str(record_id).strip() == "":
            return None

        primary_key = self.introspector.get_primary_key(table)
        if primary_key is None or sanitize_identifier(primary_key.name) is None:
            source_logger.info(f"Table '{table}' has no single-column primary key; record lookup skipped.")
            return None

        key_value: Any = str(record_id)
        if primary_key.category == ColumnCategory.NUMERIC:
            if not INTEGER_ID.fullmatch(key_value):
                return None
            key_value = int(key_value)

        rows = self.connector.execute_read_only_query(
            f"SELECT * FROM {quote_identifier(table)} "
            f"WHERE {quote_identifier(Identifier(primary_key.name))} = :record_id LIMIT 1",
            {"record_id": key_value},
        )
        return rows[0] if rows else None

    def _get_content_record(self, type_slug: str, record_id):
        """Returns (record, meta). Both the id and the post type must match."""
        if record_id is None or not CONTENT_ID.fullmatch(str(record_id)) or int(record_id) <= 0:
            return None, None

        tables = self.introspector.list_tables()
        if CONTENT_TABLE not in tables or DISCRIMINATOR_TABLE not in tables:
            source_logger.warning("Content tables are missing; content lookups return nothing.")
            return None, None

        type_rows = self.connector.execute_read_only_query(
            f"SELECT * FROM {quote_identifier(Identifier(DISCRIMINATOR_TABLE))} "
            f"WHERE {quote_identifier(Identifier(DISCRIMINATOR_SLUG_COLUMN))} = :slug LIMIT 1",
            {"slug": type_slug},
        )
        if not type_rows:
            return None, None
        type_row = type_rows[0]

        rows = self.connector.execute_read_only_query(
            f"SELECT * FROM {quote_identifier(Identifier(CONTENT_TABLE))} "
            f"WHERE \"id\" = :record_id AND {quote_identifier(Identifier(DISCRIMINATOR_COLUMN))} = :type_id LIMIT 1",
            {"record_id": int(record_id), "type_id": type_row['id']},
        )
        if not rows:
            return None, None

        record = rows[0]
        schema = parse_meta_schema(type_row.get('meta_schema'))
        meta = decode_meta_values(record.get('meta_values'), schema, self.meta_validation_mode)
        return record, meta

    def delete_template(self, type_token: str, kind: Optional[SourceKind] = None) -> Optional[str]:
        """Delete endpoint template for table sources that expose one."""
        kind = kind or self.resolve_kind(type_token)
        if kind != SourceKind.TABLE:
            return None
        return TABLE_DELETE_TEMPLATE.get(type_token)


def _coerce(params: ParamsLike, model):
    if params is None:
        return model()
    if isinstance(params, model):
        return params
    if isinstance(params, QueryParameters):
        return model.model_validate(params.model_dump())
    return model.model_validate(params)
