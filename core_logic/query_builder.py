# ContentLink/core_logic/query_builder.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from core_logic.data_models import ColumnCategory, QueryParameters, QueryResult
from core_logic.identifiers import Identifier, sanitize_identifier, quote_identifier, qualified, like_contains
from core_logic.safe_connector import SafeDatabaseConnector
from ingestion.introspection import SchemaIntrospector

builder_logger = logging.getLogger('ContentLink.QueryBuilder')
builder_logger.setLevel(logging.INFO)

MAIN_ALIAS = Identifier("t")

# MySQL casts to CHAR; everything else accepts TEXT
CHAR_CAST_DIALECTS = ("mysql", "mariadb")


@dataclass
class ListStatementPlan:
    """The count and page statements for one listing, with their bound parameters."""
    count_sql: str
    select_sql: str
    bind_params: Dict[str, Any]
    columns: List[str]
    applied_filters: List[str] = field(default_factory=list)
    order_by: Optional[str] = None


class TableListQueryBuilder:
    """
    Lists the rows of any table named at runtime.
    Every foreign key pointing at a table with text columns is LEFT JOINed so
    that those columns appear as `<referencedTable>_<column>` next to the
    row's own columns. Those joined columns can be filtered and sorted like
    the table's own columns.
    """
    def __init__(self, connector: SafeDatabaseConnector, introspector: SchemaIntrospector):
        self.connector = connector
        self.introspector = introspector

    def _text_cast_type(self) -> str:
        return "CHAR" if self.connector.engine.dialect.name in CHAR_CAST_DIALECTS else "TEXT"

    def _plan_joins(self, main_columns: List[str], table: Identifier) -> Tuple[List[str], List[str], Dict[str, str]]:
        """Returns (joined alias columns, JOIN clauses, alias -> qualified column expression)."""
        alias_columns: List[str] = []
        joins: List[str] = []
        exposed: Dict[str, str] = {}
        taken = set(main_columns)

        for related in self.introspector.get_related_table_info(table):
            ref_table = sanitize_identifier(related.table)
            fk_column = sanitize_identifier(related.fk_column)
            ref_column = sanitize_identifier(related.ref_column)
            if ref_table is None or fk_column is None or ref_column is None:
                continue

            join_alias = Identifier(f"j{len(joins)}")
            added = False
            for text_column in related.text_columns:
                column = sanitize_identifier(text_column)
                alias = sanitize_identifier(f"{ref_table}_{text_column}")
                if column is None or alias is None or alias in taken:
                    continue
                taken.add(alias)
                alias_columns.append(alias)
                exposed[alias] = qualified(join_alias, column)
                added = True

            if added:
                joins.append(
                    f"LEFT JOIN {quote_identifier(ref_table)} AS {quote_identifier(join_alias)} "
                    f"ON {qualified(MAIN_ALIAS, fk_column)} = {qualified(join_alias, ref_column)}"
                )

        return alias_columns, joins, exposed

    def plan(self, table_name: str, params: QueryParameters) -> Optional[ListStatementPlan]:
        """Builds the statements for a listing, or None when the table is invalid or unknown."""

        # --- 1. Sanitize, then introspect ---
        table = sanitize_identifier(table_name)
        if table is None:
            builder_logger.info(f"Rejected table token {table_name!r}.")
            return None

        described = [c for c in self.introspector.list_columns(table) if sanitize_identifier(c.name)]
        main_columns = [c.name for c in described]
        non_text_columns = {c.name for c in described if c.category != ColumnCategory.TEXT}
        if not main_columns:
            builder_logger.info(f"Table '{table}' has no readable columns or does not exist.")
            return None

        # --- 2. Foreign key projection ---
        alias_columns, joins, exposed = self._plan_joins(main_columns, table)

        def resolve(key: str) -> Optional[str]:
            # Main table first, then exposed joined columns
            if key in main_columns:
                return qualified(MAIN_ALIAS, Identifier(key))
            return exposed.get(key)

        # --- 3. Filter predicate ---
        where_parts: List[str] = []
        bind_params: Dict[str, Any] = {}
        applied_filters: List[str] = []
        for key, value in params.filter.items():
            expression = resolve(key)
            if expression is None:
                continue
            if key in non_text_columns:
                expression = f"CAST({expression} AS {self._text_cast_type()})"
            param_name = f"f{len(where_parts)}"
            where_parts.append(f"{expression} LIKE :{param_name}")
            bind_params[param_name] = like_contains(value)
            applied_filters.append(key)

        # --- 4. Order ---
        projected = main_columns + alias_columns
        order_key = params.order if params.order and resolve(params.order) else projected[0]
        order_sql = f"ORDER BY {resolve(order_key)} {params.order_dir.upper()}"

        # --- 5. Statements ---
        select_list = [f"{qualified(MAIN_ALIAS, Identifier(c))} AS {quote_identifier(Identifier(c))}" for c in main_columns]
        select_list += [f"{exposed[a]} AS {quote_identifier(Identifier(a))}" for a in alias_columns]

        from_sql = f"FROM {quote_identifier(table)} AS {quote_identifier(MAIN_ALIAS)}"
        if joins:
            from_sql += " " + " ".join(joins)
        where_sql = f" WHERE {' AND '.join(where_parts)}" if where_parts else ""

        count_sql = f"SELECT COUNT(*) AS c {from_sql}{where_sql}"
        select_sql = f"SELECT {', '.join(select_list)} {from_sql}{where_sql} {order_sql} LIMIT :limit OFFSET :offset"

        return ListStatementPlan(
            count_sql=count_sql,
            select_sql=select_sql,
            bind_params=bind_params,
            columns=projected,
            applied_filters=applied_filters,
            order_by=order_key,
        )

    def build_list(self, table_name: str, params: Optional[QueryParameters] = None) -> QueryResult:
        """Runs the count and page statements for `table_name` and returns one page."""
        params = params or QueryParameters()
        plan = self.plan(table_name, params)
        if plan is None:
            return QueryResult.empty(params)

        builder_logger.debug(f"Count SQL: {plan.count_sql} | params={plan.bind_params}")
        count_rows = self.connector.execute_read_only_query(plan.count_sql, plan.bind_params)
        total = int(count_rows[0]['c']) if count_rows else 0

        page_params = dict(plan.bind_params, limit=params.limit, offset=params.offset)
        builder_logger.debug(f"Select SQL: {plan.select_sql} | params={page_params}")
        items = self.connector.execute_read_only_query(plan.select_sql, page_params)

        builder_logger.info(
            f"Listed '{table_name}': {len(items)} of {total} rows (page {params.page}, limit {params.limit})."
        )
        return QueryResult.build(items, total, params, plan.columns)
