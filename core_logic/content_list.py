# ContentLink/core_logic/content_list.py
from typing import Any, Dict, List, Optional, Set, Tuple
import logging

from config.content_model import (
    CONTENT_TABLE, DISCRIMINATOR_TABLE, DISCRIMINATOR_COLUMN, DISCRIMINATOR_SLUG_COLUMN,
    AUTHOR_TABLE, TAXONOMY_TABLE, TAXONOMY_LINK_TABLE, CATEGORY_TAXONOMY, TAG_TAXONOMY,
    CONTENT_SORTABLE_COLUMNS, CONTENT_DEFAULT_ORDER, CONTENT_LIST_COLUMNS,
)
from core_logic.data_models import ContentListItem, ContentListParameters, QueryResult
from core_logic.identifiers import Identifier, quote_identifier, like_contains
from core_logic.safe_connector import SafeDatabaseConnector
from ingestion.introspection import SchemaIntrospector

content_logger = logging.getLogger('ContentLink.ContentList')
content_logger.setLevel(logging.INFO)


def _q(name: str) -> str:
    # Only trusted names from config.content_model pass through here
    return quote_identifier(Identifier(name))


POSTS = f"{_q(CONTENT_TABLE)} AS p"
TYPES = f"{_q(DISCRIMINATOR_TABLE)} AS pt"
AUTHORS = f"{_q(AUTHOR_TABLE)} AS u"
LINKS = f"{_q(TAXONOMY_LINK_TABLE)} AS ptx"
TERMS = f"{_q(TAXONOMY_TABLE)} AS tx"

# Menu parents (meta show_in_menu = true) are navigation, not content
NOT_MENU_PARENT = (
    "(json_extract(p.\"meta_values\", '$.show_in_menu') IS NULL "
    "OR json_extract(p.\"meta_values\", '$.show_in_menu') != 1)"
)


class ContentListProjection:
    """
    Lists one content partition of the polymorphic posts table.
    Rows carry the author's name and the comma-joined names of their
    category and tag taxonomies.
    """
    def __init__(self, connector: SafeDatabaseConnector, introspector: SchemaIntrospector):
        self.connector = connector
        self.introspector = introspector

    def _taxonomy_exists(self, param_prefix: str) -> str:
        return (
            f"EXISTS (SELECT 1 FROM {LINKS} INNER JOIN {TERMS} ON ptx.\"term_id\" = tx.\"id\" "
            f"WHERE ptx.\"post_id\" = p.\"id\" AND tx.\"type\" = :{param_prefix}_type "
            f"AND tx.\"name\" LIKE :{param_prefix}_name)"
        )

    def _conditions(self, type_slug: str, params: ContentListParameters, tables: Set[str]) -> Tuple[List[str], Dict[str, Any]]:
        conditions = [f"pt.{_q(DISCRIMINATOR_SLUG_COLUMN)} = :type_slug", NOT_MENU_PARENT]
        bind: Dict[str, Any] = {"type_slug": type_slug}
        has_authors = AUTHOR_TABLE in tables
        has_taxonomies = TAXONOMY_TABLE in tables and TAXONOMY_LINK_TABLE in tables

        if params.status:
            conditions.append("p.\"status\" = :status")
            bind["status"] = params.status

        flt = params.filter
        if "title" in flt:
            conditions.append("p.\"title\" LIKE :title_like")
            bind["title_like"] = like_contains(flt["title"])
        if "status" in flt:
            conditions.append("p.\"status\" LIKE :status_like")
            bind["status_like"] = like_contains(flt["status"])
        if "author" in flt:
            if has_authors:
                conditions.append("u.\"name\" LIKE :author_like")
                bind["author_like"] = like_contains(flt["author"])
            else:
                conditions.append("1 = 0")
        for key, taxonomy in (("categories", CATEGORY_TAXONOMY), ("tags", TAG_TAXONOMY)):
            if key not in flt:
                continue
            if not has_taxonomies:
                conditions.append("1 = 0")
                continue
            conditions.append(self._taxonomy_exists(key))
            bind[f"{key}_type"] = taxonomy
            bind[f"{key}_name"] = like_contains(flt[key])
        return conditions, bind

    def _order_sql(self, params: ContentListParameters, has_authors: bool) -> str:
        order = params.order if params.order in CONTENT_SORTABLE_COLUMNS else CONTENT_DEFAULT_ORDER
        if order == "author":
            expression = "u.\"name\"" if has_authors else "p.\"id\""
        else:
            expression = f"p.{_q(order)}"
        return f"ORDER BY {expression} {params.order_dir.upper()}"

    def _labels_by_post(self, post_ids: List[int]) -> Dict[int, Dict[str, List[str]]]:
        labels = {post_id: {CATEGORY_TAXONOMY: [], TAG_TAXONOMY: []} for post_id in post_ids}
        if not post_ids:
            return labels
        placeholders = ", ".join(f":id{i}" for i in range(len(post_ids)))
        bind = {f"id{i}": post_id for i, post_id in enumerate(post_ids)}
        rows = self.connector.execute_read_only_query(
            f"SELECT ptx.\"post_id\" AS post_id, tx.\"name\" AS name, tx.\"type\" AS type "
            f"FROM {LINKS} INNER JOIN {TERMS} ON ptx.\"term_id\" = tx.\"id\" "
            f"WHERE ptx.\"post_id\" IN ({placeholders}) ORDER BY ptx.\"post_id\", tx.\"id\"",
            bind,
        )
        for row in rows:
            bucket = labels.get(row['post_id'], {}).get(row['type'])
            if bucket is not None:
                bucket.append(row['name'] or "")
        return labels

    def list_items(self, type_slug: str, params: Optional[ContentListParameters] = None) -> QueryResult:
        """One page of the `type_slug` partition, newest first unless ordered otherwise."""
        params = params or ContentListParameters()
        tables = set(self.introspector.list_tables())
        if CONTENT_TABLE not in tables or DISCRIMINATOR_TABLE not in tables:
            content_logger.warning("Content tables are missing; returning an empty listing.")
            return QueryResult.empty(params, CONTENT_LIST_COLUMNS)

        has_authors = AUTHOR_TABLE in tables
        has_taxonomies = TAXONOMY_TABLE in tables and TAXONOMY_LINK_TABLE in tables

        # --- 1. Shared FROM / WHERE ---
        conditions, bind = self._conditions(type_slug, params, tables)
        from_sql = f"FROM {POSTS} INNER JOIN {TYPES} ON p.{_q(DISCRIMINATOR_COLUMN)} = pt.\"id\""
        if has_authors:
            from_sql += f" LEFT JOIN {AUTHORS} ON p.\"author_id\" = u.\"id\""
        where_sql = " WHERE " + " AND ".join(conditions)

        # --- 2. Count and page ---
        count_rows = self.connector.execute_read_only_query(f"SELECT COUNT(*) AS c {from_sql}{where_sql}", bind)
        total = int(count_rows[0]['c']) if count_rows else 0

        author_sql = "u.\"name\" AS author" if has_authors else "NULL AS author"
        select_sql = (
            f"SELECT p.\"id\" AS id, p.\"title\" AS title, p.\"status\" AS status, "
            f"p.\"created_at\" AS created_at, p.\"updated_at\" AS updated_at, {author_sql} "
            f"{from_sql}{where_sql} {self._order_sql(params, has_authors)} LIMIT :limit OFFSET :offset"
        )
        rows = self.connector.execute_read_only_query(
            select_sql, dict(bind, limit=params.limit, offset=params.offset)
        )

        # --- 3. Category / tag aggregation for this page ---
        post_ids = [row['id'] for row in rows]
        labels = self._labels_by_post(post_ids) if has_taxonomies else {}

        items = []
        for row in rows:
            post_labels = labels.get(row['id'], {})
            items.append(ContentListItem(
                id=row['id'],
                title=row['title'] or "",
                categories=", ".join(post_labels.get(CATEGORY_TAXONOMY, [])),
                tags=", ".join(post_labels.get(TAG_TAXONOMY, [])),
                author=row['author'] or "",
                status=row['status'],
                created_at=row['created_at'],
                updated_at=row['updated_at'],
            ).model_dump())

        content_logger.info(f"Listed content type '{type_slug}': {len(items)} of {total} rows.")
        return QueryResult.build(items, total, params, list(CONTENT_LIST_COLUMNS))
