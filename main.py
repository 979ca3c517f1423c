# ContentLink/main.py
import logging
import os
import sys
import tempfile
from typing import Optional

from sqlalchemy import create_engine

from config.settings import DB_URI, REDIS_URL
from core_logic.content_cache import InMemoryCacheStore, RedisCacheStore
from core_logic.content_source import ContentSourceResolver
from core_logic.safe_connector import SafeDatabaseConnector
from ingestion.demo_seed import seed_demo_database
from ingestion.introspection import SchemaIntrospector

# Configure basic logging to see the flow
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
main_logger = logging.getLogger('ContentLink.Main')


# --- 1. System Initialization ---
def initialize_system(db_uri: str, redis_url: Optional[str] = REDIS_URL) -> ContentSourceResolver:
    main_logger.info("--- 1. INITIALIZING CONTENT LINK ENGINE ---")

    connector = SafeDatabaseConnector(db_uri)
    introspector = SchemaIntrospector(connector)

    # Redis when configured, otherwise a process-local store
    if redis_url:
        cache_store = RedisCacheStore.from_url(redis_url)
        main_logger.info(f"Using Redis cache store at {redis_url}")
    else:
        cache_store = InMemoryCacheStore()
        main_logger.info("Using in-memory cache store.")

    resolver = ContentSourceResolver(connector, introspector, cache_store=cache_store)
    main_logger.info(f"--- Engine Ready. Known tables: {introspector.list_tables()} ---")
    return resolver


# --- 2. Request Handling ---
def process_request(resolver: ContentSourceResolver, type_token: str, params: Optional[dict] = None, record_id: Optional[str] = None):
    main_logger.info(f"\n--- PROCESSING REQUEST: type='{type_token}' params={params} id={record_id} ---")

    # The kind is resolved once and handed to every downstream call
    kind = resolver.resolve_kind(type_token)
    main_logger.info(f"Source kind: {kind.value}")

    if record_id is not None:
        found = resolver.get_record_by_id(type_token, record_id, kind=kind)
        print(found.model_dump_json(indent=2))
        return found

    result = resolver.list_records(type_token, params, kind=kind)
    print(f"{type_token}: page {result.page}/{result.total_pages}, {result.total} total, columns={result.columns}")
    for item in result.items:
        print(f"  {item}")
    delete_template = resolver.delete_template(type_token, kind=kind)
    if delete_template:
        print(f"  delete via {delete_template}")
    return result


if __name__ == '__main__':
    # Without a configured database, run against a freshly seeded SQLite file
    if os.getenv("CONTENT_LINK_DB_URI"):
        db_uri = DB_URI
    else:
        db_uri = f"sqlite:///{os.path.join(tempfile.mkdtemp(prefix='contentlink-'), 'demo.db')}"
        seed_demo_database(create_engine(db_uri))

    resolver = initialize_system(db_uri)

    # Usage: python main.py <type> [id]
    if len(sys.argv) > 1:
        process_request(resolver, sys.argv[1], record_id=sys.argv[2] if len(sys.argv) > 2 else None)
        sys.exit(0)

    # --- SIMULATED REQUESTS ---

    # Case 1: Plain table listing
    process_request(resolver, "settings", {"limit": 10, "page": 1})

    # Case 2: Filtered table listing
    process_request(resolver, "settings", {"filter": {"name": "setup"}})

    # Case 3: Foreign key projection, ordered by a joined column
    process_request(resolver, "translations_languages", {"order": "locales_language", "orderDir": "asc"})

    # Case 4: Same request again is served from the cache
    process_request(resolver, "translations_languages", {"orderDir": "asc", "order": "locales_language"})

    # Case 5: Content partition with categories and tags
    process_request(resolver, "post", {"order": "title", "orderDir": "asc"})

    # Case 6: Record lookups on both paths
    process_request(resolver, "settings", record_id="999")
    process_request(resolver, "post", record_id="1")
    process_request(resolver, "page", record_id="1")
