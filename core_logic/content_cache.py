# ContentLink/core_logic/content_cache.py
"""
Cache-aside for listings: read the key-value store first; on a miss, query
the relational store and write the result back only when it has rows.
Empty results are never stored, so a transient empty state cannot become a
cached false negative. The cache is best-effort: store errors and corrupt
payloads are logged and treated as misses.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol
from urllib.parse import quote

import redis
from pydantic import ValidationError

from config.settings import CACHE_KEY_PREFIX, CACHE_TTL_SECONDS
from core_logic.data_models import QueryParameters, QueryResult
from core_logic.identifiers import sanitize_identifier
from core_logic.query_builder import TableListQueryBuilder

cache_logger = logging.getLogger('ContentLink.Cache')
cache_logger.setLevel(logging.INFO)


class CacheStore(Protocol):
    """Minimal key-value contract; both calls may raise."""
    def get(self, key: str) -> Any: ...
    def put(self, key: str, value: str) -> None: ...


class InMemoryCacheStore:
    """Process-local store backed by a dict. No expiry or eviction."""
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)


class RedisCacheStore:
    """Redis-backed store. Errors are left to the caller (ContentCache swallows them)."""
    def __init__(self, client: "redis.Redis", ttl_seconds: Optional[int] = CACHE_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, redis_url: str, ttl_seconds: Optional[int] = CACHE_TTL_SECONDS) -> "RedisCacheStore":
        return cls(redis.from_url(redis_url, decode_responses=True), ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def put(self, key: str, value: str) -> None:
        if self.ttl_seconds:
            self.client.setex(key, self.ttl_seconds, value)
        else:
            self.client.set(key, value)


def _source_segment(source: str, partition: Optional[str] = None) -> str:
    # The whole table token must be an identifier; only a partition adds '/<slug>'
    table = sanitize_identifier(source) or "invalid"
    if partition is None:
        return table
    return f"{table}/{quote(str(partition), safe='')}"


def normalize_params(params: QueryParameters) -> Dict[str, Any]:
    """Canonical form of the parameters; filter entries are sorted by key."""
    normalized: Dict[str, Any] = {
        "order": params.order or "",
        "orderDir": params.order_dir,
        "limit": params.limit,
        "page": params.page,
        "filter": [[k, params.filter[k]] for k in sorted(params.filter)] if params.filter else "",
    }
    status = getattr(params, "status", None)
    if status:
        normalized["status"] = status
    return normalized


def build_content_cache_key(
    source: str, params: Optional[QueryParameters] = None, partition: Optional[str] = None
) -> str:
    """`content:<table>[/<partition>]:<params json>`; an unusable table token becomes 'invalid'."""
    params = params or QueryParameters()
    params_hash = json.dumps(normalize_params(params), separators=(",", ":"), ensure_ascii=False)
    return f"{CACHE_KEY_PREFIX}{_source_segment(source, partition)}:{params_hash}"


class ContentCache:
    """Cache-aside wrapper around any listing function. `store=None` disables caching."""
    def __init__(self, store: Optional[CacheStore] = None):
        self.store = store

    def _read(self, key: str) -> Optional[QueryResult]:
        try:
            payload = self.store.get(key)
        except Exception as e:
            cache_logger.warning(f"Cache read failed for {key[:48]}...: {e!r}. Falling back to the store.")
            return None
        if payload is None:
            return None

        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            if isinstance(payload, str):
                return QueryResult.model_validate_json(payload)
            return QueryResult.model_validate(payload)
        except (ValidationError, ValueError) as e:
            cache_logger.warning(f"Discarding malformed cache entry {key[:48]}...: {e!r}")
            return None

    def _write(self, key: str, result: QueryResult) -> None:
        try:
            self.store.put(key, result.model_dump_json(by_alias=True))
        except Exception as e:
            cache_logger.warning(f"Cache write failed for {key[:48]}...: {e!r}")

    def get_or_fetch(
        self,
        source: str,
        params: QueryParameters,
        fetch: Callable[[], QueryResult],
        partition: Optional[str] = None,
    ) -> QueryResult:
        key = build_content_cache_key(source, params, partition)

        if self.store is not None:
            cached = self._read(key)
            if cached is not None:
                cache_logger.debug(f"Cache hit: {key[:48]}...")
                return cached

        result = fetch()

        if self.store is not None and len(result.items) > 0:
            self._write(key, result)
        return result


def get_table_content_with_cache(
    cache_store: Optional[CacheStore],
    builder: TableListQueryBuilder,
    table: str,
    params: Optional[QueryParameters] = None,
) -> QueryResult:
    """Lists `table` through the cache: KV first, relational store on a miss."""
    params = params or QueryParameters()
    return ContentCache(cache_store).get_or_fetch(table, params, lambda: builder.build_list(table, params))
