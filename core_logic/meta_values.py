# ContentLink/core_logic/meta_values.py
import copy
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from config.content_model import DEFAULT_META_SCHEMA
from config.settings import META_VALIDATION_MODE
from core_logic.data_models import MetaSchemaItem

meta_logger = logging.getLogger('ContentLink.Meta')
meta_logger.setLevel(logging.INFO)

VALIDATION_MODES = ("off", "warn", "strict")


class MetaValueError(ValueError):
    """A stored meta value does not match its declared type (strict mode only)."""


def default_meta_schema() -> List[MetaSchemaItem]:
    return [MetaSchemaItem(**copy.deepcopy(item)) for item in DEFAULT_META_SCHEMA]


def build_meta_schema(extensions: Iterable[Dict[str, Any]]) -> List[MetaSchemaItem]:
    """
    Inherits the default meta schema and applies extensions.
    An extension with an existing key replaces that item in place; new keys are appended.
    """
    by_key: Dict[str, MetaSchemaItem] = {item.key: item for item in default_meta_schema()}
    for item in extensions:
        parsed = item if isinstance(item, MetaSchemaItem) else MetaSchemaItem(**item)
        by_key[parsed.key] = parsed.model_copy(deep=True)
    return list(by_key.values())


def parse_meta_schema(raw: Optional[str]) -> List[MetaSchemaItem]:
    """Reads a post type's stored meta_schema; empty or unreadable text means the default schema."""
    if not raw:
        return default_meta_schema()
    try:
        items = json.loads(raw)
        if not isinstance(items, list) or not items:
            return default_meta_schema()
        return build_meta_schema(items)
    except (ValueError, TypeError, ValidationError) as e:
        meta_logger.warning(f"Unreadable meta_schema, using defaults: {e!r}")
        return default_meta_schema()


def _matches_type(value: Any, declared: str) -> bool:
    if value is None:
        return True
    if declared == "string":
        return isinstance(value, str)
    if declared == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if declared == "boolean":
        # Booleans are often persisted as 0/1
        return isinstance(value, bool) or value in (0, 1)
    if declared == "array":
        return isinstance(value, list)
    if declared == "object":
        return isinstance(value, dict)
    return True  # Unknown type hints are documentation only


def decode_meta_values(
    raw: Optional[str],
    schema: Optional[List[MetaSchemaItem]] = None,
    mode: str = META_VALIDATION_MODE,
) -> Dict[str, Any]:
    """
    Merges a content row's stored meta_values over the schema defaults.
    Type mismatches are ignored ('off'), logged ('warn') or raised ('strict').
    """
    if mode not in VALIDATION_MODES:
        raise ValueError(f"Unknown meta validation mode: {mode!r}")
    schema = schema if schema is not None else default_meta_schema()

    stored: Dict[str, Any] = {}
    if raw:
        try:
            loaded = json.loads(raw)
            stored = loaded if isinstance(loaded, dict) else {}
        except ValueError:
            meta_logger.warning("Stored meta_values is not valid JSON; treating as empty.")

    values: Dict[str, Any] = {}
    for item in schema:
        if item.key in stored:
            value = stored[item.key]
            if mode != "off" and not _matches_type(value, item.type):
                message = f"Meta value '{item.key}' expected {item.type}, got {type(value).__name__}."
                if mode == "strict":
                    raise MetaValueError(message)
                meta_logger.warning(message)
            values[item.key] = value
        elif "default" in item.model_fields_set:
            values[item.key] = copy.deepcopy(item.default)

    # Keys outside the schema are kept untouched
    for key, value in stored.items():
        values.setdefault(key, value)
    return values
