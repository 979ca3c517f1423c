# ContentLink/core_logic/data_models.py
import math
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.content_model import CONTENT_STATUSES
from config.settings import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, DEFAULT_ORDER_DIR


class ColumnCategory(str, Enum):
    """Coarse type family of a column; only TEXT columns are surfaced as joined labels."""
    TEXT = "text"
    NUMERIC = "numeric"
    OTHER = "other"


class SourceKind(str, Enum):
    """Where a type token's records live: its own table, or a partition of the content table."""
    TABLE = "table"
    CONTENT = "content"


class ColumnDescriptor(BaseModel):
    """Metadata for a single column, as reflected from the store."""
    name: str = Field(description="The exact column name (e.g., locale_code).")
    data_type: str = Field(description="The reflected SQL type (e.g., INTEGER, TEXT).")
    category: ColumnCategory
    primary_key: bool = False


class ForeignKeyDescriptor(BaseModel):
    """One declared foreign key edge; each one is a potential LEFT JOIN."""
    column: str
    referenced_table: str
    referenced_column: str


class TableDescriptor(BaseModel):
    """A table's columns and outgoing foreign keys. Rebuilt on every call."""
    name: str
    columns: List[ColumnDescriptor]
    foreign_keys: List[ForeignKeyDescriptor] = Field(default_factory=list)


class RelatedTableInfo(BaseModel):
    """A foreign key together with the text columns of the table it points to."""
    table: str
    fk_column: str
    ref_column: str
    text_columns: List[str] = Field(default_factory=list)


def _clamp_int(value: Any, default: int, lower: int, upper: Optional[int] = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = default
    number = max(lower, number)
    if upper is not None:
        number = min(upper, number)
    return number


class QueryParameters(BaseModel):
    """
    List request parameters. Values are normalized on construction:
    limit is clamped into [1, MAX_PAGE_LIMIT], page to >= 1, and any
    direction other than 'asc' becomes 'desc'.
    """
    model_config = ConfigDict(populate_by_name=True)

    order: Optional[str] = None
    order_dir: str = Field(default=DEFAULT_ORDER_DIR, alias="orderDir")
    limit: int = DEFAULT_PAGE_LIMIT
    page: int = 1
    filter: Dict[str, str] = Field(default_factory=dict)

    @field_validator("order", mode="before")
    @classmethod
    def _blank_order_is_none(cls, value):
        if value is None or str(value) == "":
            return None
        return str(value)

    @field_validator("order_dir", mode="before")
    @classmethod
    def _normalize_direction(cls, value):
        return "asc" if str(value).lower() == "asc" else "desc"

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value):
        return _clamp_int(value, DEFAULT_PAGE_LIMIT, 1, MAX_PAGE_LIMIT)

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value):
        return _clamp_int(value, 1, 1)

    @field_validator("filter", mode="before")
    @classmethod
    def _drop_blank_filters(cls, value):
        # Blank values never filter anything
        if not value:
            return {}
        return {str(k): str(v) for k, v in dict(value).items() if v is not None and str(v) != ""}

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ContentListParameters(QueryParameters):
    """List parameters for a content partition; adds an exact status match."""
    status: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status_or_none(cls, value):
        # Unknown statuses never filter anything
        if value is None or str(value) not in CONTENT_STATUSES:
            return None
        return str(value)


class QueryResult(BaseModel):
    """One page of a listing. `columns` always describes the projected shape."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[Dict[str, Any]]
    total: int = Field(ge=0)
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")
    columns: List[str]

    @classmethod
    def build(cls, items: List[Dict[str, Any]], total: int, params: QueryParameters, columns: List[str]) -> "QueryResult":
        return cls(
            items=items,
            total=total,
            page=params.page,
            limit=params.limit,
            total_pages=max(1, math.ceil(total / params.limit)),
            columns=columns,
        )

    @classmethod
    def empty(cls, params: QueryParameters, columns: Optional[List[str]] = None) -> "QueryResult":
        return cls.build([], 0, params, list(columns or []))


class ContentRecordResult(BaseModel):
    """Outcome of a single-record lookup for the edit page."""
    kind: SourceKind
    record: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Decoded meta values; content records only.")


class MetaSchemaItem(BaseModel):
    """One declared meta value key with its type hint and optional default."""
    key: str
    type: str
    default: Any = None


class ContentListItem(BaseModel):
    """A content row as shown in the admin listing."""
    id: int
    title: str = ""
    categories: str = ""
    tags: str = ""
    author: str = ""
    status: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
