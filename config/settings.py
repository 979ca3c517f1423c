# ContentLink/config/settings.py
import os
from dotenv import load_dotenv

# Load environment variables from a .env file (optional)
load_dotenv()


def _optional_int(name: str):
    raw = os.getenv(name)
    return int(raw) if raw else None


# --- Relational Store Configuration ---
# NOTE: The engine only reads. Point this at a user with read privileges.
DB_URI = os.getenv("CONTENT_LINK_DB_URI", "sqlite:///contentlink.db")
MAX_QUERY_TIMEOUT_SECONDS = int(os.getenv("MAX_QUERY_TIMEOUT_SECONDS", "5"))  # PostgreSQL statement timeout

# Store-owned objects that never count as user tables
INTERNAL_TABLE_PREFIXES = ("sqlite_", "drizzle", "__drizzle", "alembic_version")

# --- Listing Configuration ---
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))
DEFAULT_ORDER_DIR = "desc"

# --- Cache Configuration ---
CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "content:")
REDIS_URL = os.getenv("CONTENT_LINK_REDIS_URL")  # Unset = no Redis store
CACHE_TTL_SECONDS = _optional_int("CACHE_TTL_SECONDS")  # Unset = no expiry

# --- Content Meta Values ---
# One of: off | warn | strict
META_VALIDATION_MODE = os.getenv("META_VALIDATION_MODE", "warn").lower()
