# ContentLink/ingestion/demo_seed.py
# A small SQLite content database: system tables plus the polymorphic
# content tables. Used by main.py and the test suite. Migrations proper are
# owned by the surrounding application.
import json
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

from config.content_model import DEFAULT_META_SCHEMA

seed_logger = logging.getLogger('ContentLink.Seed')
seed_logger.setLevel(logging.INFO)

SEED_TIMESTAMP = 1_700_000_000_000

DEMO_SCHEMA = [
    """CREATE TABLE settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        name TEXT NOT NULL,
        value TEXT NOT NULL,
        autoload INTEGER DEFAULT 1 NOT NULL
    )""",
    """CREATE TABLE "user" (
        id TEXT PRIMARY KEY NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        email_verified INTEGER DEFAULT 0 NOT NULL,
        image TEXT,
        role INTEGER DEFAULT 3,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL
    )""",
    """CREATE TABLE locales (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        language TEXT NOT NULL,
        hello_world TEXT NOT NULL,
        locale_code TEXT NOT NULL UNIQUE,
        country TEXT NOT NULL,
        timezone TEXT NOT NULL
    )""",
    """CREATE TABLE translations (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        namespace TEXT NOT NULL,
        key TEXT NOT NULL,
        created_at INTEGER,
        updated_at INTEGER
    )""",
    """CREATE TABLE translations_languages (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        id_translations INTEGER NOT NULL REFERENCES translations(id) ON DELETE CASCADE,
        id_locale_code INTEGER NOT NULL REFERENCES locales(id) ON DELETE CASCADE,
        value TEXT NOT NULL
    )""",
    """CREATE TABLE post_types (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        meta_schema TEXT,
        created_at INTEGER,
        updated_at INTEGER
    )""",
    """CREATE TABLE posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        post_type_id INTEGER NOT NULL REFERENCES post_types(id) ON DELETE RESTRICT,
        parent_id INTEGER REFERENCES posts(id) ON DELETE SET NULL,
        author_id TEXT REFERENCES "user"(id) ON DELETE SET NULL,
        title TEXT NOT NULL,
        slug TEXT NOT NULL UNIQUE,
        excerpt TEXT,
        body TEXT,
        status TEXT DEFAULT 'draft',
        meta_values TEXT,
        published_at INTEGER,
        created_at INTEGER,
        updated_at INTEGER
    )""",
    """CREATE TABLE taxonomies (
        id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
        name TEXT NOT NULL,
        slug TEXT NOT NULL,
        description TEXT,
        type TEXT NOT NULL,
        parent_id INTEGER REFERENCES taxonomies(id) ON DELETE SET NULL,
        created_at INTEGER,
        updated_at INTEGER
    )""",
    """CREATE TABLE posts_taxonomies (
        post_id INTEGER NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
        term_id INTEGER NOT NULL REFERENCES taxonomies(id) ON DELETE CASCADE,
        PRIMARY KEY (post_id, term_id)
    )""",
]


def _seed_rows():
    now = SEED_TIMESTAMP
    meta_schema = json.dumps(DEFAULT_META_SCHEMA)
    return [
        ("INSERT INTO settings (name, value, autoload) VALUES (:name, :value, 1)", [
            {"name": "site_name", "value": "My Site"},
            {"name": "setup_done", "value": "Y"},
        ]),
        ('INSERT INTO "user" (id, name, email, created_at, updated_at) VALUES (:id, :name, :email, :now, :now)', [
            {"id": "user-1", "name": "Author One", "email": "author@example.com", "now": now},
        ]),
        ("INSERT INTO locales (language, hello_world, locale_code, country, timezone) "
         "VALUES (:language, :hello, :code, :country, :tz)", [
            {"language": "English", "hello": "Hello World", "code": "en", "country": "United States", "tz": "UTC-5"},
            {"language": "Portuguese", "hello": "Olá Mundo", "code": "pt_br", "country": "Brazil", "tz": "UTC-3"},
        ]),
        ("INSERT INTO translations (namespace, key, created_at, updated_at) VALUES (:ns, :key, :now, :now)", [
            {"ns": "admin.menu", "key": "dashboard", "now": now},
        ]),
        # Portuguese first so that id order differs from language order
        ("INSERT INTO translations_languages (id_translations, id_locale_code, value) VALUES (1, :locale, :value)", [
            {"locale": 2, "value": "Painel"},
            {"locale": 1, "value": "Dashboard"},
        ]),
        ("INSERT INTO post_types (slug, name, meta_schema, created_at, updated_at) "
         "VALUES (:slug, :name, :schema, :now, :now)", [
            {"slug": "post", "name": "Post", "schema": meta_schema, "now": now},
            {"slug": "page", "name": "Page", "schema": meta_schema, "now": now},
        ]),
        ("INSERT INTO posts (post_type_id, author_id, title, slug, status, meta_values, created_at, updated_at) "
         "VALUES (:type_id, 'user-1', :title, :slug, :status, :meta, :created, :created)", [
            {"type_id": 1, "title": "First Post", "slug": "first-post", "status": "published",
             "meta": json.dumps({"menu_order": 3, "icon": "line-md:star"}), "created": now},
            {"type_id": 1, "title": "Second Post", "slug": "second-post", "status": "draft",
             "meta": None, "created": now + 1},
            {"type_id": 1, "title": "Third Post", "slug": "third-post", "status": "published",
             "meta": None, "created": now + 2},
            {"type_id": 2, "title": "About Page", "slug": "about", "status": "published",
             "meta": None, "created": now},
            {"type_id": 1, "title": "Menu Parent", "slug": "menu-parent", "status": "published",
             "meta": json.dumps({"show_in_menu": True}), "created": now + 3},
        ]),
        ("INSERT INTO taxonomies (name, slug, type, created_at, updated_at) VALUES (:name, :slug, :type, :now, :now)", [
            {"name": "News", "slug": "news", "type": "category", "now": now},
            {"name": "Tech", "slug": "tech", "type": "category", "now": now},
            {"name": "python", "slug": "python", "type": "tag", "now": now},
        ]),
        ("INSERT INTO posts_taxonomies (post_id, term_id) VALUES (:post_id, :term_id)", [
            {"post_id": 1, "term_id": 1},
            {"post_id": 1, "term_id": 3},
            {"post_id": 3, "term_id": 2},
        ]),
    ]


def seed_demo_database(engine: Engine) -> None:
    """Creates the demo tables and rows in an empty database."""
    with engine.begin() as connection:
        for statement in DEMO_SCHEMA:
            connection.execute(text(statement))
        for statement, rows in _seed_rows():
            connection.execute(text(statement), rows)
    seed_logger.info(f"Seeded demo database ({len(DEMO_SCHEMA)} tables).")
