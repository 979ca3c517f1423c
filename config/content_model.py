# ContentLink/config/content_model.py
# Fixed layout of the polymorphic content tables. These names are trusted
# constants and may appear structurally in SQL text.

# --- Polymorphic Content Tables ---
CONTENT_TABLE = "posts"
DISCRIMINATOR_TABLE = "post_types"
DISCRIMINATOR_COLUMN = "post_type_id"    # posts.post_type_id -> post_types.id
DISCRIMINATOR_SLUG_COLUMN = "slug"
AUTHOR_TABLE = "user"
TAXONOMY_TABLE = "taxonomies"
TAXONOMY_LINK_TABLE = "posts_taxonomies"

CATEGORY_TAXONOMY = "category"
TAG_TAXONOMY = "tag"

CONTENT_STATUSES = ("published", "draft", "archived")

# Columns the content listing may sort by, and the default
CONTENT_SORTABLE_COLUMNS = ("id", "title", "author", "status", "created_at", "updated_at")
CONTENT_DEFAULT_ORDER = "created_at"

# Shape of one content list row
CONTENT_LIST_COLUMNS = ["id", "title", "categories", "tags", "author", "status", "created_at", "updated_at"]

# --- Meta Schema ---
# Every post type inherits these keys; a post type's own meta_schema extends them.
DEFAULT_META_SCHEMA = [
    {"key": "menu_order", "type": "number", "default": 0},
    {"key": "parent_id", "type": "number"},
    {"key": "show_in_menu", "type": "boolean", "default": False},
    {"key": "menu_options", "type": "array", "default": []},
    {"key": "icon", "type": "string", "default": "line-md:document"},
    {"key": "post_thumbnail", "type": "boolean", "default": False},
]

# --- Admin Actions ---
# Table name -> delete endpoint template. Tables not listed expose no delete action.
TABLE_DELETE_TEMPLATE = {
    "user": "/api/users/{id}",
    "settings": "/api/settings/{id}",
    "posts": "/api/posts/{id}",
}
