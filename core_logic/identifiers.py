# ContentLink/core_logic/identifiers.py
import re
from typing import NewType, Optional

# A table or column name that passed the grammar below. Only values of this
# type may be placed structurally into generated SQL text.
Identifier = NewType("Identifier", str)

VALID_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def sanitize_identifier(token) -> Optional[Identifier]:
    """Returns the token as an Identifier, or None when it fails the grammar."""
    if not isinstance(token, str) or not VALID_IDENTIFIER.fullmatch(token):
        return None
    return Identifier(token)


def quote_identifier(name: Identifier) -> str:
    """Double-quotes an Identifier for use in SQL text."""
    return '"' + name.replace('"', '""') + '"'


def qualified(alias: Identifier, column: Identifier) -> str:
    return f"{quote_identifier(alias)}.{quote_identifier(column)}"


def like_contains(value: str) -> str:
    """Bound-parameter value for a substring LIKE match."""
    return f"%{value}%"
