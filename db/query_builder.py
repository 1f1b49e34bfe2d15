"""
db/query_builder.py
-------------------
Renders CRUD intents into PostgreSQL text with numbered positional
placeholders ($1, $2, ...). Pure functions, no I/O.

Identifiers cannot be bound as parameters, so every table and column name
is validated and double-quoted before it reaches the SQL text.
"""

import re
from typing import Optional, Sequence

from db.errors import BuildError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_PLACEHOLDER = re.compile(r"\$(\d+)")


def quote_identifier(name: str) -> str:
    """
    Validate a table/column name and return it double-quoted.

    Raises:
        BuildError: If the name is not a plain identifier.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise BuildError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def placeholders(count: int, start: int = 1) -> str:
    """Return ``$start, ..., $(start+count-1)`` joined by commas."""
    return ", ".join(f"${i}" for i in range(start, start + count))


def build_insert(table: str, value_count: int, columns: Optional[Sequence[str]] = None) -> str:
    """
    Build ``INSERT INTO "table" [(cols)] VALUES ($1, ..., $n)``.

    Args:
        table: Target table name.
        value_count: Number of values that will be bound (>= 1).
        columns: Optional column names; must match ``value_count`` when given.

    Raises:
        BuildError: On a non-positive count or a column/count mismatch.
    """
    if value_count < 1:
        raise BuildError(f"Insert into {table!r} needs at least one value")
    column_clause = ""
    if columns is not None:
        if len(columns) != value_count:
            raise BuildError(
                f"Insert into {table!r}: {len(columns)} columns for {value_count} values"
            )
        column_clause = " (" + ", ".join(quote_identifier(c) for c in columns) + ")"
    return (
        f"INSERT INTO {quote_identifier(table)}{column_clause} "
        f"VALUES ({placeholders(value_count)})"
    )


def build_select_by_id(table: str, columns: Optional[Sequence[str]] = None) -> str:
    """Build a point select on ``id``; one placeholder."""
    select_list = "*"
    if columns:
        select_list = ", ".join(quote_identifier(c) for c in columns)
    return f'SELECT {select_list} FROM {quote_identifier(table)} WHERE "id" = $1'


def build_update_by_id(table: str, columns: Sequence[str]) -> str:
    """
    Build a full-row update keyed on ``id``.

    The SET list takes ``$1..$k`` in column order and the id is always the
    last placeholder, ``$k+1``.

    Raises:
        BuildError: If there is nothing to set.
    """
    if not columns:
        raise BuildError(f"Update of {table!r} needs at least one column to set")
    assignments = ", ".join(
        f"{quote_identifier(col)} = ${i}" for i, col in enumerate(columns, start=1)
    )
    return (
        f"UPDATE {quote_identifier(table)} SET {assignments} "
        f'WHERE "id" = ${len(columns) + 1}'
    )


def build_delete_by_id(table: str) -> str:
    """Build a delete keyed on ``id``; one placeholder."""
    return f'DELETE FROM {quote_identifier(table)} WHERE "id" = $1'


def count_placeholders(sql_text: str) -> int:
    """
    Count the distinct ``$n`` markers in a statement.

    Raises:
        BuildError: If the numbering is not contiguous from $1.
    """
    numbers = {int(n) for n in _PLACEHOLDER.findall(sql_text)}
    if not numbers:
        return 0
    highest = max(numbers)
    if numbers != set(range(1, highest + 1)):
        raise BuildError(f"Placeholders are not contiguous from $1: {sorted(numbers)}")
    return highest
