"""
db/tables.py
------------
Column descriptors and the table allow-list.

Each table the DAL may touch is registered once with its ordered columns.
The DAL checks every call against this registry before building SQL, so a
positional value in the wrong slot is rejected instead of being written.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from db.errors import SchemaMismatchError, UnknownTableError
from db.query_builder import quote_identifier

ID_COLUMN = "id"

# INTEGER columns are stored as BIGINT
INT64_MIN = -2**63
INT64_MAX = 2**63 - 1


class ColumnType(Enum):
    """Semantic column types and the Python values they accept."""

    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    FLOAT = "float"

    def accepts(self, value: Any) -> bool:
        if self is ColumnType.BOOLEAN:
            return isinstance(value, bool)
        # bool is an int subclass and must not pass as a number
        if isinstance(value, bool):
            return False
        if self is ColumnType.INTEGER:
            return isinstance(value, int) and INT64_MIN <= value <= INT64_MAX
        if self is ColumnType.FLOAT:
            return isinstance(value, (int, float))
        return isinstance(value, str)


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType
    nullable: bool = False

    def accepts(self, value: Any) -> bool:
        if value is None:
            return self.nullable
        return self.type.accepts(value)


@dataclass(frozen=True)
class Table:
    """
    An ordered column layout for one relation.

    Attributes:
        name: Table name (a plain SQL identifier).
        columns: Columns in the positional order callers must follow.
    """
    name: str
    columns: tuple[Column, ...]

    def __post_init__(self) -> None:
        quote_identifier(self.name)
        names = [c.name for c in self.columns]
        for name in names:
            quote_identifier(name)
        if len(set(names)) != len(names):
            raise ValueError(f"Table '{self.name}' has duplicate column names: {names}")
        if ID_COLUMN not in names:
            raise ValueError(f"Table '{self.name}' has no '{ID_COLUMN}' column")

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def id_column(self) -> Column:
        return next(c for c in self.columns if c.name == ID_COLUMN)

    @property
    def update_columns(self) -> tuple[Column, ...]:
        """Every column except ``id``, in registered order."""
        return tuple(c for c in self.columns if c.name != ID_COLUMN)

    def check_values(self, values: Sequence[Any], columns: Optional[Sequence[Column]] = None) -> None:
        """
        Validate positional values against a column layout.

        Args:
            values: Values in positional order.
            columns: Layout to check against (defaults to all columns).

        Raises:
            SchemaMismatchError: On a count mismatch or a value of the wrong type.
        """
        columns = self.columns if columns is None else columns
        if len(values) != len(columns):
            raise SchemaMismatchError(
                f"Table '{self.name}' expects {len(columns)} values "
                f"({', '.join(c.name for c in columns)}), got {len(values)}"
            )
        for column, value in zip(columns, values):
            if not column.accepts(value):
                raise SchemaMismatchError(
                    f"Column '{self.name}.{column.name}' ({column.type.value}) "
                    f"rejects value of type {type(value).__name__}"
                )

    def check_id(self, row_id: Any) -> None:
        if row_id is None or not self.id_column.type.accepts(row_id):
            raise SchemaMismatchError(
                f"Invalid id for table '{self.name}': {row_id!r}"
            )


class TableRegistry:
    """Closed allow-list of tables the DAL may address."""

    def __init__(self, tables: Sequence[Table] = ()) -> None:
        self._tables: dict[str, Table] = {}
        for table in tables:
            self.register(table)

    def register(self, table: Table) -> Table:
        if table.name in self._tables:
            raise ValueError(f"Table '{table.name}' is already registered")
        self._tables[table.name] = table
        return table

    def get(self, name: str) -> Table:
        try:
            return self._tables[name]
        except (KeyError, TypeError):
            raise UnknownTableError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tables


EVENTS = Table(
    "events",
    (
        Column("id", ColumnType.INTEGER),
        Column("name", ColumnType.TEXT),
        Column("payload", ColumnType.TEXT),
    ),
)


def default_registry() -> TableRegistry:
    """Registry holding every table this service writes to."""
    return TableRegistry([EVENTS])
