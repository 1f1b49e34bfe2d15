"""
repositories/dal.py
-------------------
Generic data access layer: create/read/update/delete on any table in the
registry, without per-table SQL.

Values are positional and must follow the registered column order. Every
call is checked against the table's columns before SQL is built, and each
statement is prepared, executed once and released within the call.
"""

from typing import Any, Callable, Optional, TypeVar

from db.errors import DataAccessError, NotFoundError, ScanError
from db.query_builder import (
    build_delete_by_id,
    build_insert,
    build_select_by_id,
    build_update_by_id,
)
from db.tables import Table, TableRegistry
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class DataAccessLayer:
    """
    CRUD verbs shared by every registered table.

    Args:
        store: Object exposing ``prepare(sql_text, timeout=None)`` that returns
            a context-managed statement (see ``db.store.PostgresStore``).
        registry: Allow-list of tables and their column layouts.
        timeout: Default statement timeout in seconds for every call.
    """

    def __init__(self, store, registry: TableRegistry, timeout: Optional[float] = None) -> None:
        self.store = store
        self.registry = registry
        self.timeout = timeout

    # ── CREATE ────────────────────────────────────────────

    def create(self, table_name: str, *values: Any, timeout: Optional[float] = None) -> None:
        """
        Insert one row.

        Args:
            table_name: A registered table.
            *values: One value per column, in registered column order.
            timeout: Statement timeout override in seconds.

        Raises:
            UnknownTableError: If the table is not registered.
            SchemaMismatchError: If the values do not fit the columns.
            PrepareError: If the store rejects the SQL.
            ExecError: On constraint violation, timeout or connection loss.
        """
        table = self.registry.get(table_name)
        table.check_values(values)
        sql = build_insert(table.name, len(values), table.column_names)
        try:
            self._execute(sql, values, timeout)
        except DataAccessError as e:
            logger.error(f"Failed to insert into {table.name}: {e}")
            raise
        logger.info(f"Added {table.name} row #{values[table.column_names.index('id')]}")

    # ── READ ──────────────────────────────────────────────

    def read(
        self,
        table_name: str,
        row_id: Any,
        into: Optional[Callable[..., T]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Fetch one row by id.

        Args:
            table_name: A registered table.
            row_id: Value of the ``id`` column.
            into: Optional factory called with the row's values in column
                order (e.g. a dataclass).
            timeout: Statement timeout override in seconds.

        Returns:
            The row as a tuple, or ``into(*row)`` when a factory is given.

        Raises:
            NotFoundError: If no row has this id.
            ScanError: If the row does not fit the columns or the factory.
        """
        table = self.registry.get(table_name)
        table.check_id(row_id)
        sql = build_select_by_id(table.name, table.column_names)
        try:
            with self.store.prepare(sql, timeout=self._timeout(timeout)) as stmt:
                row = stmt.query_row(row_id)
        except DataAccessError as e:
            logger.error(f"Failed to read {table.name} #{row_id}: {e}")
            raise
        if row is None:
            raise NotFoundError(table.name, row_id)
        values = self._scan(table, row)
        if into is None:
            return values
        try:
            return into(*values)
        except TypeError as e:
            target = getattr(into, "__name__", repr(into))
            raise ScanError(f"Cannot build {target} from {table.name} row: {e}") from e

    # ── UPDATE ────────────────────────────────────────────

    def update(self, table_name: str, row_id: Any, *values: Any, timeout: Optional[float] = None) -> None:
        """
        Overwrite every non-id column of one row.

        Args:
            table_name: A registered table.
            row_id: Value of the ``id`` column of the row to change.
            *values: One value per non-id column, in registered order.
            timeout: Statement timeout override in seconds.

        Raises:
            NotFoundError: If no row has this id.
            SchemaMismatchError, PrepareError, ExecError: As for create().
        """
        table = self.registry.get(table_name)
        table.check_id(row_id)
        table.check_values(values, table.update_columns)
        sql = build_update_by_id(table.name, [c.name for c in table.update_columns])
        try:
            affected = self._execute(sql, (*values, row_id), timeout)
        except DataAccessError as e:
            logger.error(f"Failed to update {table.name} #{row_id}: {e}")
            raise
        if affected == 0:
            logger.warning(f"Attempted to update non-existent {table.name} #{row_id}")
            raise NotFoundError(table.name, row_id)
        logger.info(f"Updated {table.name} row #{row_id}")

    # ── DELETE ────────────────────────────────────────────

    def delete(self, table_name: str, row_id: Any, timeout: Optional[float] = None) -> None:
        """
        Delete one row by id.

        Raises:
            NotFoundError: If no row has this id.
        """
        table = self.registry.get(table_name)
        table.check_id(row_id)
        sql = build_delete_by_id(table.name)
        try:
            affected = self._execute(sql, (row_id,), timeout)
        except DataAccessError as e:
            logger.error(f"Failed to delete {table.name} #{row_id}: {e}")
            raise
        if affected == 0:
            logger.warning(f"Attempted to delete non-existent {table.name} #{row_id}")
            raise NotFoundError(table.name, row_id)
        logger.info(f"Deleted {table.name} row #{row_id}")

    # ── Helpers ───────────────────────────────────────────

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.timeout if timeout is None else timeout

    def _execute(self, sql: str, args: tuple, timeout: Optional[float]) -> int:
        with self.store.prepare(sql, timeout=self._timeout(timeout)) as stmt:
            return stmt.execute(*args)

    @staticmethod
    def _scan(table: Table, row: tuple) -> tuple:
        if len(row) != len(table.columns):
            raise ScanError(
                f"Row from {table.name} has {len(row)} columns, expected {len(table.columns)}"
            )
        for column, value in zip(table.columns, row):
            if not column.accepts(value):
                raise ScanError(
                    f"Column '{table.name}.{column.name}' returned {type(value).__name__}, "
                    f"expected {column.type.value}"
                )
        return tuple(row)
