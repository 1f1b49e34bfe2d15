"""
db/store.py
-----------
Prepare/execute/close boundary over the connection pool.

A statement is prepared server-side (PREPARE ... AS ...) on one pooled
connection, executed with positional arguments bound through psycopg2,
and released with DEALLOCATE before the connection goes back to the pool.
"""

import uuid
from typing import Any, Callable, Optional

import psycopg2

from db.connection import ConnectionPool
from db.errors import BuildError, DataAccessError, StoreUnavailableError, translate_store_error
from db.query_builder import count_placeholders
from utils.logger import get_logger

logger = get_logger(__name__)


class PreparedStatement:
    """
    One prepared statement bound to one pooled connection.

    Use it as a context manager; leaving the block deallocates the statement
    and releases the connection on every exit path.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        conn,
        sql_text: str,
        param_count: int,
        timeout_ms: Optional[int] = None,
    ) -> None:
        self.sql_text = sql_text
        self.param_count = param_count
        self.name = f"dal_{uuid.uuid4().hex}"
        self._pool = pool
        self._conn = conn
        self._timeout_ms = timeout_ms
        self._prepared = False
        self._broken = False
        self._closed = False

        if param_count:
            markers = ", ".join(["%s"] * param_count)
            self._execute_sql = f"EXECUTE {self.name} ({markers})"
        else:
            self._execute_sql = f"EXECUTE {self.name}"

    @property
    def closed(self) -> bool:
        return self._closed

    def prepare(self) -> None:
        """Apply the statement timeout and PREPARE the SQL text."""
        try:
            with self._conn.cursor() as cur:
                if self._timeout_ms:
                    cur.execute("SET statement_timeout = %s", (self._timeout_ms,))
                cur.execute(f"PREPARE {self.name} AS {self.sql_text}")
            self._prepared = True
        except psycopg2.Error as e:
            raise self._translate(e, preparing=True) from e

    def execute(self, *args: Any) -> int:
        """
        Execute the statement once.

        Returns:
            The number of rows affected.
        """
        return self._run(args, lambda cur: cur.rowcount)

    def query_row(self, *args: Any) -> Optional[tuple]:
        """Execute the statement and return the first row, or None."""
        return self._run(args, lambda cur: cur.fetchone())

    def close(self) -> None:
        """Deallocate the statement and release its connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            if not self._broken and (self._prepared or self._timeout_ms):
                with self._conn.cursor() as cur:
                    if self._prepared:
                        cur.execute(f"DEALLOCATE {self.name}")
                    if self._timeout_ms:
                        cur.execute("RESET statement_timeout")
        except psycopg2.Error as e:
            # The session-level statement dies with the connection.
            logger.warning(f"Failed to deallocate {self.name}, discarding connection: {e}")
            self._broken = True
        finally:
            self._pool.release(self._conn, discard=self._broken)

    def _run(self, args: tuple, collect: Callable[[Any], Any]) -> Any:
        if self._closed:
            raise RuntimeError(f"Statement {self.name} is already closed")
        if len(args) != self.param_count:
            raise BuildError(
                f"Statement expects {self.param_count} arguments, got {len(args)}: "
                f"{self.sql_text}"
            )
        try:
            with self._conn.cursor() as cur:
                cur.execute(self._execute_sql, args or None)
                return collect(cur)
        except psycopg2.Error as e:
            raise self._translate(e) from e

    def _translate(self, exc: psycopg2.Error, preparing: bool = False) -> DataAccessError:
        error = translate_store_error(exc, preparing=preparing)
        if isinstance(error, StoreUnavailableError):
            self._broken = True
        return error

    def __enter__(self) -> "PreparedStatement":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class PostgresStore:
    """
    Hands out prepared statements on pooled connections.

    Args:
        pool: An opened ConnectionPool.
        statement_timeout: Default per-statement timeout in seconds (None = server default).
    """

    def __init__(self, pool: ConnectionPool, statement_timeout: Optional[float] = None) -> None:
        self._pool = pool
        self._statement_timeout = statement_timeout

    def prepare(self, sql_text: str, timeout: Optional[float] = None) -> PreparedStatement:
        """
        Prepare ``sql_text`` on a pooled connection.

        Args:
            sql_text: SQL with $n placeholders.
            timeout: Seconds before the server cancels the statement;
                falls back to the store default.

        Raises:
            BuildError: If the placeholders are not numbered $1..$n.
            PrepareError: If PostgreSQL rejects the SQL text.
            StoreUnavailableError: If no connection can be obtained.
        """
        param_count = count_placeholders(sql_text)
        timeout = self._statement_timeout if timeout is None else timeout
        timeout_ms = int(timeout * 1000) if timeout else None

        conn = self._pool.acquire()
        statement = PreparedStatement(self._pool, conn, sql_text, param_count, timeout_ms)
        try:
            statement.prepare()
        except DataAccessError:
            statement.close()
            raise
        logger.debug(f"Prepared {statement.name}: {sql_text}")
        return statement
