"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool, since request handlers run on
worker threads, with a semaphore in front of it so callers wait for a free
connection instead of failing on an exhausted pool.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2 import pool

from db.errors import StoreUnavailableError
from utils.logger import get_logger

logger = get_logger(__name__)


class ConnectionPool:
    """
    Bounded pool of autocommit connections.

    Args:
        dsn: libpq connection string.
        min_conn: Minimum number of connections to keep open.
        max_conn: Maximum number of connections allowed.
        acquire_timeout: Seconds to wait for a free connection.
    """

    def __init__(
        self,
        dsn: str,
        min_conn: int = 1,
        max_conn: int = 5,
        acquire_timeout: float = 5.0,
    ) -> None:
        self._dsn = dsn
        self._min_conn = min_conn
        self._max_conn = max_conn
        self._acquire_timeout = acquire_timeout
        self._pool: pool.ThreadedConnectionPool | None = None
        self._slots = threading.BoundedSemaphore(max_conn)

    def open(self) -> None:
        """
        Open the underlying pool.

        Raises:
            psycopg2.OperationalError: If the database is unreachable.
        """
        if self._pool is not None:
            return
        try:
            self._pool = pool.ThreadedConnectionPool(self._min_conn, self._max_conn, self._dsn)
            logger.info("Database connection pool initialized successfully.")
        except psycopg2.OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    def acquire(self):
        """
        Get a connection from the pool, waiting up to ``acquire_timeout``.

        Returns:
            A psycopg2 connection in autocommit mode.

        Raises:
            RuntimeError: If the pool has not been opened.
            StoreUnavailableError: If no connection is free in time or the
                database cannot be reached.
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call open() first.")
        if not self._slots.acquire(timeout=self._acquire_timeout):
            logger.warning(
                f"No database connection free after {self._acquire_timeout}s "
                f"(max {self._max_conn})"
            )
            raise StoreUnavailableError(
                f"Connection pool exhausted after waiting {self._acquire_timeout}s"
            )
        try:
            conn = self._pool.getconn()
        except psycopg2.Error as e:
            self._slots.release()
            logger.error(f"Failed to get a database connection: {e}")
            raise StoreUnavailableError(f"Database connection failed: {e}") from e
        try:
            conn.autocommit = True
        except psycopg2.Error as e:
            self._pool.putconn(conn, close=True)
            self._slots.release()
            logger.error(f"Discarding unusable database connection: {e}")
            raise StoreUnavailableError(f"Database connection failed: {e}") from e
        return conn

    def release(self, conn, discard: bool = False) -> None:
        """
        Return a connection back to the pool.

        Args:
            conn: The psycopg2 connection to release.
            discard: Close the connection instead of reusing it.
        """
        try:
            if self._pool is not None:
                self._pool.putconn(conn, close=discard or bool(conn.closed))
        finally:
            self._slots.release()

    @contextmanager
    def connection(self) -> Iterator:
        """Acquire a connection for the duration of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("Database connection pool closed.")
