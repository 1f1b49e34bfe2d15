"""
db/errors.py
------------
Error taxonomy for the data access layer.

Every failure raised by the query builder, the store or the DAL is a
`DataAccessError`. Driver exceptions from psycopg2 never leak past the store:
they are translated here and chained with ``raise ... from``.
"""

from typing import Any

import psycopg2
from psycopg2 import errors as pg_errors


class DataAccessError(Exception):
    """Base class for every data access failure."""


# ── Build ─────────────────────────────────────────────────

class BuildError(DataAccessError):
    """The requested operation cannot be rendered into valid SQL."""


class UnknownTableError(BuildError):
    """The table is not in the registry allow-list."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table '{table}' is not registered")


class SchemaMismatchError(BuildError):
    """Supplied values do not match the registered columns."""


# ── Store ─────────────────────────────────────────────────

class PrepareError(DataAccessError):
    """The store rejected the SQL text."""


class ExecError(DataAccessError):
    """Statement execution failed."""

    retryable = False


class ConstraintViolationError(ExecError):
    """A unique, foreign key or check constraint rejected the row."""


class StoreUnavailableError(ExecError):
    """The store could not be reached, or no pooled connection was free."""

    retryable = True


class StatementTimeoutError(ExecError):
    """The statement ran past its timeout and was cancelled by the server."""

    retryable = True


# ── Results ───────────────────────────────────────────────

class ScanError(DataAccessError):
    """A returned row does not fit the requested destination."""


class NotFoundError(DataAccessError):
    """No row exists for the given identifier."""

    def __init__(self, table: str, row_id: Any) -> None:
        self.table = table
        self.row_id = row_id
        super().__init__(f"No row in '{table}' with id {row_id!r}")


def translate_store_error(exc: psycopg2.Error, preparing: bool = False) -> DataAccessError:
    """
    Map a psycopg2 exception onto the DAL taxonomy.

    Args:
        exc: The driver exception.
        preparing: True when the failure happened while preparing the statement.

    Returns:
        The matching DataAccessError (not raised).
    """
    detail = str(exc).strip() or exc.__class__.__name__
    # QueryCanceled is an OperationalError subclass, so it has to be checked first.
    if isinstance(exc, pg_errors.QueryCanceled):
        return StatementTimeoutError(f"Statement cancelled: {detail}")
    if isinstance(exc, (psycopg2.OperationalError, psycopg2.InterfaceError)):
        return StoreUnavailableError(f"Database connection failed: {detail}")
    if preparing:
        return PrepareError(f"Failed to prepare statement: {detail}")
    if isinstance(exc, psycopg2.IntegrityError):
        return ConstraintViolationError(f"Constraint violation: {detail}")
    return ExecError(f"Failed to execute statement: {detail}")
