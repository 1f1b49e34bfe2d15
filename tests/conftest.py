"""
Shared fixtures and in-process fakes for the test suite.

- FakeConnection / FakeCursor stand in for psycopg2 connections and record
  every statement sent to them.
- FakePool mimics db.connection.ConnectionPool (acquire/release).
- MemoryStore executes the SQL shapes the query builder emits against
  plain dicts, so the DAL can be exercised end to end without PostgreSQL.
"""

import re
import threading
from collections import defaultdict

import pytest
from fastapi.testclient import TestClient

from db.errors import BuildError, ConstraintViolationError
from db.query_builder import count_placeholders
from db.tables import default_registry
from main import create_app
from repositories.dal import DataAccessLayer


# ── psycopg2 fakes ────────────────────────────────────────

class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = -1
        self._row = None

    def execute(self, sql, params=None):
        self.conn.log.append((sql, params))
        for prefix, exc in self.conn.failures.items():
            if sql.startswith(prefix):
                raise exc
        if sql.startswith("EXECUTE"):
            self.rowcount = self.conn.rowcount
            self._row = self.conn.row

    def fetchone(self):
        return self._row

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class FakeConnection:
    def __init__(self):
        self.log = []
        self.failures = {}
        self.rowcount = 1
        self.row = None
        self.autocommit = False
        self.closed = 0

    def cursor(self):
        return FakeCursor(self)

    def statements(self):
        return [sql for sql, _ in self.log]


class FakePool:
    """Counts acquire/release; hands out `connection` or a fresh one per call."""

    def __init__(self, connection=None):
        self.connection = connection
        self.connections = []
        self.acquired = 0
        self.released = 0
        self.discarded = 0
        self.unavailable = None
        self._lock = threading.Lock()

    def acquire(self):
        if self.unavailable is not None:
            raise self.unavailable
        conn = self.connection or FakeConnection()
        with self._lock:
            self.connections.append(conn)
            self.acquired += 1
        return conn

    def release(self, conn, discard=False):
        with self._lock:
            self.released += 1
            if discard:
                self.discarded += 1

    @property
    def outstanding(self):
        return self.acquired - self.released


# ── In-memory store ───────────────────────────────────────

_QUOTED = re.compile(r'"(\w+)"')
_INSERT = re.compile(r'^INSERT INTO "(\w+)" \(([^)]*)\) VALUES \(')
_SELECT = re.compile(r'^SELECT (.+) FROM "(\w+)" WHERE "id" = \$1$')
_UPDATE = re.compile(r'^UPDATE "(\w+)" SET (.+) WHERE "id" = \$\d+$')
_DELETE = re.compile(r'^DELETE FROM "(\w+)" WHERE "id" = \$1$')


class MemoryStatement:
    def __init__(self, store, sql_text):
        self.store = store
        self.sql_text = sql_text
        self.param_count = count_placeholders(sql_text)
        self.closed = False

    def execute(self, *args):
        self._check(args)
        with self.store.lock:
            if m := _INSERT.match(self.sql_text):
                table = self.store.tables[m.group(1)]
                row = dict(zip(_QUOTED.findall(m.group(2)), args))
                if row["id"] in table:
                    raise ConstraintViolationError(
                        "duplicate key value violates unique constraint"
                    )
                table[row["id"]] = row
                return 1
            if m := _UPDATE.match(self.sql_text):
                table = self.store.tables[m.group(1)]
                row_id = args[-1]
                if row_id not in table:
                    return 0
                table[row_id].update(zip(_QUOTED.findall(m.group(2)), args[:-1]))
                return 1
            if m := _DELETE.match(self.sql_text):
                return 1 if self.store.tables[m.group(1)].pop(args[0], None) else 0
        raise AssertionError(f"Unexpected statement: {self.sql_text}")

    def query_row(self, *args):
        self._check(args)
        m = _SELECT.match(self.sql_text)
        assert m, f"Unexpected query: {self.sql_text}"
        row = self.store.tables[m.group(2)].get(args[0])
        if row is None:
            return None
        return tuple(row.get(c) for c in _QUOTED.findall(m.group(1)))

    def close(self):
        if not self.closed:
            self.closed = True
            with self.store.lock:
                self.store.closed += 1

    def _check(self, args):
        if len(args) != self.param_count:
            raise BuildError(f"expected {self.param_count} arguments, got {len(args)}")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class MemoryStore:
    def __init__(self):
        self.tables = defaultdict(dict)
        self.lock = threading.Lock()
        self.prepared = []
        self.closed = 0
        self.fail = None

    def prepare(self, sql_text, timeout=None):
        if self.fail is not None:
            raise self.fail
        with self.lock:
            self.prepared.append((sql_text, timeout))
        return MemoryStatement(self, sql_text)


# ── Fixtures ──────────────────────────────────────────────

@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def dal(memory_store):
    return DataAccessLayer(memory_store, default_registry())


@pytest.fixture
def client(dal):
    return TestClient(create_app(dal))
