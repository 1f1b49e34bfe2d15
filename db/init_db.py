"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

import psycopg2

from db.connection import ConnectionPool
from utils.logger import get_logger

logger = get_logger(__name__)

# Column order must match db.tables.EVENTS.
SCHEMA_SQL = """
-- Events table: one row per ingested event
CREATE TABLE IF NOT EXISTS events (
    id              BIGINT PRIMARY KEY,
    name            TEXT NOT NULL,
    payload         TEXT NOT NULL
);
"""


def create_tables(pool: ConnectionPool) -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    with pool.connection() as conn:
        try:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            logger.info("Database schema initialized successfully.")
        except psycopg2.Error as e:
            logger.error(f"Failed to initialize schema: {e}")
            raise


if __name__ == "__main__":
    from config import DATABASE_URL

    schema_pool = ConnectionPool(DATABASE_URL, max_conn=1)
    schema_pool.open()
    try:
        create_tables(schema_pool)
    finally:
        schema_pool.close()
    print("Database schema created successfully.")
