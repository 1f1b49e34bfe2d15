"""
main.py
-------
Entry point for the CDP event ingestion gateway.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Build the FastAPI application with the ingestion routes.
    - Serve it with uvicorn until shutdown, then close the pool.
"""

import uvicorn
from fastapi import FastAPI

from config import (
    DATABASE_URL,
    DB_ACQUIRE_TIMEOUT_SECONDS,
    DB_POOL_MAX_CONN,
    DB_POOL_MIN_CONN,
    DB_STATEMENT_TIMEOUT_SECONDS,
    HTTP_HOST,
    HTTP_PORT,
)
from db.connection import ConnectionPool
from db.init_db import create_tables
from db.store import PostgresStore
from db.tables import default_registry
from handlers.event_handler import router as event_router
from repositories.dal import DataAccessLayer
from services.event_service import EventService
from utils.logger import get_logger

logger = get_logger(__name__)


def create_app(dal: DataAccessLayer) -> FastAPI:
    """Build the HTTP application around an existing DAL."""
    app = FastAPI(title="CDP Event Gateway")
    app.state.event_service = EventService(dal)
    app.include_router(event_router)
    return app


def main() -> None:
    """Initialize and run the gateway."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    pool = ConnectionPool(
        DATABASE_URL,
        min_conn=DB_POOL_MIN_CONN,
        max_conn=DB_POOL_MAX_CONN,
        acquire_timeout=DB_ACQUIRE_TIMEOUT_SECONDS,
    )
    pool.open()
    try:
        create_tables(pool)

        # ── 2. Wire the data access layer ─────────────────
        store = PostgresStore(pool, statement_timeout=DB_STATEMENT_TIMEOUT_SECONDS)
        dal = DataAccessLayer(store, default_registry())
        app = create_app(dal)

        # ── 3. Serve ──────────────────────────────────────
        logger.info(f"Data Collection Gateway is running on {HTTP_HOST}:{HTTP_PORT}")
        uvicorn.run(app, host=HTTP_HOST, port=HTTP_PORT, log_config=None)
    finally:
        # ── 4. Cleanup on shutdown ────────────────────────
        pool.close()
        logger.info("Gateway stopped.")


if __name__ == "__main__":
    main()
