"""
services/event_service.py
-------------------------
Business logic for event ingestion.
Turns a decoded Event into a row in the `events` table via the DAL.
"""

from models.event import Event
from repositories.dal import DataAccessLayer
from utils.logger import get_logger

logger = get_logger(__name__)

EVENTS_TABLE = "events"


class EventService:
    """
    Handles ingestion of events.

    Each call is an independent insert: no retries, no deduplication.
    A duplicate id is rejected by the table's primary key.
    """

    def __init__(self, dal: DataAccessLayer):
        self.dal = dal

    def ingest(self, event: Event) -> None:
        """
        Persist one event.

        Raises:
            DataAccessError: Propagated unchanged from the DAL.
        """
        self.dal.create(EVENTS_TABLE, *event.as_row())
        logger.debug(f"Stored event #{event.id} ({event.name})")
