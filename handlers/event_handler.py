"""
handlers/event_handler.py
-------------------------
HTTP ingestion endpoint: POST /events.
Decodes one JSON event and delegates storage to EventService.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from db.errors import DataAccessError
from db.tables import INT64_MAX, INT64_MIN
from models.event import Event
from services.event_service import EventService
from utils.logger import get_logger

logger = get_logger(__name__)

CONFIRMATION_MESSAGE = "Event received and stored successfully"
STORE_FAILURE_MESSAGE = "Failed to store event"

router = APIRouter()


class EventPayload(BaseModel):
    """Request body for POST /events. Unknown keys are ignored."""

    model_config = ConfigDict(strict=True, extra="ignore")

    id: int = Field(ge=INT64_MIN, le=INT64_MAX)
    name: str
    payload: str

    def to_event(self) -> Event:
        return Event(id=self.id, name=self.name, payload=self.payload)


def get_event_service(request: Request) -> EventService:
    return request.app.state.event_service


@router.post("/events", response_class=PlainTextResponse)
async def receive_event(
    request: Request,
    service: EventService = Depends(get_event_service),
) -> PlainTextResponse:
    """
    Store one event.

    The body is decoded as JSON whatever the Content-Type header says.
    Storage runs on a worker thread. Store failures are logged with full
    detail but the client only gets a generic message.
    """
    raw = await request.body()
    try:
        body = EventPayload.model_validate_json(raw)
    except ValidationError as e:
        detail = "; ".join(_format_error(err) for err in e.errors())
        client = request.client.host if request.client else "unknown"
        logger.info(f"Rejected event from {client}: {detail}")
        return PlainTextResponse(detail, status_code=400)

    event = body.to_event()
    try:
        await run_in_threadpool(service.ingest, event)
    except DataAccessError as e:
        logger.error(f"Failed to store event #{event.id}: {e.__class__.__name__}: {e}")
        return PlainTextResponse(STORE_FAILURE_MESSAGE, status_code=500)
    return PlainTextResponse(CONFIRMATION_MESSAGE, status_code=200)


def _format_error(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = err.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg
