"""
models/event.py
---------------
Domain model for ingested events.
"""

from dataclasses import astuple, dataclass


@dataclass(frozen=True)
class Event:
    """
    A single event record as stored in the `events` table.

    Attributes:
        id: Caller-assigned identifier, unique per table.
        name: Event name (e.g. 'click', 'login').
        payload: Opaque text blob, usually serialized JSON.
    """
    id: int
    name: str
    payload: str

    def as_row(self) -> tuple:
        """Values in `events` column order."""
        return astuple(self)
