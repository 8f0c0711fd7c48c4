"""
Domain models for pool session schedules.

A pool publishes its lane sessions (date, time, title, side of the pool) and
how many spots are still free. A scraper observes that schedule repeatedly
and every observation becomes one SessionRecord. Records are never updated:
the history table is an append-only log and the "current" state of a session
is whatever its most recent snapshot says.

These models have no dependencies on FastAPI or the database driver.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SessionSide(Enum):
    """Which half of the pool the session runs in."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"


# Column order of SESSIONS_SCHEDULE_HISTORY. Inserts bind positionally in
# exactly this order.
SESSION_COLUMNS: tuple[str, ...] = (
    "POOL_ID",
    "UPDATED_AT",
    "SESSION_DATE",
    "SESSION_TIME",
    "SESSION_DATETIME",
    "SESSION_TITLE",
    "SESSION_SIDE",
    "AVAILABLE_SPOTS",
    "AREA",
)


@dataclass(frozen=True)
class SessionRecord:
    """
    One observed snapshot of a pool session's scheduling state.

    The identity of a session is (pool_id, session_datetime, session_title,
    session_side); updated_at orders the snapshots of one session.
    session_date is kept as the caller sent it. The highlight query expects
    dd-mm-yyyy but ingest does not enforce it.
    """
    session_date: str
    session_time: str
    session_datetime: str
    session_title: str
    session_side: SessionSide
    available_spots: int
    pool_id: Optional[str] = None
    updated_at: Optional[str] = None
    area: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.session_side, SessionSide):
            raise ValueError("session_side must be LEFT or RIGHT")
        if isinstance(self.available_spots, bool) or not isinstance(self.available_spots, int):
            raise ValueError("available_spots must be an integer")

    def as_row(self) -> tuple[Any, ...]:
        """Values in SESSION_COLUMNS order, ready to bind."""
        return (
            self.pool_id,
            self.updated_at,
            self.session_date,
            self.session_time,
            self.session_datetime,
            self.session_title,
            self.session_side.value,
            self.available_spots,
            self.area,
        )
