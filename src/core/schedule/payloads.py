"""
Wire format of session snapshots.

The scraper sends snapshots keyed by the upper-case column names. This
model validates one such object and turns it into a SessionRecord. It is
shared by the ingest endpoints and the bulk import script.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import SessionRecord, SessionSide


class SessionPayload(BaseModel):
    """
    One session snapshot as sent by the scraper.

    Keys are the upper-case column names; lower-case attribute names are
    accepted too. Optional fields that are absent or falsy are stored as NULL.
    """
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    pool_id: Optional[str] = Field(None, alias="POOL_ID")
    updated_at: Optional[str] = Field(None, alias="UPDATED_AT")
    session_date: str = Field(alias="SESSION_DATE")
    session_time: str = Field(alias="SESSION_TIME")
    session_datetime: str = Field(alias="SESSION_DATETIME")
    session_title: str = Field(alias="SESSION_TITLE")
    session_side: SessionSide = Field(alias="SESSION_SIDE")
    available_spots: int = Field(alias="AVAILABLE_SPOTS")
    area: Optional[str] = Field(None, alias="AREA")

    @field_validator("pool_id", "updated_at", "area", mode="before")
    @classmethod
    def _falsy_to_none(cls, value: Any) -> Any:
        return value or None

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            pool_id=self.pool_id,
            updated_at=self.updated_at,
            session_date=self.session_date,
            session_time=self.session_time,
            session_datetime=self.session_datetime,
            session_title=self.session_title,
            session_side=self.session_side,
            available_spots=self.available_spots,
            area=self.area,
        )
