"""
Pool session schedule domain.

Exports the main types for convenient importing:
    from src.core.schedule import SessionRecord, HighlightQuery
"""

from .highlights import (
    EXCLUDED_TITLE_MARKERS,
    HighlightQuery,
    InvalidHighlightQuery,
    enumerate_session_dates,
    parse_top_records,
)
from .models import SESSION_COLUMNS, SessionRecord, SessionSide
from .payloads import SessionPayload

__all__ = [
    "EXCLUDED_TITLE_MARKERS",
    "HighlightQuery",
    "InvalidHighlightQuery",
    "SESSION_COLUMNS",
    "SessionPayload",
    "SessionRecord",
    "SessionSide",
    "enumerate_session_dates",
    "parse_top_records",
]
