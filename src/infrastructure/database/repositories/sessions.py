"""
Repository for the session schedule history table.

The repository encapsulates all SQL against SESSIONS_SCHEDULE_HISTORY:
appending snapshots, listing raw rows, and the ranked highlight query used
for SEO content. Handlers ask for what they need in domain terms and get
plain row dicts back, ready to serialize.
"""

import logging
from typing import Any, Sequence

from src.core.schedule.highlights import EXCLUDED_TITLE_MARKERS, HighlightQuery
from src.core.schedule.models import SESSION_COLUMNS, SessionRecord

from ..gateway import DatabaseGateway, StatementResult, first_value

logger = logging.getLogger(__name__)


HISTORY_TABLE = "SESSIONS_SCHEDULE_HISTORY"

INSERT_SESSION_SQL = f"""
    INSERT INTO {HISTORY_TABLE}
    ({", ".join(SESSION_COLUMNS)})
    VALUES ({", ".join("?" for _ in SESSION_COLUMNS)})
"""


def build_highlights_sql(date_count: int, marker_count: int = len(EXCLUDED_TITLE_MARKERS)) -> str:
    """
    Ranked highlight query for date_count session dates.

    Bind order: the session dates, the pool id, one LIKE pattern per
    excluded title marker, then the rank cutoff.

    LatestSessionUpdates finds the newest snapshot time of every session,
    FilteredLatestRecords joins back to get those snapshots, and
    RankedRecords numbers them per pool by free spots.
    """
    date_placeholders = ", ".join("?" for _ in range(date_count))
    title_filters = "".join(
        "\n    AND UPPER(SESSION_TITLE) NOT LIKE ?" for _ in range(marker_count)
    )

    return f"""
WITH LatestSessionUpdates AS (
  SELECT
    POOL_ID,
    SESSION_DATETIME,
    SESSION_TITLE,
    SESSION_SIDE,
    MAX(UPDATED_AT) AS LatestUpdatedAt
  FROM {HISTORY_TABLE}
  WHERE SESSION_DATE IN ({date_placeholders})
    AND POOL_ID = ?{title_filters}
  GROUP BY POOL_ID, SESSION_DATETIME, SESSION_TITLE, SESSION_SIDE
),
FilteredLatestRecords AS (
  SELECT h.*
  FROM {HISTORY_TABLE} h
  JOIN LatestSessionUpdates l
    ON h.POOL_ID = l.POOL_ID
    AND h.SESSION_DATETIME = l.SESSION_DATETIME
    AND h.SESSION_TITLE = l.SESSION_TITLE
    AND h.SESSION_SIDE = l.SESSION_SIDE
    AND h.UPDATED_AT = l.LatestUpdatedAt
),
RankedRecords AS (
  SELECT
    *,
    ROW_NUMBER() OVER (
      PARTITION BY POOL_ID
      ORDER BY
        AVAILABLE_SPOTS DESC,
        UPDATED_AT DESC
    ) AS RN
  FROM FilteredLatestRecords
)
SELECT *
FROM RankedRecords
WHERE RN <= ?
ORDER BY
  POOL_ID,
  SESSION_DATETIME DESC,
  AVAILABLE_SPOTS DESC
"""


def title_exclusion_patterns() -> list[str]:
    """LIKE patterns matched against UPPER(SESSION_TITLE)."""
    return [f"%{marker.upper()}%" for marker in EXCLUDED_TITLE_MARKERS]


class SessionScheduleRepository:
    """
    Repository for session schedule snapshots.

    Each method corresponds to a use case:
    - insert_one / insert_many: append snapshots
    - list_recent: raw rows for inspection
    - top_highlights: best sessions per pool for SEO posts
    """

    def __init__(self, gateway: DatabaseGateway) -> None:
        self._gateway = gateway

    def insert_one(self, record: SessionRecord) -> StatementResult:
        """Append a single snapshot."""
        result = self._gateway.prepare(INSERT_SESSION_SQL).bind(*record.as_row()).run()

        logger.info(
            "Inserted session snapshot",
            extra={"pool_id": record.pool_id, "session_datetime": record.session_datetime}
        )
        return result

    def insert_many(self, records: Sequence[SessionRecord]) -> list[StatementResult]:
        """
        Append snapshots as one batch.

        One bound INSERT per record; the gateway commits them together.
        """
        statement = self._gateway.prepare(INSERT_SESSION_SQL)
        results = self._gateway.batch([statement.bind(*record.as_row()) for record in records])

        logger.info("Inserted session snapshot batch", extra={"count": len(results)})
        return results

    def list_recent(self, limit: int = 100) -> list[dict[str, Any]]:
        """Up to limit rows in storage order. No filtering, no sorting."""
        return self._gateway.prepare(
            f"SELECT * FROM {HISTORY_TABLE} LIMIT ?"
        ).bind(limit).all().results

    def top_highlights(self, query: HighlightQuery) -> list[dict[str, Any]]:
        """
        Top sessions of a pool over the query's date window.

        Only the latest snapshot of each session counts. Rows carry an RN
        column with their rank inside the pool.
        """
        dates = query.session_dates
        sql = build_highlights_sql(len(dates))
        params = [*dates, query.pool_id, *title_exclusion_patterns(), query.top_records]

        logger.debug(
            "Running highlight query",
            extra={"pool_id": query.pool_id, "dates": len(dates), "top_records": query.top_records}
        )

        return self._gateway.prepare(sql).bind(*params).all().results

    def ping(self) -> bool:
        """Cheap round trip for readiness checks."""
        return first_value(self._gateway.prepare("SELECT 1").all()) == 1
