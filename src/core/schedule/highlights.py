"""
SEO highlight query parameters.

The content pipeline asks for the best upcoming sessions of a pool over a
date window: the sessions with the most free spots, skipping beginner and
coached sessions. This module turns raw query-string values into a
validated HighlightQuery. The SQL that ranks sessions lives in the
repository; everything here is pure and testable without a database.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

# Titles containing any of these are never highlighted. Matching is
# case-insensitive. "מתחיל" is Hebrew for "beginner".
EXCLUDED_TITLE_MARKERS: tuple[str, ...] = ("Beginner", "מתחיל", "Coach")

# Used when topxrecords is present but not a usable number.
FALLBACK_TOP_RECORDS = 10

SESSION_DATE_FORMAT = "%d-%m-%Y"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class InvalidHighlightQuery(ValueError):
    """Raised when highlight query parameters are missing or malformed."""
    pass


def parse_query_date(value: str) -> date:
    """
    Parse an ISO calendar date (yyyy-mm-dd).

    A full ISO datetime is accepted as well and truncated to its date.
    """
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        raise InvalidHighlightQuery("Invalid date format. Use yyyy-mm-dd")


def parse_top_records(value: str) -> int:
    """
    Parse the topxrecords parameter.

    Only the leading integer is read ("5abc" is 5). A value with no leading
    integer, or zero, falls back to FALLBACK_TOP_RECORDS. The result is
    never below 1.
    """
    match = _LEADING_INT.match(value or "")
    parsed = int(match.group(1)) if match else 0
    return max(1, parsed or FALLBACK_TOP_RECORDS)


def enumerate_session_dates(from_date: date, until_date: date) -> list[str]:
    """Every day from from_date to until_date inclusive, as dd-mm-yyyy."""
    days = (until_date - from_date).days
    return [
        (from_date + timedelta(days=offset)).strftime(SESSION_DATE_FORMAT)
        for offset in range(days + 1)
    ]


@dataclass(frozen=True)
class HighlightQuery:
    """Validated request for the top sessions of one pool over a date window."""
    from_date: date
    until_date: date
    pool_id: str
    top_records: int

    @classmethod
    def from_params(
        cls,
        fromdate: Optional[str],
        untildate: Optional[str],
        poolid: Optional[str],
        topxrecords: Optional[str] = None,
        default_top_records: str = "3",
        max_range_days: int = 0,
    ) -> "HighlightQuery":
        """
        Build a query from raw query-string values.

        Checks run in a fixed order so callers always see the first problem:
        missing parameters, unparseable dates, inverted range, range too long.
        max_range_days of 0 disables the length check.
        """
        if not fromdate or not untildate or not poolid:
            raise InvalidHighlightQuery("Missing required parameters.")

        from_date = parse_query_date(fromdate)
        until_date = parse_query_date(untildate)

        if from_date > until_date:
            raise InvalidHighlightQuery("fromdate must be before or equal to untildate")

        if max_range_days and (until_date - from_date).days + 1 > max_range_days:
            raise InvalidHighlightQuery(f"Date range cannot exceed {max_range_days} days")

        return cls(
            from_date=from_date,
            until_date=until_date,
            pool_id=poolid,
            top_records=parse_top_records(topxrecords or default_top_records),
        )

    @property
    def session_dates(self) -> list[str]:
        return enumerate_session_dates(self.from_date, self.until_date)
