"""
SEO highlight endpoint.

Feeds the post generator with the best upcoming sessions of a pool:

    GET /seo-highlights?fromdate=2024-01-01&untildate=2024-01-07&poolid=42&topxrecords=5

For every session in the window only its latest snapshot counts. Beginner
and coached sessions are skipped, and the remaining sessions are ranked by
free spots. The response is the ranked rows as a JSON array.
"""

import logging
from typing import Optional

from fastapi import APIRouter, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...core.schedule.highlights import HighlightQuery, InvalidHighlightQuery
from ..dependencies import SessionRepositoryDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    summary="Top sessions per pool for SEO posts",
    description="Latest snapshot of each session in the date window, ranked by available spots",
)
async def seo_highlights(
    repository: SessionRepositoryDep,
    settings: SettingsDep,
    fromdate: Optional[str] = None,
    untildate: Optional[str] = None,
    poolid: Optional[str] = None,
    topxrecords: Optional[str] = None,
) -> JSONResponse:
    try:
        query = HighlightQuery.from_params(
            fromdate=fromdate,
            untildate=untildate,
            poolid=poolid,
            topxrecords=topxrecords,
            default_top_records=settings.seo_default_top_records,
            max_range_days=settings.seo_max_range_days,
        )
    except InvalidHighlightQuery as e:
        logger.warning(
            "Rejected highlight query",
            extra={"fromdate": fromdate, "untildate": untildate, "poolid": poolid, "error": str(e)}
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": str(e)},
        )

    try:
        rows = repository.top_highlights(query)
    except Exception as e:
        logger.error(
            "Highlight query failed",
            extra={"pool_id": query.pool_id, "error": str(e)},
            exc_info=e,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )

    logger.info(
        "Served highlight query",
        extra={"pool_id": query.pool_id, "rows": len(rows), "top_records": query.top_records}
    )
    return JSONResponse(content=jsonable_encoder(rows))
