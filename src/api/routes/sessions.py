"""
Session schedule ingest and listing endpoints.

The schedule scraper posts every snapshot it observes, either one at a time
or in batches. Nothing is deduplicated on the way in: the history table is
append-only and the latest state is resolved at query time.

Errors are reported in the body as {"success": false, "error": "..."} rather
than through HTTPException, so the scraper gets the same envelope for bad
input and for database failures.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...core.schedule.payloads import SessionPayload
from ...infrastructure.database.repositories import SessionScheduleRepository
from ..dependencies import SessionRepositoryDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _insert_batch(
    body: Any,
    repository: SessionScheduleRepository,
    max_batch_size: int,
) -> JSONResponse:
    """Validate an array body and insert it as one batch."""
    if not isinstance(body, list):
        return _error_response(status.HTTP_400_BAD_REQUEST, "Request body must be an array")

    if not body:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Array cannot be empty")

    if len(body) > max_batch_size:
        logger.warning(
            "Rejected oversized batch",
            extra={"size": len(body), "max_batch_size": max_batch_size}
        )
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            f"Maximum {max_batch_size} items allowed per request",
        )

    records = [SessionPayload.model_validate(item).to_record() for item in body]
    results = repository.insert_many(records)

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "inserted": len(records),
            "results": jsonable_encoder([result.to_dict() for result in results]),
        },
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Record session snapshots",
    description="Accepts one session object, or an array of up to 1000 for a batch insert",
)
async def create_sessions(
    request: Request,
    repository: SessionRepositoryDep,
    settings: SettingsDep,
) -> JSONResponse:
    """
    Append one snapshot, or a batch when the body is an array.

    Any failure (unparseable JSON, a missing field, a database error) comes
    back as 400 with the stringified error.
    """
    try:
        body = await request.json()

        if isinstance(body, list):
            return _insert_batch(body, repository, settings.max_batch_size)

        if not isinstance(body, dict):
            raise ValueError("Request body must be a session object or an array")

        record = SessionPayload.model_validate(body).to_record()
        result = repository.insert_one(record)

        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={"success": True, "result": jsonable_encoder(result.to_dict())},
        )

    except Exception as e:
        logger.warning("Session insert failed", extra={"error": str(e)})
        return _error_response(status.HTTP_400_BAD_REQUEST, str(e))


@router.post(
    "/batch",
    status_code=status.HTTP_201_CREATED,
    summary="Record a batch of session snapshots",
    description="Body must be a non-empty array of at most 1000 session objects",
)
async def create_sessions_batch(
    request: Request,
    repository: SessionRepositoryDep,
    settings: SettingsDep,
) -> JSONResponse:
    """Batch-only variant of POST /api/sessions."""
    try:
        body = await request.json()
        return _insert_batch(body, repository, settings.max_batch_size)

    except Exception as e:
        logger.warning("Session batch insert failed", extra={"error": str(e)})
        return _error_response(status.HTTP_400_BAD_REQUEST, str(e))


@router.get(
    "",
    summary="List stored snapshots",
    description="Returns up to 100 rows of the history table, unfiltered",
)
async def list_sessions(
    repository: SessionRepositoryDep,
    settings: SettingsDep,
) -> JSONResponse:
    rows = repository.list_recent(limit=settings.listing_limit)
    return JSONResponse(content=jsonable_encoder(rows))
