from fastapi import APIRouter, Query

from housesync.core.config import PUBLISH_MAX_ATTEMPTS
from housesync.events.outbox_store import count_pending, fetch_unpublished, list_exhausted
from housesync.schemas.outbox import OutboxEventResponse
from housesync.schemas.response import SuccessResponse

router = APIRouter()


def _dump(rows):
    return [OutboxEventResponse.model_validate(row).model_dump(by_alias=True) for row in rows]


@router.get("/pending", response_model=SuccessResponse)
async def pending_events(limit: int = Query(50, ge=1, le=500)):
    """Rows still waiting for the relay, oldest first."""
    rows = await fetch_unpublished(limit, PUBLISH_MAX_ATTEMPTS)
    return SuccessResponse(data={"total_pending": await count_pending(), "events": _dump(rows)})


@router.get("/exhausted", response_model=SuccessResponse)
async def exhausted_events(limit: int = Query(100, ge=1, le=500)):
    """Rows the relay gave up on after the maximum number of attempts."""
    rows = await list_exhausted(PUBLISH_MAX_ATTEMPTS, limit)
    return SuccessResponse(data=_dump(rows))
