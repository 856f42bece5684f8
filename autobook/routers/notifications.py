"""
Recent booking notices (every confirmation, auto-cancel and re-book).
"""

from fastapi import APIRouter, Query

from autobook.dependencies import Service
from autobook.models import TransitionEvent

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=list[TransitionEvent],
    operation_id="listNotifications",
    summary="Most recent booking notices, newest first",
)
async def list_notifications(
    service: Service,
    limit: int = Query(50, ge=1, le=200, description="Maximum number of notices"),
) -> list[TransitionEvent]:
    return list(reversed(service.notifications()))[:limit]
