"""Notification read-state router."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.auth.dependencies import get_current_caller
from campus_feed.database import get_db
from campus_feed.schemas.common import iso
from campus_feed.schemas.notifications import MarkReadRequest, ReadStateInfo, ReadStateResponse
from campus_feed.services.notifications import NotificationStateService, ReadState

router = APIRouter(prefix="/api/v1/notifications/state", tags=["Notifications"])


def _state_info(state: ReadState) -> ReadStateInfo:
    return ReadStateInfo(
        user_id=str(state.user_id),
        last_seen_at=iso(state.last_seen_at),
        updated_at=iso(state.updated_at),
        read_keys=state.read_keys,
    )


@router.get(
    "",
    response_model=ReadStateResponse,
    status_code=status.HTTP_200_OK,
)
async def get_state(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ReadStateResponse:
    """Return the caller's last-seen watermark and most recent read keys."""
    state = await NotificationStateService(db).get_state(caller.id)
    return ReadStateResponse(data=_state_info(state))


@router.post(
    "/mark-read",
    response_model=ReadStateResponse,
    status_code=status.HTTP_200_OK,
)
async def mark_read(
    data: MarkReadRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> ReadStateResponse:
    """
    Mark notifications as read.

    ``lastSeenAt`` only ever advances the stored watermark;
    ``notificationKey`` records a single read marker.
    """
    state = await NotificationStateService(db).mark_read(
        caller.id,
        last_seen_at=data.last_seen_at,
        notification_key=data.notification_key,
    )
    await db.commit()
    return ReadStateResponse(message="Notifications marked as read.", data=_state_info(state))
