"""Notification read-state Pydantic schemas."""

from datetime import datetime

from campus_feed.schemas.common import CamelModel


class ReadStateInfo(CamelModel):
    user_id: str
    last_seen_at: str | None
    updated_at: str | None
    read_keys: list[str]


class ReadStateResponse(CamelModel):
    message: str | None = None
    data: ReadStateInfo


class MarkReadRequest(CamelModel):
    """Advance the last-seen watermark and/or mark one key as read."""

    last_seen_at: datetime | None = None
    notification_key: str | None = None
