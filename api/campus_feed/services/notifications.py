"""Notification read-state: a monotonic last-seen watermark plus read keys."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.config import settings
from campus_feed.database import as_utc, upsert, utcnow
from campus_feed.errors import ValidationFailed
from campus_feed.models.notification import UserNotificationRead, UserNotificationState

NOTIFICATION_KEY_MAX_LENGTH = 200


@dataclass
class ReadState:
    user_id: UUID
    last_seen_at: datetime | None = None
    updated_at: datetime | None = None
    read_keys: list[str] = field(default_factory=list)

    def is_read(self, key: str | None = None, created_at: datetime | None = None) -> bool:
        """An item is read if its key was marked, or it is no newer than the watermark."""
        if key is not None and key in self.read_keys:
            return True
        if created_at is not None and self.last_seen_at is not None:
            return as_utc(created_at) <= as_utc(self.last_seen_at)
        return False


def post_key(post_id: UUID) -> str:
    return f"post:{post_id}"


def verification_key(application_id: UUID) -> str:
    return f"alumni-verification:{application_id}"


class NotificationStateService:
    """Per-user read-state store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_state(self, user_id: UUID) -> ReadState:
        result = await self.db.execute(
            select(UserNotificationState)
            .where(UserNotificationState.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()

        reads = await self.db.execute(
            select(UserNotificationRead.notification_key)
            .where(UserNotificationRead.user_id == user_id)
            .order_by(UserNotificationRead.read_at.desc())
            .limit(settings.read_keys_limit)
        )

        return ReadState(
            user_id=user_id,
            last_seen_at=as_utc(row.last_seen_at) if row else None,
            updated_at=as_utc(row.updated_at) if row else None,
            read_keys=[key for key in reads.scalars().all() if key],
        )

    async def mark_read(
        self,
        user_id: UUID,
        last_seen_at: datetime | None = None,
        notification_key: str | None = None,
    ) -> ReadState:
        """
        Advance the watermark and/or record a read key.

        The stored watermark only moves forward: a ``last_seen_at`` earlier
        than the stored value leaves it unchanged.
        """
        key = (notification_key or "").strip()
        if last_seen_at is None and not key:
            raise ValidationFailed("Provide lastSeenAt or notificationKey")
        if len(key) > NOTIFICATION_KEY_MAX_LENGTH:
            raise ValidationFailed(
                f"notificationKey must be {NOTIFICATION_KEY_MAX_LENGTH} characters or less",
                field="notificationKey",
            )

        now = utcnow()

        if last_seen_at is not None:
            table = UserNotificationState.__table__
            stmt = upsert(self.db, table).values(
                user_id=user_id, last_seen_at=as_utc(last_seen_at), updated_at=now
            )
            # watermark never moves backward
            incoming = stmt.excluded.last_seen_at
            merged = case(
                (table.c.last_seen_at.is_(None), incoming),
                (incoming > table.c.last_seen_at, incoming),
                else_=table.c.last_seen_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.user_id],
                set_={"last_seen_at": merged, "updated_at": now},
            )
            await self.db.execute(stmt)

        if key:
            table = UserNotificationRead.__table__
            stmt = upsert(self.db, table).values(
                id=uuid4(), user_id=user_id, notification_key=key, read_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.user_id, table.c.notification_key],
                set_={"read_at": now},
            )
            await self.db.execute(stmt)

        return await self.get_state(user_id)
