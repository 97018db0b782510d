"""Per-user notification read-state models."""

import uuid

from sqlalchemy import TIMESTAMP, Column, Index, Text, UniqueConstraint, Uuid, func

from campus_feed.database import Base, utcnow


class UserNotificationState(Base):
    """Last-seen watermark for a user; only ever advances."""

    __tablename__ = "user_notification_states"

    user_id = Column(Uuid, primary_key=True)
    last_seen_at = Column(TIMESTAMP(timezone=True))
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )


class UserNotificationRead(Base):
    """Explicit read marker for a single notification key."""

    __tablename__ = "user_notification_reads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    notification_key = Column(Text, nullable=False)
    read_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "notification_key", name="uq_user_notification_reads_key"),
        Index("idx_user_notification_reads_user_read_at", user_id, read_at.desc()),
    )
