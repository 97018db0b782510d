"""Tag taxonomy model."""

import uuid

from sqlalchemy import TIMESTAMP, Column, Index, Text, Uuid, func

from campus_feed.database import Base, utcnow


class Tag(Base):
    """Slug-keyed label; ``slug`` is the identity key, ``name`` the last written label."""

    __tablename__ = "tags"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (Index("idx_tags_name", name),)
