"""Feed models: posts and their tags, reference, votes, and comments."""

import uuid

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    Uuid,
    false,
    func,
)

from campus_feed.database import Base, JSONType, utcnow


class Post(Base):
    """Unit of feed content. Never hard-deleted; archived instead."""

    __tablename__ = "posts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String, nullable=False)
    title = Column(Text)
    summary = Column(Text)
    author_id = Column(Uuid)
    status = Column(String, nullable=False, default="draft", server_default="draft")
    pinned = Column(Boolean, nullable=False, default=False, server_default=false())
    expires_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('draft', 'published', 'archived')", name="ck_posts_status"
        ),
        Index("idx_posts_status_created_at", status, created_at.desc()),
        Index("idx_posts_pinned_created_at", pinned.desc(), created_at.desc()),
        Index("idx_posts_expires_at", expires_at),
        Index("idx_posts_author_id", author_id),
    )


class PostTag(Base):
    """Post-to-tag join row."""

    __tablename__ = "post_tags"

    post_id = Column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id = Column(
        Uuid,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (Index("idx_post_tags_tag_id", tag_id),)


class PostRef(Base):
    """Pointer from a post to an entity owned by another service.

    ``metadata`` belongs to the referenced service and is stored opaquely.
    """

    __tablename__ = "post_refs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    service = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    ref_metadata = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (Index("idx_post_refs_post_id", post_id),)


class PostVote(Base):
    """One signed vote per (post, user); absence means no vote."""

    __tablename__ = "post_votes"

    post_id = Column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(Uuid, primary_key=True)
    vote = Column(SmallInteger, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("vote in (-1, 1)", name="ck_post_votes_vote"),
        Index("idx_post_votes_user_id", user_id),
        Index("idx_post_votes_post_vote", post_id, vote),
    )


class PostComment(Base):
    """Comment on a post. Content is mutable, authorship is not."""

    __tablename__ = "post_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    post_id = Column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id = Column(Uuid, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("length(trim(content)) > 0", name="ck_post_comments_content"),
        Index("idx_post_comments_post_created_at", post_id, created_at.desc()),
        Index("idx_post_comments_author_id", author_id),
    )
