"""Feed-related Pydantic schemas: posts, votes, and comments."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from campus_feed.models.enums import PostStatus, PostType, VoteDirection
from campus_feed.schemas.common import AuthorInfo, CamelModel, Pagination

TITLE_MAX_LENGTH = 300
SUMMARY_MAX_LENGTH = 10000


def _check_title(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if len(v) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title must be {TITLE_MAX_LENGTH} characters or less")
    return v or None


def _check_summary(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Summary cannot be empty")
    if len(v) > SUMMARY_MAX_LENGTH:
        raise ValueError(f"Summary must be {SUMMARY_MAX_LENGTH} characters or less")
    return v


class RefPayload(CamelModel):
    """Pointer to an entity owned by another module."""

    service: str
    entity_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("service", "entity_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank identifiers."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class CreatePostRequest(CamelModel):
    """Request to create a feed post."""

    type: PostType
    title: str | None = None
    summary: str
    status: PostStatus | None = None
    pinned: bool | None = None
    tags: list[str] | None = None
    tag_ids: list[UUID] | None = None
    ref: RefPayload | None = None
    expires_at: datetime | None = None
    author_id: UUID | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Validate title length."""
        return _check_title(v)

    @field_validator("summary")
    @classmethod
    def validate_summary(cls, v: str) -> str:
        """Validate summary is present and bounded."""
        return _check_summary(v)


class UpdatePostRequest(CamelModel):
    """Partial update; only fields present in the body are applied."""

    type: PostType | None = None
    title: str | None = None
    summary: str | None = None
    status: PostStatus | None = None
    pinned: bool | None = None
    archive: bool | None = None
    tags: list[str] | None = None
    tag_ids: list[UUID] | None = None
    ref: RefPayload | None = None
    expires_at: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        """Validate title length."""
        return _check_title(v)

    @field_validator("summary")
    @classmethod
    def validate_summary(cls, v: str | None) -> str | None:
        """Validate summary when provided."""
        return _check_summary(v)


class TagInfo(CamelModel):
    id: str
    name: str
    slug: str


class RefInfo(CamelModel):
    service: str
    entity_id: str
    metadata: dict[str, Any]


class PostItem(CamelModel):
    """Enriched feed item."""

    id: str
    type: str
    title: str | None
    summary: str | None
    author_id: str | None
    author: AuthorInfo | None
    status: str
    pinned: bool
    expires_at: str | None
    created_at: str
    updated_at: str
    tags: list[TagInfo]
    ref: RefInfo | None
    vote_score: int
    upvote_count: int
    downvote_count: int
    user_vote: str | None
    comment_count: int
    is_read: bool | None = None


class PostResponse(CamelModel):
    data: PostItem


class FeedMeta(CamelModel):
    archived_during_request: int


class FeedResponse(CamelModel):
    """Response for the feed endpoint."""

    data: list[PostItem]
    pagination: Pagination
    meta: FeedMeta


class VoteRequest(CamelModel):
    vote: VoteDirection


class VoteSummary(CamelModel):
    post_id: str
    vote_score: int
    upvote_count: int
    downvote_count: int
    user_vote: str | None


class VoteResponse(CamelModel):
    data: VoteSummary


class CommentRequest(CamelModel):
    """Request to add or edit a comment; trimmed and bounded by the thread."""

    content: str


class CommentItem(CamelModel):
    id: str
    post_id: str
    author_id: str
    author: AuthorInfo | None
    content: str
    created_at: str
    updated_at: str


class CommentMeta(CamelModel):
    comment_count: int


class CommentResponse(CamelModel):
    data: CommentItem
    meta: CommentMeta | None = None


class ListCommentsResponse(CamelModel):
    data: list[CommentItem]
    pagination: Pagination
