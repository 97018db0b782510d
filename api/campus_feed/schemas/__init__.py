"""Pydantic schemas for request/response validation."""

from campus_feed.schemas.feed import (
    CommentRequest,
    CreatePostRequest,
    FeedResponse,
    PostResponse,
    UpdatePostRequest,
    VoteRequest,
)

__all__ = [
    "CreatePostRequest",
    "UpdatePostRequest",
    "PostResponse",
    "FeedResponse",
    "VoteRequest",
    "CommentRequest",
]
