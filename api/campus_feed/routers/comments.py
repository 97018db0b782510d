"""Comment thread router."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.auth.dependencies import get_current_caller
from campus_feed.config import settings
from campus_feed.database import get_db
from campus_feed.middleware.rate_limit import limiter
from campus_feed.models.post import PostComment
from campus_feed.schemas.common import Pagination, author_info, iso
from campus_feed.schemas.feed import (
    CommentItem,
    CommentMeta,
    CommentRequest,
    CommentResponse,
    ListCommentsResponse,
)
from campus_feed.services.comments import CommentThread
from campus_feed.services.identity import Identity, IdentityDirectory

router = APIRouter(prefix="/api/v1/posts", tags=["Comments"])


def _comment_item(comment: PostComment, author: Identity | None) -> CommentItem:
    return CommentItem(
        id=str(comment.id),
        post_id=str(comment.post_id),
        author_id=str(comment.author_id),
        author=author_info(author),
        content=comment.content,
        created_at=iso(comment.created_at),
        updated_at=iso(comment.updated_at),
    )


@router.get(
    "/{post_id}/comments",
    response_model=ListCommentsResponse,
    status_code=status.HTTP_200_OK,
)
async def list_comments(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
    offset: int = Query(default=0, ge=0),
) -> ListCommentsResponse:
    """List a post's comments, newest first, with the exact total."""
    page = await CommentThread(db).list_comments(post_id, limit=limit, offset=offset)
    return ListCommentsResponse(
        data=[_comment_item(comment, author) for comment, author in page.items],
        pagination=Pagination(limit=page.limit, offset=page.offset, total=page.total),
    )


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.comment_create_rate_limit)
async def add_comment(
    request: Request,
    post_id: UUID,
    data: CommentRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> CommentResponse:
    """Add a comment to a post. Archived posts are closed to comments."""
    thread = CommentThread(db)
    comment = await thread.add(post_id, caller.id, data.content)
    comment_count = await thread.count(post_id)
    author = await IdentityDirectory(db).get(caller.id)
    await db.commit()

    return CommentResponse(
        data=_comment_item(comment, author),
        meta=CommentMeta(comment_count=comment_count),
    )


@router.patch(
    "/{post_id}/comments/{comment_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_200_OK,
)
async def edit_comment(
    post_id: UUID,
    comment_id: UUID,
    data: CommentRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> CommentResponse:
    """
    Edit a comment.

    Only the comment author or a moderator can edit it.
    """
    comment = await CommentThread(db).edit(post_id, comment_id, caller, data.content)
    author = await IdentityDirectory(db).get(comment.author_id)
    await db.commit()
    return CommentResponse(data=_comment_item(comment, author))


@router.delete(
    "/{post_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_comment(
    post_id: UUID,
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> None:
    """
    Delete a comment.

    Only the comment author or a moderator can delete it.
    """
    await CommentThread(db).delete(post_id, comment_id, caller)
    await db.commit()
