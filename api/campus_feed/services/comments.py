"""Comment thread: newest-first pages, author-or-moderator edits."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.config import settings
from campus_feed.database import utcnow
from campus_feed.errors import Forbidden, NotFound, ValidationFailed
from campus_feed.models.enums import PostStatus
from campus_feed.models.post import Post, PostComment
from campus_feed.services.identity import Identity, IdentityDirectory


@dataclass
class CommentPage:
    items: list[tuple[PostComment, Identity | None]]
    total: int
    limit: int
    offset: int


def clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationFailed("Comment cannot be empty", field="content")
    if len(text) > settings.comment_max_length:
        raise ValidationFailed(
            f"Comment must be {settings.comment_max_length} characters or less",
            field="content",
        )
    return text


class CommentThread:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _post_status(self, post_id: UUID) -> str:
        post_status = await self.db.scalar(select(Post.status).where(Post.id == post_id))
        if post_status is None:
            raise NotFound(f"Post '{post_id}' not found")
        return post_status

    async def _get_comment(self, post_id: UUID, comment_id: UUID) -> PostComment:
        result = await self.db.execute(
            select(PostComment).where(
                PostComment.id == comment_id,
                PostComment.post_id == post_id,
            )
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFound(f"Comment '{comment_id}' not found")
        return comment

    @staticmethod
    def _check_owner(comment: PostComment, caller: Caller, verb: str) -> None:
        if comment.author_id != caller.id and not caller.is_moderator:
            raise Forbidden(f"You can only {verb} your own comments")

    async def add(self, post_id: UUID, author_id: UUID, content: str) -> PostComment:
        text = clean_content(content)
        if await self._post_status(post_id) == PostStatus.ARCHIVED.value:
            raise ValidationFailed("Archived posts cannot be commented on", field="content")

        now = utcnow()
        comment = PostComment(
            post_id=post_id,
            author_id=author_id,
            content=text,
            created_at=now,
            updated_at=now,
        )
        self.db.add(comment)
        await self.db.flush()
        return comment

    async def list_comments(self, post_id: UUID, limit: int = 20, offset: int = 0) -> CommentPage:
        await self._post_status(post_id)

        total = await self.db.scalar(
            select(func.count(PostComment.id)).where(PostComment.post_id == post_id)
        )
        result = await self.db.execute(
            select(PostComment)
            .where(PostComment.post_id == post_id)
            .order_by(PostComment.created_at.desc(), PostComment.id.desc())
            .limit(limit)
            .offset(offset)
        )
        comments = list(result.scalars().all())
        authors = await IdentityDirectory(self.db).lookup(c.author_id for c in comments)

        return CommentPage(
            items=[(c, authors.get(c.author_id)) for c in comments],
            total=total or 0,
            limit=limit,
            offset=offset,
        )

    async def count(self, post_id: UUID) -> int:
        counts = await self.count_many([post_id])
        return counts[post_id]

    async def count_many(self, post_ids: list[UUID]) -> dict[UUID, int]:
        """One grouped count across every post id."""
        counts = {post_id: 0 for post_id in post_ids}
        if not post_ids:
            return counts
        result = await self.db.execute(
            select(PostComment.post_id, func.count(PostComment.id))
            .where(PostComment.post_id.in_(post_ids))
            .group_by(PostComment.post_id)
        )
        for post_id, count in result.all():
            counts[post_id] = count
        return counts

    async def edit(self, post_id: UUID, comment_id: UUID, caller: Caller, content: str) -> PostComment:
        """Overwrite content in place; there is no edit window or history."""
        comment = await self._get_comment(post_id, comment_id)
        self._check_owner(comment, caller, "edit")
        comment.content = clean_content(content)
        comment.updated_at = utcnow()
        await self.db.flush()
        return comment

    async def delete(self, post_id: UUID, comment_id: UUID, caller: Caller) -> None:
        comment = await self._get_comment(post_id, comment_id)
        self._check_owner(comment, caller, "delete")
        await self.db.delete(comment)
        await self.db.flush()
