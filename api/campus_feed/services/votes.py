"""Vote ledger and score aggregation.

Scores are recomputed from the vote rows on every read. A deployment with
heavy voting should keep a counter column updated alongside each write.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.database import upsert, utcnow
from campus_feed.errors import NotFound, ValidationFailed
from campus_feed.models.enums import PostStatus, VoteDirection
from campus_feed.models.post import Post, PostVote

VOTE_VALUES = {VoteDirection.UP: 1, VoteDirection.DOWN: -1}


@dataclass
class VoteTally:
    score: int = 0
    upvote_count: int = 0
    downvote_count: int = 0
    user_vote: VoteDirection | None = None


def tally(rows: Iterable[tuple[UUID, int]], caller_id: UUID | None = None) -> VoteTally:
    """Fold ``(user_id, value)`` rows of one post into its aggregate."""
    result = VoteTally()
    for user_id, value in rows:
        result.score += value
        if value > 0:
            result.upvote_count += 1
        elif value < 0:
            result.downvote_count += 1
        if caller_id is not None and user_id == caller_id:
            result.user_vote = VoteDirection.UP if value > 0 else VoteDirection.DOWN
    return result


class VoteLedger:
    """At most one vote row per (post, user); writes overwrite, "none" deletes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def set_vote(self, post_id: UUID, user_id: UUID, direction: VoteDirection) -> VoteTally:
        post_status = await self.db.scalar(select(Post.status).where(Post.id == post_id))
        if post_status is None:
            raise NotFound(f"Post '{post_id}' not found")
        if post_status == PostStatus.ARCHIVED.value:
            raise ValidationFailed("Archived posts cannot be voted on", field="vote")

        if direction == VoteDirection.NONE:
            await self.db.execute(
                delete(PostVote).where(PostVote.post_id == post_id, PostVote.user_id == user_id)
            )
        else:
            now = utcnow()
            stmt = upsert(self.db, PostVote.__table__).values(
                post_id=post_id,
                user_id=user_id,
                vote=VOTE_VALUES[direction],
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[PostVote.__table__.c.post_id, PostVote.__table__.c.user_id],
                set_={"vote": stmt.excluded.vote, "updated_at": now},
            )
            await self.db.execute(stmt)

        return await self.aggregate(post_id, user_id)

    async def aggregate(self, post_id: UUID, caller_id: UUID | None = None) -> VoteTally:
        tallies = await self.aggregate_many([post_id], caller_id)
        return tallies[post_id]

    async def aggregate_many(
        self, post_ids: list[UUID], caller_id: UUID | None = None
    ) -> dict[UUID, VoteTally]:
        """One batched scan of the vote rows of every post id."""
        rows_by_post: dict[UUID, list[tuple[UUID, int]]] = {post_id: [] for post_id in post_ids}
        if post_ids:
            result = await self.db.execute(
                select(PostVote.post_id, PostVote.user_id, PostVote.vote).where(
                    PostVote.post_id.in_(post_ids)
                )
            )
            for post_id, user_id, value in result.all():
                rows_by_post.setdefault(post_id, []).append((user_id, value))
        return {post_id: tally(rows, caller_id) for post_id, rows in rows_by_post.items()}
