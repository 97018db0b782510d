"""Expiry sweep: archive every post whose ``expires_at`` has passed."""

import asyncio
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_feed.database import utcnow
from campus_feed.models.enums import PostStatus
from campus_feed.models.post import Post

logger = logging.getLogger(__name__)


async def sweep(db: AsyncSession) -> int:
    """
    Archive expired posts in one conditional bulk update.

    Already-archived posts never match, so repeated runs are no-ops and the
    sweep can never move a post out of ``archived``. Returns the number of
    rows changed.
    """
    now = utcnow()
    result = await db.execute(
        update(Post)
        .where(
            Post.expires_at.is_not(None),
            Post.expires_at < now,
            Post.status != PostStatus.ARCHIVED.value,
        )
        .values(status=PostStatus.ARCHIVED.value, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    archived = result.rowcount or 0
    if archived:
        logger.info("sweep archived expired posts count=%s", archived)
    return archived


async def run_periodic_sweep(session_factory: async_sessionmaker, interval_seconds: float) -> None:
    """Run ``sweep`` every ``interval_seconds`` with its own session until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_factory() as session:
                await sweep(session)
                await session.commit()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("background sweep failed; retrying in %ss", interval_seconds)
