"""Batched lookups against the identity directory."""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.models.user import User


@dataclass(frozen=True)
class Identity:
    id: UUID
    full_name: str | None
    email: str | None
    role: str | None
    university_id: str | None = None
    session: str | None = None


def _to_identity(user: User) -> Identity:
    return Identity(
        id=user.id,
        full_name=user.full_name or None,
        email=user.email or None,
        role=user.role or None,
        university_id=user.university_id or None,
        session=user.session or None,
    )


class IdentityDirectory:
    """Resolve user ids to identities. Unknown ids are simply absent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup(self, user_ids: Iterable[UUID | None]) -> dict[UUID, Identity]:
        ids = list({user_id for user_id in user_ids if user_id is not None})
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: _to_identity(user) for user in result.scalars().all()}

    async def get(self, user_id: UUID) -> Identity | None:
        found = await self.lookup([user_id])
        return found.get(user_id)
