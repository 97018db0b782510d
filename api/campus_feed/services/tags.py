"""Tag taxonomy: slug normalization, upsert-by-slug, and token resolution."""

import re
import uuid
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.database import contains_pattern, upsert
from campus_feed.errors import ValidationFailed
from campus_feed.models.post import PostTag
from campus_feed.models.tag import Tag

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

TAG_NAME_MAX_LENGTH = 80


def slugify(name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to one hyphen, trim hyphens."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


class TagService:
    """Slug-keyed tag store. Colliding slugs merge; the last written name wins."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_by_name(self, names: Iterable[str]) -> list[Tag]:
        """Upsert one tag per distinct slug and return them in input order."""
        by_slug: dict[str, str] = {}
        for raw in names:
            name = (raw or "").strip()
            slug = slugify(name)
            if not slug:
                raise ValidationFailed(f"Tag name '{raw}' has no usable characters", field="tags")
            if len(name) > TAG_NAME_MAX_LENGTH:
                raise ValidationFailed(
                    f"Tag name must be {TAG_NAME_MAX_LENGTH} characters or less", field="tags"
                )
            # Later duplicates in the same batch win, same as across requests
            by_slug.pop(slug, None)
            by_slug[slug] = name

        if not by_slug:
            return []

        for slug, name in by_slug.items():
            stmt = upsert(self.db, Tag.__table__).values(id=uuid.uuid4(), name=name, slug=slug)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Tag.__table__.c.slug],
                set_={"name": stmt.excluded.name},
            )
            await self.db.execute(stmt)

        result = await self.db.execute(
            select(Tag).where(Tag.slug.in_(list(by_slug))).execution_options(populate_existing=True)
        )
        tags = {tag.slug: tag for tag in result.scalars().all()}
        return [tags[slug] for slug in by_slug if slug in tags]

    async def list_all(self) -> list[Tag]:
        result = await self.db.execute(select(Tag).order_by(Tag.name.asc()))
        return list(result.scalars().all())

    async def get_many(self, tag_ids: Iterable[UUID]) -> list[Tag]:
        ids = list(dict.fromkeys(tag_ids))
        if not ids:
            return []
        result = await self.db.execute(select(Tag).where(Tag.id.in_(ids)))
        return list(result.scalars().all())

    async def resolve(self, token: str) -> list[UUID]:
        """
        Resolve a filter token to tag ids.

        The token may be a tag id, an exact slug, or a case-insensitive
        substring of a tag name. An unknown token resolves to an empty list.
        """
        token = (token or "").strip()
        if not token:
            return []

        conditions = [
            Tag.slug == slugify(token),
            Tag.name.ilike(contains_pattern(token), escape="\\"),
        ]
        try:
            conditions.append(Tag.id == UUID(token))
        except ValueError:
            pass

        result = await self.db.execute(select(Tag.id).where(or_(*conditions)))
        return list(result.scalars().all())

    async def post_ids_for_tags(self, tag_ids: list[UUID]) -> list[UUID]:
        """Ids of posts referencing any of the given tags."""
        if not tag_ids:
            return []
        result = await self.db.execute(
            select(PostTag.post_id).where(PostTag.tag_id.in_(tag_ids)).distinct()
        )
        return list(result.scalars().all())

    async def replace_for_post(self, post_id: UUID, tag_ids: Iterable[UUID]) -> None:
        """Delete every tag link of the post, then link exactly ``tag_ids``."""
        await self.db.execute(delete(PostTag).where(PostTag.post_id == post_id))
        for tag_id in dict.fromkeys(tag_ids):
            self.db.add(PostTag(post_id=post_id, tag_id=tag_id))
        await self.db.flush()

    async def tags_by_post(self, post_ids: list[UUID]) -> dict[UUID, list[Tag]]:
        """One batched lookup of tags for every post id."""
        grouped: dict[UUID, list[Tag]] = {post_id: [] for post_id in post_ids}
        if not post_ids:
            return grouped
        result = await self.db.execute(
            select(PostTag.post_id, Tag)
            .join(Tag, Tag.id == PostTag.tag_id)
            .where(PostTag.post_id.in_(post_ids))
            .order_by(Tag.name.asc())
        )
        for post_id, tag in result.all():
            grouped.setdefault(post_id, []).append(tag)
        return grouped
