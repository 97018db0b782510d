"""Post repository and enrichment pipeline.

Reads run the expiry sweep first, then one filtered page query, then one
batched lookup per concern (tags, reference, author, votes, comment count,
read state) across the whole page. Writes pass the authoring policy on
create and replace tags/reference wholesale when those fields are sent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.database import as_utc, contains_pattern, utcnow
from campus_feed.errors import Forbidden, NotFound, ValidationFailed
from campus_feed.models.enums import PostStatus, PostType
from campus_feed.models.post import Post, PostRef
from campus_feed.models.tag import Tag
from campus_feed.services.comments import CommentThread
from campus_feed.services.identity import Identity, IdentityDirectory
from campus_feed.services.notifications import NotificationStateService, post_key
from campus_feed.services.policy import AuthoringPolicy
from campus_feed.services.sweep import sweep
from campus_feed.services.tags import TagService
from campus_feed.services.votes import VoteLedger, VoteTally

UPDATABLE_FIELDS = ("type", "title", "summary", "status", "pinned", "expires_at")


@dataclass(frozen=True)
class Reference:
    """Pointer to an entity owned by another service; ``metadata`` is opaque."""

    service: str
    entity_id: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class EnrichedPost:
    post: Post
    tags: list[Tag]
    ref: Reference | None
    author: Identity | None
    votes: VoteTally
    comment_count: int
    is_read: bool | None = None


@dataclass
class FeedFilters:
    type: PostType | None = None
    status: str | None = None
    author_id: UUID | None = None
    tag: str | None = None
    pinned_only: bool = False
    search: str | None = None
    include_archived: bool = False
    limit: int = 20
    offset: int = 0


@dataclass
class FeedPage:
    items: list[EnrichedPost]
    total: int
    limit: int
    offset: int
    archived_during_request: int


@dataclass
class PostInput:
    """Create payload after request parsing."""

    type: PostType | None
    summary: str | None = None
    title: str | None = None
    status: PostStatus | None = None
    pinned: bool | None = None
    expires_at: datetime | None = None
    author_id: UUID | None = None
    tags: list[str] | None = None
    tag_ids: list[UUID] | None = None
    ref: Reference | None = None


def _status_filter(filters: FeedFilters) -> list[str] | None:
    """Statuses a feed query matches; None means no status filter."""
    if filters.status:
        requested = filters.status.strip().lower()
        if requested == "all":
            return None
        try:
            return [PostStatus(requested).value]
        except ValueError:
            raise ValidationFailed(
                "status must be one of: draft, published, archived, all", field="status"
            ) from None
    if filters.include_archived:
        return [PostStatus.PUBLISHED.value, PostStatus.ARCHIVED.value]
    return [PostStatus.PUBLISHED.value]


class PostRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.tags = TagService(db)

    # --- Reads ---

    async def feed(self, filters: FeedFilters, caller: Caller | None = None) -> FeedPage:
        archived = await sweep(self.db)

        conditions = []
        statuses = _status_filter(filters)
        if statuses is not None:
            conditions.append(Post.status.in_(statuses))
        if filters.type is not None:
            conditions.append(Post.type == filters.type.value)
        if filters.author_id is not None:
            conditions.append(Post.author_id == filters.author_id)
        if filters.pinned_only:
            conditions.append(Post.pinned.is_(True))
        if filters.search and filters.search.strip():
            pattern = contains_pattern(filters.search.strip())
            conditions.append(
                or_(
                    Post.title.ilike(pattern, escape="\\"),
                    Post.summary.ilike(pattern, escape="\\"),
                )
            )
        if filters.tag and filters.tag.strip():
            tag_ids = await self.tags.resolve(filters.tag)
            post_ids = await self.tags.post_ids_for_tags(tag_ids)
            if not post_ids:
                return FeedPage([], 0, filters.limit, filters.offset, archived)
            conditions.append(Post.id.in_(post_ids))

        total = await self.db.scalar(select(func.count(Post.id)).where(*conditions))
        query: Select = (
            select(Post)
            .where(*conditions)
            .order_by(Post.pinned.desc(), Post.created_at.desc(), Post.id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        result = await self.db.execute(query)
        posts = list(result.scalars().all())

        return FeedPage(
            items=await self.enrich(posts, caller),
            total=total or 0,
            limit=filters.limit,
            offset=filters.offset,
            archived_during_request=archived,
        )

    async def get(self, post_id: UUID, caller: Caller | None = None) -> EnrichedPost:
        await sweep(self.db)
        post = await self._load(post_id)
        enriched = await self.enrich([post], caller)
        return enriched[0]

    async def _load(self, post_id: UUID) -> Post:
        result = await self.db.execute(
            select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound(f"Post '{post_id}' not found")
        return post

    async def enrich(self, posts: list[Post], caller: Caller | None = None) -> list[EnrichedPost]:
        """Attach tags, reference, author, votes, and comment count with one lookup per concern."""
        if not posts:
            return []
        post_ids = [post.id for post in posts]
        caller_id = caller.id if caller else None

        tags = await self.tags.tags_by_post(post_ids)
        refs = await self.refs_by_post(post_ids)
        authors = await IdentityDirectory(self.db).lookup(post.author_id for post in posts)
        votes = await VoteLedger(self.db).aggregate_many(post_ids, caller_id)
        comment_counts = await CommentThread(self.db).count_many(post_ids)
        read_state = (
            await NotificationStateService(self.db).get_state(caller_id) if caller_id else None
        )

        return [
            EnrichedPost(
                post=post,
                tags=tags.get(post.id, []),
                ref=refs.get(post.id),
                author=authors.get(post.author_id) if post.author_id else None,
                votes=votes[post.id],
                comment_count=comment_counts.get(post.id, 0),
                is_read=(
                    read_state.is_read(post_key(post.id), post.created_at)
                    if read_state is not None
                    else None
                ),
            )
            for post in posts
        ]

    async def refs_by_post(self, post_ids: list[UUID]) -> dict[UUID, Reference]:
        result = await self.db.execute(
            select(PostRef)
            .where(PostRef.post_id.in_(post_ids))
            .order_by(PostRef.created_at.desc())
        )
        refs: dict[UUID, Reference] = {}
        for row in result.scalars().all():
            # newest row wins if a racing replace left two behind
            refs.setdefault(
                row.post_id,
                Reference(row.service, row.entity_id, dict(row.ref_metadata or {})),
            )
        return refs

    # --- Writes ---

    async def create(self, data: PostInput, caller: Caller | None) -> EnrichedPost:
        if data.type is None:
            raise ValidationFailed("type is required", field="type")

        author_id = await AuthoringPolicy(self.db).authorize_create(
            data.type, caller, data.author_id
        )

        now = utcnow()
        post = Post(
            type=data.type.value,
            title=data.title,
            summary=data.summary,
            author_id=author_id,
            status=(data.status or PostStatus.DRAFT).value,
            pinned=bool(data.pinned),
            expires_at=as_utc(data.expires_at),
            created_at=now,
            updated_at=now,
        )
        self.db.add(post)
        await self.db.flush()

        if data.tags is not None or data.tag_ids is not None:
            await self.replace_tags(post.id, data.tags or [], data.tag_ids or [])
        if data.ref is not None:
            await self.replace_ref(post.id, data.ref)

        enriched = await self.enrich([post], caller)
        return enriched[0]

    async def update(
        self,
        post_id: UUID,
        changes: dict[str, Any],
        caller: Caller,
    ) -> EnrichedPost:
        """
        Merge provided fields into the post.

        ``changes`` holds only the fields the client sent. ``archive=True``
        forces ``status=archived`` over any explicit status. ``tags``/``tag_ids``
        and ``ref`` replace the existing set entirely when present.
        """
        changes = dict(changes)
        if changes.pop("archive", None):
            changes["status"] = PostStatus.ARCHIVED

        recognized = set(UPDATABLE_FIELDS) | {"tags", "tag_ids", "ref"}
        if not recognized.intersection(changes):
            raise ValidationFailed("Nothing to update")

        post = await self._load(post_id)
        is_owner = post.author_id is not None and post.author_id == caller.id

        if "expires_at" in changes and not (caller.is_moderator or is_owner):
            raise Forbidden("Only moderators or the post author can change expiresAt")

        if "status" in changes:
            if changes["status"] is None:
                raise ValidationFailed("status cannot be null", field="status")
            new_status = PostStatus(changes["status"])
            leaving_archive = (
                post.status == PostStatus.ARCHIVED.value and new_status != PostStatus.ARCHIVED
            )
            if leaving_archive and not caller.is_moderator:
                raise Forbidden("Only moderators can re-publish an archived post")
            if leaving_archive:
                expires_at = as_utc(changes.get("expires_at", post.expires_at))
                if expires_at is not None and expires_at <= utcnow():
                    raise ValidationFailed(
                        "Clear or extend expiresAt to re-publish an expired post",
                        field="expiresAt",
                    )
            changes["status"] = new_status.value

        if "type" in changes:
            if changes["type"] is None:
                raise ValidationFailed("type cannot be null", field="type")
            new_type = PostType(changes["type"])
            if new_type.value != post.type:
                author_id = await AuthoringPolicy(self.db).authorize_create(
                    new_type, caller, post.author_id
                )
                post.author_id = author_id
            changes["type"] = new_type.value

        if "pinned" in changes and changes["pinned"] is None:
            raise ValidationFailed("pinned cannot be null", field="pinned")

        for name in UPDATABLE_FIELDS:
            if name in changes:
                value = changes[name]
                setattr(post, name, as_utc(value) if name == "expires_at" else value)
        post.updated_at = utcnow()
        await self.db.flush()

        if "tags" in changes or "tag_ids" in changes:
            await self.replace_tags(post.id, changes.get("tags") or [], changes.get("tag_ids") or [])
        if "ref" in changes:
            await self.replace_ref(post.id, changes["ref"])

        enriched = await self.enrich([post], caller)
        return enriched[0]

    async def replace_tags(self, post_id: UUID, names: list[str], tag_ids: list[UUID]) -> None:
        """Resolve names (upserting by slug) and ids, then replace the post's tag set."""
        resolved = [tag.id for tag in await self.tags.upsert_by_name(names)]
        if tag_ids:
            known = {tag.id for tag in await self.tags.get_many(tag_ids)}
            missing = [str(tag_id) for tag_id in tag_ids if tag_id not in known]
            if missing:
                raise ValidationFailed(
                    f"Unknown tag ids: {', '.join(missing)}", field="tagIds"
                )
            resolved.extend(tag_ids)
        await self.tags.replace_for_post(post_id, resolved)

    async def replace_ref(self, post_id: UUID, ref: Reference | None) -> None:
        """Delete every reference of the post, then insert ``ref`` if given."""
        await self.db.execute(delete(PostRef).where(PostRef.post_id == post_id))
        if ref is not None:
            self.db.add(
                PostRef(
                    post_id=post_id,
                    service=ref.service,
                    entity_id=ref.entity_id,
                    ref_metadata=dict(ref.metadata or {}),
                    created_at=utcnow(),
                )
            )
        await self.db.flush()
