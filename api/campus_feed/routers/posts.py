"""Feed router for posts and votes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.auth.dependencies import get_current_caller, get_optional_caller
from campus_feed.config import settings
from campus_feed.database import get_db
from campus_feed.middleware.rate_limit import limiter
from campus_feed.models.enums import PostType
from campus_feed.schemas.common import Pagination, author_info, iso
from campus_feed.schemas.feed import (
    CreatePostRequest,
    FeedMeta,
    FeedResponse,
    PostItem,
    PostResponse,
    RefInfo,
    TagInfo,
    UpdatePostRequest,
    VoteRequest,
    VoteResponse,
    VoteSummary,
)
from campus_feed.services.posts import (
    EnrichedPost,
    FeedFilters,
    PostInput,
    PostRepository,
    Reference,
)
from campus_feed.services.votes import VoteLedger

router = APIRouter(prefix="/api/v1", tags=["Feed"])


def _post_item(item: EnrichedPost) -> PostItem:
    post = item.post
    return PostItem(
        id=str(post.id),
        type=post.type,
        title=post.title,
        summary=post.summary,
        author_id=str(post.author_id) if post.author_id else None,
        author=author_info(item.author),
        status=post.status,
        pinned=bool(post.pinned),
        expires_at=iso(post.expires_at),
        created_at=iso(post.created_at),
        updated_at=iso(post.updated_at),
        tags=[TagInfo(id=str(tag.id), name=tag.name, slug=tag.slug) for tag in item.tags],
        ref=(
            RefInfo(service=item.ref.service, entity_id=item.ref.entity_id, metadata=item.ref.metadata)
            if item.ref
            else None
        ),
        vote_score=item.votes.score,
        upvote_count=item.votes.upvote_count,
        downvote_count=item.votes.downvote_count,
        user_vote=item.votes.user_vote.value if item.votes.user_vote else None,
        comment_count=item.comment_count,
        is_read=item.is_read,
    )


# --- Feed ---


@router.get(
    "/feed",
    response_model=FeedResponse,
    status_code=status.HTTP_200_OK,
)
async def get_feed(
    db: AsyncSession = Depends(get_db),
    caller: Caller | None = Depends(get_optional_caller),
    post_type: PostType | None = Query(default=None, alias="type", description="Post type"),
    post_status: str | None = Query(
        default=None, alias="status", description="draft, published, archived, or all"
    ),
    author_id: UUID | None = Query(default=None, alias="authorId"),
    tag: str | None = Query(default=None, description="Tag id, slug, or name fragment"),
    pinned_only: bool = Query(default=False, alias="pinnedOnly"),
    search: str | None = Query(default=None, description="Substring of title or summary"),
    include_archived: bool = Query(default=False, alias="includeArchived"),
    limit: int = Query(default=20, ge=1, le=settings.feed_max_limit, description="Items per page"),
    offset: int = Query(default=0, ge=0),
) -> FeedResponse:
    """
    Unified feed of enriched posts.

    Expired posts are archived before the query runs; the count is reported
    as ``meta.archivedDuringRequest``. Ordered pinned first, then newest.
    """
    filters = FeedFilters(
        type=post_type,
        status=post_status,
        author_id=author_id,
        tag=tag,
        pinned_only=pinned_only,
        search=search,
        include_archived=include_archived,
        limit=limit,
        offset=offset,
    )
    page = await PostRepository(db).feed(filters, caller)
    await db.commit()

    return FeedResponse(
        data=[_post_item(item) for item in page.items],
        pagination=Pagination(limit=page.limit, offset=page.offset, total=page.total),
        meta=FeedMeta(archived_during_request=page.archived_during_request),
    )


# --- Get Post ---


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    status_code=status.HTTP_200_OK,
)
async def get_post(
    post_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: Caller | None = Depends(get_optional_caller),
) -> PostResponse:
    """Get a single enriched post by ID."""
    item = await PostRepository(db).get(post_id, caller)
    await db.commit()
    return PostResponse(data=_post_item(item))


# --- Create Post ---


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.post_create_rate_limit)
async def create_post(
    request: Request,
    data: CreatePostRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> PostResponse:
    """
    Create a feed post.

    Announcements need a moderator; jobs need a moderator or verified
    alumni. For both, the stored author is always the caller.
    """
    item = await PostRepository(db).create(
        PostInput(
            type=data.type,
            title=data.title,
            summary=data.summary,
            status=data.status,
            pinned=data.pinned,
            expires_at=data.expires_at,
            author_id=data.author_id,
            tags=data.tags,
            tag_ids=data.tag_ids,
            ref=(
                Reference(data.ref.service, data.ref.entity_id, data.ref.metadata)
                if data.ref
                else None
            ),
        ),
        caller,
    )
    await db.commit()
    return PostResponse(data=_post_item(item))


# --- Update Post ---


@router.patch(
    "/posts/{post_id}",
    response_model=PostResponse,
    status_code=status.HTTP_200_OK,
)
async def update_post(
    post_id: UUID,
    data: UpdatePostRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> PostResponse:
    """
    Partially update a post.

    ``archive: true`` archives regardless of ``status``. ``tags``/``tagIds``
    and ``ref`` replace the stored values; resend everything to keep.
    """
    changes = data.model_dump(exclude_unset=True)
    if "ref" in changes:
        changes["ref"] = (
            Reference(data.ref.service, data.ref.entity_id, data.ref.metadata)
            if data.ref
            else None
        )

    item = await PostRepository(db).update(post_id, changes, caller)
    await db.commit()
    return PostResponse(data=_post_item(item))


# --- Vote ---


@router.post(
    "/posts/{post_id}/vote",
    response_model=VoteResponse,
    status_code=status.HTTP_200_OK,
)
async def vote_on_post(
    post_id: UUID,
    data: VoteRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> VoteResponse:
    """Set, flip, or clear the caller's vote on a post."""
    tally = await VoteLedger(db).set_vote(post_id, caller.id, data.vote)
    await db.commit()

    return VoteResponse(
        data=VoteSummary(
            post_id=str(post_id),
            vote_score=tally.score,
            upvote_count=tally.upvote_count,
            downvote_count=tally.downvote_count,
            user_vote=tally.user_vote.value if tally.user_vote else None,
        )
    )
