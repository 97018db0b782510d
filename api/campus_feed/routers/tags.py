"""Tag taxonomy router."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.auth.dependencies import get_current_caller
from campus_feed.database import get_db
from campus_feed.schemas.feed import TagInfo
from campus_feed.schemas.tags import CreateTagsRequest, TagListResponse
from campus_feed.services.tags import TagService

router = APIRouter(prefix="/api/v1/tags", tags=["Tags"])


@router.get(
    "",
    response_model=TagListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_tags(db: AsyncSession = Depends(get_db)) -> TagListResponse:
    """List every tag ordered by name."""
    tags = await TagService(db).list_all()
    return TagListResponse(data=[TagInfo(id=str(t.id), name=t.name, slug=t.slug) for t in tags])


@router.post(
    "",
    response_model=TagListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_tags(
    data: CreateTagsRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
) -> TagListResponse:
    """
    Upsert tags by slug.

    Names that normalize to an existing slug update that tag's name instead
    of creating a duplicate.
    """
    tags = await TagService(db).upsert_by_name(data.all_names())
    await db.commit()
    return TagListResponse(data=[TagInfo(id=str(t.id), name=t.name, slug=t.slug) for t in tags])
