"""Shared schema base and envelope pieces."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from campus_feed.database import as_utc


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    limit: int
    offset: int
    total: int


class AuthorInfo(CamelModel):
    """Identity directory entry attached to posts and comments."""

    id: str
    full_name: str | None
    email: str | None
    role: str | None


def iso(value: datetime | None) -> str | None:
    """Render a stored timestamp as an ISO-8601 UTC string."""
    if value is None:
        return None
    return as_utc(value).isoformat()


def author_info(identity) -> AuthorInfo | None:
    """Map an identity directory entry; unknown users render as null."""
    if identity is None:
        return None
    return AuthorInfo(
        id=str(identity.id),
        full_name=identity.full_name,
        email=identity.email,
        role=identity.role,
    )
