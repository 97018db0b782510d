"""Tag-related Pydantic schemas."""

from pydantic import model_validator

from campus_feed.schemas.common import CamelModel
from campus_feed.schemas.feed import TagInfo


class CreateTagsRequest(CamelModel):
    """Upsert one tag (``name``) or several (``names``)."""

    name: str | None = None
    names: list[str] | None = None

    @model_validator(mode="after")
    def validate_any_name(self) -> "CreateTagsRequest":
        """Require at least one name."""
        if not (self.name and self.name.strip()) and not self.names:
            raise ValueError("Provide name or names")
        return self

    def all_names(self) -> list[str]:
        names = list(self.names or [])
        if self.name and self.name.strip():
            names.append(self.name)
        return names


class TagListResponse(CamelModel):
    data: list[TagInfo]
