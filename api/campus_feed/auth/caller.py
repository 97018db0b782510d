"""Authenticated caller identity decoded from the request credential."""

from dataclasses import dataclass
from uuid import UUID

from campus_feed.models.enums import Role


@dataclass(frozen=True)
class Caller:
    """Claims of the signed bearer token; the only per-request identity state."""

    id: UUID
    role: Role

    @property
    def is_moderator(self) -> bool:
        return self.role.is_moderator
