"""Authoring policy: who may publish which post type, and as whom."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.auth.caller import Caller
from campus_feed.errors import Forbidden, Unauthorized
from campus_feed.models.enums import PostType, Role
from campus_feed.services.verification import VerificationService

_OPEN_TYPES = frozenset(PostType) - {PostType.ANNOUNCEMENT, PostType.JOB}

# Post types each role may author unconditionally
CAPABILITIES: dict[Role, frozenset[PostType]] = {
    Role.ADMIN: frozenset(PostType),
    Role.FACULTY: frozenset(PostType),
    Role.ALUMNI: _OPEN_TYPES,
    Role.STUDENT: _OPEN_TYPES,
}

# Post types a role may author once its alumni verification is approved
VERIFIED_CAPABILITIES: dict[Role, frozenset[PostType]] = {
    Role.ALUMNI: frozenset({PostType.JOB}),
}

# Types whose stored author is always the authenticated caller
TRUSTED_TYPES = frozenset({PostType.ANNOUNCEMENT, PostType.JOB})


class AuthoringPolicy:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def authorize_create(
        self,
        post_type: PostType,
        caller: Caller | None,
        requested_author_id: UUID | None = None,
    ) -> UUID | None:
        """
        Check that ``caller`` may author ``post_type`` and return the author id to store.

        Raises:
            Unauthorized: no authenticated caller
            Forbidden: the caller's role (or verification state) does not allow the type
        """
        if caller is None:
            raise Unauthorized("Authentication required")

        if post_type not in CAPABILITIES.get(caller.role, frozenset()):
            if post_type not in VERIFIED_CAPABILITIES.get(caller.role, frozenset()):
                raise Forbidden(_denial_message(post_type))
            state = await VerificationService(self.db).effective_state(caller.id)
            if not state.is_verified:
                raise Forbidden("Only verified alumni can post jobs")

        if post_type in TRUSTED_TYPES:
            return caller.id
        return requested_author_id or caller.id


def _denial_message(post_type: PostType) -> str:
    if post_type == PostType.ANNOUNCEMENT:
        return "Only faculty/admin can post announcements"
    if post_type == PostType.JOB:
        return "Only faculty/admin or verified alumni can post jobs"
    return f"Your role cannot create {post_type.value} posts"
