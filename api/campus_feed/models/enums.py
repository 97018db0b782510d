"""Closed vocabularies shared by models, schemas, and services."""

from enum import Enum


class PostType(str, Enum):
    ANNOUNCEMENT = "ANNOUNCEMENT"
    JOB = "JOB"
    EVENT = "EVENT"
    EVENT_RECAP = "EVENT_RECAP"
    ACHIEVEMENT = "ACHIEVEMENT"
    COLLAB = "COLLAB"


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Role(str, Enum):
    STUDENT = "student"
    ALUMNI = "alumni"
    FACULTY = "faculty"
    ADMIN = "admin"

    @property
    def is_moderator(self) -> bool:
        return self in MODERATOR_ROLES


MODERATOR_ROLES = frozenset({Role.ADMIN, Role.FACULTY})


class VerificationStatus(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"
