"""Database models for the Campus Feed API."""

from campus_feed.models.enums import PostStatus, PostType, Role, VerificationStatus, VoteDirection
from campus_feed.models.notification import UserNotificationRead, UserNotificationState
from campus_feed.models.post import Post, PostComment, PostRef, PostTag, PostVote
from campus_feed.models.tag import Tag
from campus_feed.models.user import User
from campus_feed.models.verification import AlumniVerificationApplication

__all__ = [
    "User",
    "Post",
    "PostTag",
    "PostRef",
    "PostVote",
    "PostComment",
    "Tag",
    "AlumniVerificationApplication",
    "UserNotificationState",
    "UserNotificationRead",
    "PostType",
    "PostStatus",
    "Role",
    "VerificationStatus",
    "VoteDirection",
]
