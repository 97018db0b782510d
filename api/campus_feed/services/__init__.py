"""Services for the Campus Feed API."""

from campus_feed.services.comments import CommentThread
from campus_feed.services.notifications import NotificationStateService
from campus_feed.services.posts import PostRepository
from campus_feed.services.sweep import sweep
from campus_feed.services.tags import TagService
from campus_feed.services.verification import VerificationService
from campus_feed.services.votes import VoteLedger

__all__ = [
    "PostRepository",
    "TagService",
    "VoteLedger",
    "CommentThread",
    "VerificationService",
    "NotificationStateService",
    "sweep",
]
