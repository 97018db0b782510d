"""Request credential handling for the Campus Feed API."""

from campus_feed.auth.caller import Caller
from campus_feed.auth.jwt import create_access_token, decode_token

__all__ = [
    "Caller",
    "create_access_token",
    "decode_token",
]
