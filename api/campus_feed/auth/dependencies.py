"""Authentication dependencies for FastAPI endpoints."""

from uuid import UUID

from fastapi import Depends, Header

from campus_feed.auth.caller import Caller
from campus_feed.auth.jwt import decode_token
from campus_feed.errors import Forbidden, Unauthorized
from campus_feed.models.enums import Role


def _caller_from_claims(payload: dict) -> Caller:
    try:
        user_id = UUID(str(payload.get("sub") or payload.get("id")))
        role = Role(str(payload.get("role") or "").lower())
    except ValueError:
        raise Unauthorized("Invalid token claims") from None
    return Caller(id=user_id, role=role)


async def get_optional_caller(
    authorization: str | None = Header(default=None),
) -> Caller | None:
    """
    Decode the bearer token if one is present.

    Public routes use this to personalise output. A malformed or expired
    token is still rejected rather than silently downgraded to anonymous.
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Bearer token required")

    payload = decode_token(token.strip())
    if payload is None:
        raise Unauthorized("Invalid or expired token")

    return _caller_from_claims(payload)


async def get_current_caller(
    caller: Caller | None = Depends(get_optional_caller),
) -> Caller:
    """
    Require an authenticated caller.

    Raises:
        Unauthorized: if the bearer token is missing or invalid
    """
    if caller is None:
        raise Unauthorized("Authentication required")
    return caller


async def require_moderator(
    caller: Caller = Depends(get_current_caller),
) -> Caller:
    """
    Require the caller to hold a moderator role (admin or faculty).

    Raises:
        Forbidden: if the caller is not a moderator
    """
    if not caller.is_moderator:
        raise Forbidden("Only faculty/admin can access this route")
    return caller
