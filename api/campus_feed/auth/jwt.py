"""JWT creation and validation for bearer credentials.

Tokens are issued by the auth service; ``create_access_token`` exists for
tests and local tooling.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from campus_feed.config import settings


def create_access_token(user_id: str, role: str, expires_minutes: int | None = None) -> str:
    """Create a signed access token carrying the user id and role."""
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns the payload if valid, None if invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except jwt.JWTError:
        return None
