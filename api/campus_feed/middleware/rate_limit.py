"""Rate limiting middleware using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# IP-keyed limits on content-creating writes
limiter = Limiter(key_func=get_remote_address)


def reset_limiter() -> None:
    """Reset the limiter storage. Used in tests to clear rate limit state."""
    if hasattr(limiter, "_limiter") and limiter._limiter:
        storage = limiter._limiter.storage
        if hasattr(storage, "reset"):
            storage.reset()
