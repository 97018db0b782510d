"""Process-wide logging setup."""

import logging

from campus_feed.config import settings


def configure_logging() -> None:
    """Install a stream handler at the configured level unless one already exists."""
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
