"""Exit non-zero when the migrated schema drifts from the SQLAlchemy models."""

from __future__ import annotations

import asyncio
import sys

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from campus_feed.config import settings
from campus_feed.database import Base
from campus_feed import models  # noqa: F401  # Ensure models are registered


def _compare(connection) -> list[object]:
    context = MigrationContext.configure(connection, opts={"compare_type": True})
    return compare_metadata(context, Base.metadata)


async def main(database_url: str) -> int:
    engine = create_async_engine(database_url)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        diffs = await conn.run_sync(_compare)
    await engine.dispose()

    if not diffs:
        print("Schema matches models.")
        return 0

    print(f"{len(diffs)} schema difference(s) between models and {engine.url.database}:")
    for diff in diffs:
        print(f"  {diff}")
    return 1


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else settings.database_url
    raise SystemExit(asyncio.run(main(url)))
