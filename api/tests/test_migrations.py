"""Tests for the initial Alembic revision."""

import importlib.util
from pathlib import Path

from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_feed.models import User

REVISION_PATH = (
    Path(__file__).resolve().parents[1] / "alembic" / "versions" / "20261019_01_initial.py"
)


def _load_revision():
    spec = importlib.util.spec_from_file_location("initial_revision", REVISION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestInitialRevision:
    """The users directory is shared with the auth service."""

    async def test_existing_users_table_is_kept(self, db_session: AsyncSession, student: dict):
        """An existing users table and its rows are left alone."""
        revision = _load_revision()

        def _create_users(connection):
            context = MigrationContext.configure(connection)
            with Operations.context(context):
                revision.create_users_table()

        connection = await db_session.connection()
        await connection.run_sync(_create_users)

        count = await db_session.scalar(select(func.count()).select_from(User))
        assert count == 1

    def test_downgrade_leaves_users_in_place(self):
        """Downgrade drops the feed tables but not the directory."""
        source = REVISION_PATH.read_text()
        downgrade = source.split("def downgrade()", 1)[1]
        assert 'drop_table("posts")' in downgrade
        assert 'drop_table("users")' not in downgrade
