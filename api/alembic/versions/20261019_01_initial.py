"""Initial feed schema.

The ``users`` table belongs to the auth service's directory. It is created
here only when absent, so the feed can run standalone, and it is left in
place on downgrade.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_01_initial"
down_revision = None
branch_labels = None
depends_on = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=sa.text("NOW()"),
    )


def create_users_table() -> None:
    """Create the directory table unless the auth service already created it."""
    if sa.inspect(op.get_bind()).has_table("users"):
        return
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("university_id", sa.Text(), nullable=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("session", sa.Text(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default=sa.text("'student'")),
        _timestamp("created_at"),
        sa.UniqueConstraint("university_id", name="users_university_id_key"),
        sa.UniqueConstraint("email", name="users_email_key"),
    )


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    create_users_table()

    op.create_table(
        "tags",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("slug", name="tags_slug_key"),
    )
    op.create_index("idx_tags_name", "tags", ["name"])

    op.create_table(
        "posts",
        _uuid_pk(),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _timestamp("created_at", nullable=False),
        _timestamp("updated_at", nullable=False),
        sa.CheckConstraint(
            "status in ('draft', 'published', 'archived')",
            name="ck_posts_status",
        ),
    )
    op.create_index(
        "idx_posts_status_created_at",
        "posts",
        ["status", sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_posts_pinned_created_at",
        "posts",
        [sa.text("pinned DESC"), sa.text("created_at DESC")],
    )
    op.create_index("idx_posts_expires_at", "posts", ["expires_at"])
    op.create_index("idx_posts_author_id", "posts", ["author_id"])

    op.create_table(
        "post_tags",
        sa.Column(
            "post_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("created_at"),
    )
    op.create_index("idx_post_tags_tag_id", "post_tags", ["tag_id"])

    op.create_table(
        "post_refs",
        _uuid_pk(),
        sa.Column(
            "post_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.Text(), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _timestamp("created_at"),
    )
    op.create_index("idx_post_refs_post_id", "post_refs", ["post_id"])

    op.create_table(
        "post_votes",
        sa.Column(
            "post_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("vote", sa.SmallInteger(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("vote in (-1, 1)", name="ck_post_votes_vote"),
    )
    op.create_index("idx_post_votes_user_id", "post_votes", ["user_id"])
    op.create_index("idx_post_votes_post_vote", "post_votes", ["post_id", "vote"])

    op.create_table(
        "post_comments",
        _uuid_pk(),
        sa.Column(
            "post_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at", nullable=False),
        _timestamp("updated_at", nullable=False),
        sa.CheckConstraint("length(trim(content)) > 0", name="ck_post_comments_content"),
    )
    op.create_index(
        "idx_post_comments_post_created_at",
        "post_comments",
        ["post_id", sa.text("created_at DESC")],
    )
    op.create_index("idx_post_comments_author_id", "post_comments", ["author_id"])

    op.create_table(
        "alumni_verification_applications",
        _uuid_pk(),
        sa.Column("applicant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", sa.Text(), nullable=False),
        sa.Column("id_card_image_data_url", sa.Text(), nullable=False),
        sa.Column("current_job_info", sa.Text(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("review_note", sa.Text(), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _timestamp("created_at", nullable=False),
        _timestamp("updated_at", nullable=False),
        sa.CheckConstraint(
            "status in ('pending', 'approved', 'rejected')",
            name="ck_alumni_verification_status",
        ),
    )
    op.create_index(
        "idx_alumni_verification_applicant",
        "alumni_verification_applications",
        ["applicant_id", sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_alumni_verification_status",
        "alumni_verification_applications",
        ["status", sa.text("created_at DESC")],
    )

    op.create_table(
        "user_notification_states",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("last_seen_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _timestamp("updated_at", nullable=False),
    )

    op.create_table(
        "user_notification_reads",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("notification_key", sa.Text(), nullable=False),
        _timestamp("read_at", nullable=False),
        sa.UniqueConstraint(
            "user_id",
            "notification_key",
            name="uq_user_notification_reads_key",
        ),
    )
    op.create_index(
        "idx_user_notification_reads_user_read_at",
        "user_notification_reads",
        ["user_id", sa.text("read_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_user_notification_reads_user_read_at", table_name="user_notification_reads")
    op.drop_table("user_notification_reads")
    op.drop_table("user_notification_states")

    op.drop_index("idx_alumni_verification_status", table_name="alumni_verification_applications")
    op.drop_index("idx_alumni_verification_applicant", table_name="alumni_verification_applications")
    op.drop_table("alumni_verification_applications")

    op.drop_index("idx_post_comments_author_id", table_name="post_comments")
    op.drop_index("idx_post_comments_post_created_at", table_name="post_comments")
    op.drop_table("post_comments")

    op.drop_index("idx_post_votes_post_vote", table_name="post_votes")
    op.drop_index("idx_post_votes_user_id", table_name="post_votes")
    op.drop_table("post_votes")

    op.drop_index("idx_post_refs_post_id", table_name="post_refs")
    op.drop_table("post_refs")

    op.drop_index("idx_post_tags_tag_id", table_name="post_tags")
    op.drop_table("post_tags")

    op.drop_index("idx_posts_author_id", table_name="posts")
    op.drop_index("idx_posts_expires_at", table_name="posts")
    op.drop_index("idx_posts_pinned_created_at", table_name="posts")
    op.drop_index("idx_posts_status_created_at", table_name="posts")
    op.drop_table("posts")

    op.drop_index("idx_tags_name", table_name="tags")
    op.drop_table("tags")

    op.execute("DROP EXTENSION IF EXISTS pgcrypto")
