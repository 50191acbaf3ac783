"""initial schema: users, content, submissions, form media, contact, feedback

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(length=256), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # categories
    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", JSON, nullable=False),
        sa.Column("slug", sa.String(length=256), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    # media
    op.create_table(
        "media",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("filename", sa.String(length=512), nullable=False, unique=True),
        sa.Column("mime_type", sa.String(length=128), nullable=False),
        sa.Column("filesize", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("prefix", sa.String(length=128), nullable=False, server_default="media"),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("alt", JSON, nullable=True),
        *_timestamps(),
    )

    # posts
    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", JSON, nullable=False),
        sa.Column("slug", sa.String(length=256), nullable=False),
        sa.Column("content", JSON, nullable=False),
        sa.Column("hero_image_id", sa.Uuid(), sa.ForeignKey("media.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("meta_title", JSON, nullable=False),
        sa.Column("meta_description", JSON, nullable=False),
        sa.Column("meta_image_id", sa.Uuid(), sa.ForeignKey("media.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_posts_slug", "posts", ["slug"], unique=True)
    op.create_index("ix_posts_status_published_at", "posts", ["status", "published_at"])

    op.create_table(
        "post_categories",
        sa.Column("post_id", sa.Uuid(), sa.ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    )

    # media content submissions
    op.create_table(
        "media_content_submissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("form_type", sa.String(length=32), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("locale", sa.String(length=8), nullable=False, server_default="fr"),
        sa.Column("submission_status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(length=32), nullable=False, server_default="medium"),
        sa.Column("complainant_info", JSON, nullable=True),
        sa.Column("content_info", JSON, nullable=False),
        sa.Column("reasons", JSON, nullable=False),
        sa.Column("reason_other", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("attachment_types", JSON, nullable=False),
        sa.Column("attachment_other", sa.Text(), nullable=True),
        sa.Column("attachment_files", JSON, nullable=False),
        sa.Column("moderator_notes", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolution", JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_media_content_submissions_form_type", "media_content_submissions", ["form_type"])
    op.create_index("ix_mcs_status_priority", "media_content_submissions", ["submission_status", "priority"])
    op.create_index("ix_mcs_submitted_at", "media_content_submissions", ["submitted_at"])

    # form media (submission_id is a plain string, not a FK)
    op.create_table(
        "form_media",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("filename", sa.String(length=512), nullable=False, unique=True),
        sa.Column("mime_type", sa.String(length=128), nullable=False),
        sa.Column("filesize", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("prefix", sa.String(length=128), nullable=False, server_default="forms"),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("alt", sa.String(length=512), nullable=True),
        sa.Column("form_type", sa.String(length=32), nullable=True),
        sa.Column("file_type", sa.String(length=32), nullable=True),
        sa.Column("submission_id", sa.String(length=64), nullable=True),
        sa.Column("upload_status", sa.String(length=32), nullable=False, server_default="staging"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submission_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_form_media_submission_id", "form_media", ["submission_id"])
    op.create_index("ix_form_media_status_created", "form_media", ["upload_status", "created_at"])

    # contact submissions
    op.create_table(
        "contact_submissions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("subject", sa.String(length=512), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("locale", sa.String(length=8), nullable=False, server_default="fr"),
        sa.Column("preferred_language", sa.String(length=8), nullable=False, server_default="fr"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("reply_message", sa.Text(), nullable=True),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )

    # feedback
    op.create_table(
        "feedback",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=256), nullable=True),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.Column("subject", sa.String(length=512), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="new"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table("feedback")
    op.drop_table("contact_submissions")
    op.drop_index("ix_form_media_status_created", table_name="form_media")
    op.drop_index("ix_form_media_submission_id", table_name="form_media")
    op.drop_table("form_media")
    op.drop_index("ix_mcs_submitted_at", table_name="media_content_submissions")
    op.drop_index("ix_mcs_status_priority", table_name="media_content_submissions")
    op.drop_index("ix_media_content_submissions_form_type", table_name="media_content_submissions")
    op.drop_table("media_content_submissions")
    op.drop_table("post_categories")
    op.drop_index("ix_posts_status_published_at", table_name="posts")
    op.drop_index("ix_posts_slug", table_name="posts")
    op.drop_table("posts")
    op.drop_table("media")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
