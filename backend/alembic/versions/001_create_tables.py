"""Create inquiries, media, admin and analytics tables

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Initial schema: inquiries, media_metadata, admin_users,
       refresh_tokens and api_analytics, with their query indexes.
How:   Portable column types only, so the same revision runs on PostgreSQL
       and on SQLite for local development.

Rollback: downgrade() drops every table (destructive; all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    # ── inquiries ─────────────────────────────────────────────────────────
    op.create_table(
        "inquiries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
            comment="pending, in_progress, completed, cancelled",
        ),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("3")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.String(100), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_inquiries_status_created", "inquiries", ["status", "created_at"])
    op.create_index("idx_inquiries_email", "inquiries", ["email"])
    op.create_index("idx_inquiries_priority", "inquiries", ["priority"])

    # ── media_metadata ────────────────────────────────────────────────────
    op.create_table(
        "media_metadata",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("media_type", sa.String(10), nullable=False),
        sa.Column("section", sa.String(50), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("cloudinary_public_id", sa.String(255), nullable=False, unique=True),
        sa.Column("cloudinary_url", sa.Text(), nullable=False),
        sa.Column("secure_url", sa.Text(), nullable=False),
        sa.Column("original_filename", sa.String(255), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("format", sa.String(20), nullable=True),
        sa.Column("duration", sa.Float(), nullable=True),
        sa.Column("alt_text", sa.String(200), nullable=True),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("access_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("last_accessed", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_media_type_section", "media_metadata", ["media_type", "section", "is_active"])
    op.create_index("idx_media_section_order", "media_metadata", ["section", "sort_order"])

    # ── admin_users / refresh_tokens ──────────────────────────────────────
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(254), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'admin'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("last_login", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
    )
    op.create_index("idx_refresh_tokens_user", "refresh_tokens", ["user_id", "is_active"])

    # ── api_analytics ─────────────────────────────────────────────────────
    op.create_table(
        "api_analytics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("endpoint", sa.String(255), nullable=False),
        sa.Column("method", sa.String(10), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("response_time_ms", sa.Float(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("idx_api_analytics_endpoint_created", "api_analytics", ["endpoint", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_api_analytics_endpoint_created", table_name="api_analytics")
    op.drop_table("api_analytics")
    op.drop_index("idx_refresh_tokens_user", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")
    op.drop_table("admin_users")
    op.drop_index("idx_media_section_order", table_name="media_metadata")
    op.drop_index("idx_media_type_section", table_name="media_metadata")
    op.drop_table("media_metadata")
    op.drop_index("idx_inquiries_priority", table_name="inquiries")
    op.drop_index("idx_inquiries_email", table_name="inquiries")
    op.drop_index("idx_inquiries_status_created", table_name="inquiries")
    op.drop_table("inquiries")
