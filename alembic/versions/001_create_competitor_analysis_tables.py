"""create users and competitor_analyses tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255)),
        sa.Column("role", sa.String(50), server_default="member"),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "competitor_analyses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("campaign_id", UUID(as_uuid=True)),
        sa.Column("result_type", sa.String(50), server_default="competitor_analysis"),
        sa.Column("analysis_type", sa.String(50), server_default="comprehensive"),
        sa.Column("status", sa.String(30), server_default="processing"),
        sa.Column("input_data", JSONB, server_default="{}"),
        sa.Column("competitor_analysis", JSONB),
        sa.Column("ai_metadata", JSONB),
        sa.Column("error_details", JSONB),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_competitor_analyses_user_id", "competitor_analyses", ["user_id"])
    op.create_index("ix_competitor_analyses_campaign_id", "competitor_analyses", ["campaign_id"])
    op.create_index("ix_competitor_analyses_status", "competitor_analyses", ["status"])
    op.create_index("ix_competitor_analyses_expires_at", "competitor_analyses", ["expires_at"])
    op.create_index("ix_competitor_analyses_created_at", "competitor_analyses", ["created_at"])
    # History listing: a user's analyses newest first
    op.create_index(
        "ix_competitor_analyses_user_created",
        "competitor_analyses",
        ["user_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_table("competitor_analyses")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
