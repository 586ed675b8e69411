"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _fk(table: str) -> sa.ForeignKey:
    return sa.ForeignKey(f"{table}.id")


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        *_common_columns(),
        sa.Column("external_id", sa.String(128), unique=True, nullable=False, index=True),
        sa.Column("email", sa.String(255), nullable=True, index=True),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        sa.Column("profile_image_url", sa.String(1000), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="visitor"),
        sa.Column("is_initialized", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
    )

    # Projects
    op.create_table(
        "projects",
        *_common_columns(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("project_type", sa.String(100), nullable=False),
        sa.Column("budget_range", sa.String(100), nullable=False),
        sa.Column("timeline", sa.String(100), nullable=False),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("completion_percentage", sa.Integer, nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "project_updates",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False),
        sa.Column("update_type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("old_value", sa.String(255), nullable=True),
        sa.Column("new_value", sa.String(255), nullable=True),
    )

    op.create_table(
        "project_milestones",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("progress_weight", sa.Integer, nullable=False, server_default=sa.text("10")),
        sa.Column("estimated_duration_days", sa.Integer, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "project_costs",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("vendor", sa.String(255), nullable=True),
        sa.Column("date_incurred", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "project_documents",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("file_key", sa.String(1000), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("document_type", sa.String(50), nullable=False, server_default="general"),
        sa.Column("size_bytes", sa.Integer, nullable=True),
    )

    # Estimates
    money = sa.Numeric(14, 2)
    op.create_table(
        "estimates",
        *_common_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=True, index=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("input_data", postgresql.JSONB, nullable=True),
        sa.Column("timeline", sa.String(100), nullable=True),
        sa.Column("total_cost_min", money, nullable=False),
        sa.Column("total_cost_max", money, nullable=False),
        sa.Column("materials_cost_min", money, server_default=sa.text("0")),
        sa.Column("materials_cost_max", money, server_default=sa.text("0")),
        sa.Column("labor_cost_min", money, server_default=sa.text("0")),
        sa.Column("labor_cost_max", money, server_default=sa.text("0")),
        sa.Column("permits_cost_min", money, server_default=sa.text("0")),
        sa.Column("permits_cost_max", money, server_default=sa.text("0")),
        sa.Column("contingency_cost_min", money, server_default=sa.text("0")),
        sa.Column("contingency_cost_max", money, server_default=sa.text("0")),
        sa.Column("ai_analysis", postgresql.JSONB, nullable=True),
        sa.Column("trade_breakdowns", postgresql.JSONB, nullable=True),
    )

    # Contractors
    op.create_table(
        "contractors",
        *_common_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("business_name", sa.String(500), nullable=False),
        sa.Column("specialty", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("location", sa.String(500), nullable=False),
        sa.Column("service_area", sa.String(500), nullable=False),
        sa.Column("years_experience", sa.Integer, nullable=False),
        sa.Column("rating", sa.Numeric(3, 2), server_default=sa.text("0")),
        sa.Column("review_count", sa.Integer, server_default=sa.text("0")),
        sa.Column("verified", sa.Boolean, server_default=sa.text("false")),
        sa.Column("license_number", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("stripe_account_id", sa.String(255), nullable=True, index=True),
        sa.Column("stripe_onboarding_complete", sa.Boolean, server_default=sa.text("false")),
    )

    # Messaging
    op.create_table(
        "conversations",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=True, index=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "conversation_participants",
        *_common_columns(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            _fk("conversations"),
            nullable=False,
            index=True,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("is_hidden", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("conversation_id", "user_id"),
    )

    op.create_table(
        "messages",
        *_common_columns(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            _fk("conversations"),
            nullable=False,
            index=True,
        ),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("message_type", sa.String(20), nullable=False, server_default="text"),
        sa.Column("attachments", postgresql.JSONB, nullable=True),
        sa.Column("read_by", postgresql.JSONB, nullable=True),
    )

    # Photos
    op.create_table(
        "project_photos",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("file_key", sa.String(1000), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("caption", sa.Text, nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="general"),
    )

    # Payments
    op.create_table(
        "payments",
        *_common_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), _fk("projects"), nullable=False, index=True),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            _fk("conversations"),
            nullable=True,
            index=True,
        ),
        sa.Column("payer_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("payee_id", postgresql.UUID(as_uuid=True), _fk("users"), nullable=False, index=True),
        sa.Column("contractor_id", postgresql.UUID(as_uuid=True), _fk("contractors"), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("platform_fee", sa.Numeric(14, 2), server_default=sa.text("0")),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True, index=True),
        sa.Column("description", sa.Text, nullable=True),
    )


def downgrade() -> None:
    for table in (
        "payments",
        "project_photos",
        "messages",
        "conversation_participants",
        "conversations",
        "contractors",
        "estimates",
        "project_documents",
        "project_costs",
        "project_milestones",
        "project_updates",
        "projects",
        "users",
    ):
        op.drop_table(table)
