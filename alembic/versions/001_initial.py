"""Initial schema: users, items, images, owners, processing jobs, requests, messages

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = [
    "electronics",
    "tools",
    "furniture",
    "books",
    "sports",
    "clothing",
    "kitchen",
    "garden",
    "toys",
    "vehicles",
    "other",
    "rooms",
]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("preferred_language", sa.String(8), nullable=False, server_default="en"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_display_name", "users", ["display_name"], unique=False)

    categories = op.create_table(
        "item_categories",
        sa.Column("value", sa.String(32), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("value"),
    )
    op.bulk_insert(categories, [{"value": v, "sort_order": i} for i, v in enumerate(CATEGORIES)])

    op.create_table(
        "items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("condition", sa.String(16), nullable=False),
        sa.Column("listing_type", sa.String(16), nullable=False),
        sa.Column("sale_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("rental_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("rental_period", sa.String(16), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_items_user_id", "items", ["user_id"], unique=False)
    op.create_index("ix_items_title", "items", ["title"], unique=False)
    op.create_index("ix_items_category", "items", ["category"], unique=False)
    op.create_index("ix_items_status", "items", ["status"], unique=False)

    op.create_table(
        "item_images",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("thumbnail_url", sa.String(1024), nullable=True),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("processing_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_item_images_item_id", "item_images", ["item_id"], unique=False)

    op.create_table(
        "item_owners",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="owner"),
        sa.Column("added_by", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["added_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id", "user_id", name="uq_item_owners_item_user"),
    )
    op.create_index("ix_item_owners_item_id", "item_owners", ["item_id"], unique=False)
    op.create_index("ix_item_owners_user_id", "item_owners", ["user_id"], unique=False)

    op.create_table(
        "item_processing_jobs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("original_images", sa.JSON(), nullable=False),
        sa.Column("thumbnail_images", sa.JSON(), nullable=True),
        sa.Column("ai_generated_title", sa.String(255), nullable=True),
        sa.Column("ai_generated_description", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("processing_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processing_completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_item_processing_jobs_item_id", "item_processing_jobs", ["item_id"], unique=False)

    op.create_table(
        "item_requests",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("requester_id", sa.String(36), nullable=False),
        sa.Column("owner_id", sa.String(36), nullable=False),
        sa.Column("request_type", sa.String(16), nullable=False),
        sa.Column("offered_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("rental_start_date", sa.Date(), nullable=True),
        sa.Column("rental_end_date", sa.Date(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("counter_offer_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("counter_start_date", sa.Date(), nullable=True),
        sa.Column("counter_end_date", sa.Date(), nullable=True),
        sa.Column("counter_message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_item_requests_item_id", "item_requests", ["item_id"], unique=False)
    op.create_index("ix_item_requests_requester_id", "item_requests", ["requester_id"], unique=False)
    op.create_index("ix_item_requests_owner_id", "item_requests", ["owner_id"], unique=False)

    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("sender_id", sa.String(36), nullable=False),
        sa.Column("recipient_id", sa.String(36), nullable=False),
        sa.Column("item_id", sa.String(36), nullable=True),
        sa.Column("request_id", sa.String(36), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["request_id"], ["item_requests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"], unique=False)
    op.create_index("ix_messages_recipient_id", "messages", ["recipient_id"], unique=False)
    op.create_index("ix_messages_item_id", "messages", ["item_id"], unique=False)


def downgrade() -> None:
    op.drop_table("messages")
    op.drop_table("item_requests")
    op.drop_table("item_processing_jobs")
    op.drop_table("item_owners")
    op.drop_table("item_images")
    op.drop_index("ix_items_status", "items")
    op.drop_index("ix_items_category", "items")
    op.drop_index("ix_items_title", "items")
    op.drop_index("ix_items_user_id", "items")
    op.drop_table("items")
    op.drop_table("item_categories")
    op.drop_index("ix_users_display_name", "users")
    op.drop_index("ix_users_email", "users")
    op.drop_table("users")
