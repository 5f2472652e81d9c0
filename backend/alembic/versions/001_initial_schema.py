"""Initial schema: orders, line items, audit events and users.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from orderdesk.models.order import ORDER_EVENT_TRIGGERS

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def create_immutability_triggers() -> None:
    """Make order_event append-only.

    Call this from any migration that uses batch mode on order_event, since
    batch mode recreates the table and drops its triggers.
    """
    for statement in ORDER_EVENT_TRIGGERS:
        op.execute(statement)


def upgrade() -> None:
    # --- orders ---
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("table_number", sa.String(), nullable=True),
        sa.Column("total", sa.String(), nullable=False),
        sa.Column("placed_at", sa.String(), nullable=False),
        sa.Column("cancellation_deadline", sa.String(), nullable=False),
        sa.Column("cancellable", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(), nullable=False, server_default="Pending"),
        sa.Column(
            "estimated_prep_minutes", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id"),
        sa.CheckConstraint(
            "status IN ('Pending', 'Preparing', 'Completed', 'Cancelled')",
            name="ck_orders_status",
        ),
        sa.CheckConstraint(
            "estimated_prep_minutes >= 0", name="ck_orders_prep_minutes"
        ),
    )
    op.create_index("ix_orders_owner_placed", "orders", ["owner_id", "placed_at"])
    op.create_index("ix_orders_placed_at", "orders", ["placed_at"])
    op.create_index("ix_orders_status", "orders", ["status"])

    # --- order_line_item ---
    op.create_table(
        "order_line_item",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "order_id",
            sa.String(),
            sa.ForeignKey("orders.order_id"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False, server_default=""),
        sa.Column("unit_price", sa.String(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 1", name="ck_order_line_item_quantity"),
    )
    op.create_index(
        "ix_order_line_item_order", "order_line_item", ["order_id", "position"]
    )

    # --- order_event ---
    op.create_table(
        "order_event",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("old_status", sa.String(), nullable=True),
        sa.Column("new_status", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("recorded_at", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_recorded", "order_event", ["recorded_at"])

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("registered_at", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    create_immutability_triggers()


def downgrade() -> None:
    raise NotImplementedError(
        "Downgrade not supported. Use backup-and-restore for rollback."
    )
