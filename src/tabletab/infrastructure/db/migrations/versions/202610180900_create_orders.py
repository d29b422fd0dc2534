"""create orders, batches and batch lines

Revision ID: 202610180900
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "202610180900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("table_id", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("total_cents", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("bill_number", sa.String(length=50), nullable=True),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("served_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_orders_active_table",
        "orders",
        ["table_id"],
        unique=True,
        postgresql_where=sa.text("NOT is_completed"),
    )
    op.create_index("ix_orders_table_created_at", "orders", ["table_id", "created_at"])
    op.create_index(
        "ix_orders_is_completed_created_at", "orders", ["is_completed", "created_at"]
    )
    op.create_index("ix_orders_completed_at", "orders", ["completed_at"])

    op.create_table(
        "order_batches",
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("total_cents", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("order_id", "batch_id"),
    )

    op.create_table(
        "order_batch_lines",
        sa.Column("order_id", sa.String(length=50), nullable=False),
        sa.Column("batch_id", sa.String(length=64), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("menu_item_id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["order_id", "batch_id"],
            ["order_batches.order_id", "order_batches.batch_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("order_id", "batch_id", "position"),
    )


def downgrade() -> None:
    op.drop_table("order_batch_lines")
    op.drop_table("order_batches")
    op.drop_index("ix_orders_completed_at", table_name="orders")
    op.drop_index("ix_orders_is_completed_created_at", table_name="orders")
    op.drop_index("ix_orders_table_created_at", table_name="orders")
    op.drop_index("uq_orders_active_table", table_name="orders")
    op.drop_table("orders")
