"""Picking and customer terms.

- customer_pricing, communication_logs
- pick_lists, pick_list_items
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "7a2f4c9e1d60"
down_revision: Union[str, None] = "3c5d0e7a91b4"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "customer_pricing",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("customer_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("special_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_to", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_customer_pricing"),
        sa.ForeignKeyConstraint(
            ["customer_id"], ["customers.id"], name="fk_customer_pricing_customer_id_customers", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], name="fk_customer_pricing_product_id_products", ondelete="CASCADE"
        ),
        sa.CheckConstraint(
            "special_price IS NOT NULL OR discount_percentage IS NOT NULL",
            name="ck_customer_pricing_price_or_discount",
        ),
        sa.CheckConstraint(
            "special_price IS NULL OR special_price >= 0", name="ck_customer_pricing_special_price_non_negative"
        ),
        sa.CheckConstraint(
            "discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)",
            name="ck_customer_pricing_discount_percentage_range",
        ),
        sa.CheckConstraint("valid_to IS NULL OR valid_to >= valid_from", name="ck_customer_pricing_valid_range"),
    )
    op.create_index("ix_customer_pricing_customer_product", "customer_pricing", ["customer_id", "product_id"])

    op.create_table(
        "communication_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("customer_id", sa.Uuid(), nullable=False),
        sa.Column("channel", sa.Text(), nullable=False),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("contact_date", sa.Date(), nullable=False),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_communication_logs"),
        sa.ForeignKeyConstraint(
            ["customer_id"], ["customers.id"], name="fk_communication_logs_customer_id_customers", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_communication_logs_customer_id", "communication_logs", ["customer_id"])

    op.create_table(
        "pick_lists",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pick_list_number", sa.Text(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("assigned_to", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_pick_lists"),
        sa.UniqueConstraint("pick_list_number", name="uq_pick_lists_pick_list_number"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], name="fk_pick_lists_order_id_orders", ondelete="CASCADE"),
    )
    op.create_index("ix_pick_lists_order_id", "pick_lists", ["order_id"])
    op.create_index("ix_pick_lists_status", "pick_lists", ["status"])

    op.create_table(
        "pick_list_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("pick_list_id", sa.Uuid(), nullable=False),
        sa.Column("line_no", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("location_id", sa.Uuid(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("quantity_picked", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_pick_list_items"),
        sa.ForeignKeyConstraint(
            ["pick_list_id"], ["pick_lists.id"], name="fk_pick_list_items_pick_list_id_pick_lists", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["product_id"], ["products.id"], name="fk_pick_list_items_product_id_products", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["location_id"],
            ["warehouse_locations.id"],
            name="fk_pick_list_items_location_id_warehouse_locations",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_pick_list_items_quantity_positive"),
        sa.CheckConstraint(
            "quantity_picked >= 0 AND quantity_picked <= quantity", name="ck_pick_list_items_quantity_picked_range"
        ),
    )
    op.create_index("ix_pick_list_items_pick_list_id", "pick_list_items", ["pick_list_id"])


def downgrade() -> None:
    op.drop_table("pick_list_items")
    op.drop_table("pick_lists")
    op.drop_table("communication_logs")
    op.drop_table("customer_pricing")
