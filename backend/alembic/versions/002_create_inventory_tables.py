"""Create catalog, inventory, supply, transfer and sales tables

Revision ID: 002
Revises: 001
Create Date: 2025-01-06 00:10:00.000000+00:00

What:  Everything that moves stock:

           suppliers ─┐
                      ├─ supply_orders ─ supply_order_items ─┐
           products ──┼─ inventory (warehouse_stock, display_stock)
                      ├─ stock_transfers ─ stock_transfer_items
                      └─ sales ─ sale_items

       The inventory CHECK constraints are the last line of defence for
       non-negative stock.

Rollback: downgrade() drops all tables in reverse dependency order.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _fk(column: str, target: str, ondelete: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        column, sa.String(64), sa.ForeignKey(target, ondelete=ondelete), nullable=nullable
    )


def upgrade() -> None:
    # ── Catalog ───────────────────────────────────────────────────────────
    op.create_table(
        "products",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("sku", sa.String(7), nullable=False),
        sa.Column("selling_price", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("sku", name="uq_products_sku"),
    )
    op.create_index("idx_products_created_at", "products", ["created_at"])
    op.create_index("idx_products_is_active", "products", ["is_active"])

    op.create_table(
        "inventory",
        sa.Column("id", sa.String(64), primary_key=True),
        _fk("product_id", "products.id", "CASCADE"),
        sa.Column("warehouse_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("display_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_stock_update", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("product_id", name="uq_inventory_product_id"),
        sa.CheckConstraint("warehouse_stock >= 0", name="ck_inventory_warehouse_non_negative"),
        sa.CheckConstraint("display_stock >= 0", name="ck_inventory_display_non_negative"),
    )

    # ── Supply ────────────────────────────────────────────────────────────
    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("contact_person", sa.String(50), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("address", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "supply_orders",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False),
        _fk("supplier_id", "suppliers.id", "RESTRICT"),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("order_number", name="uq_supply_orders_order_number"),
    )
    op.create_index("idx_supply_orders_supplier_id", "supply_orders", ["supplier_id"])
    op.create_index("idx_supply_orders_order_date", "supply_orders", ["order_date"])

    op.create_table(
        "supply_order_items",
        sa.Column("id", sa.String(64), primary_key=True),
        _fk("supply_order_id", "supply_orders.id", "CASCADE"),
        _fk("product_id", "products.id", "RESTRICT"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchase_price", sa.Float(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # ── Transfers ─────────────────────────────────────────────────────────
    op.create_table(
        "stock_transfers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("transfer_number", sa.String(32), nullable=False),
        sa.Column("transfer_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _fk("performed_by", "users.id", "SET NULL", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("transfer_number", name="uq_stock_transfers_transfer_number"),
    )
    op.create_index("idx_stock_transfers_transfer_date", "stock_transfers", ["transfer_date"])

    op.create_table(
        "stock_transfer_items",
        sa.Column("id", sa.String(64), primary_key=True),
        _fk("transfer_id", "stock_transfers.id", "CASCADE"),
        _fk("product_id", "products.id", "RESTRICT"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    # ── Sales ─────────────────────────────────────────────────────────────
    op.create_table(
        "sales",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("sale_number", sa.String(32), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("reference_number", sa.String(50), nullable=True),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.String(10), nullable=False, comment="cash or qris"),
        sa.Column("paid_amount", sa.Float(), nullable=False),
        sa.Column("change_amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        _fk("cashier_id", "users.id", "SET NULL", nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("sale_number", name="uq_sales_sale_number"),
    )
    op.create_index("idx_sales_sale_date", "sales", ["sale_date"])
    op.create_index("idx_sales_cashier_id", "sales", ["cashier_id"])
    op.create_index("idx_sales_created_at", "sales", ["created_at"])

    op.create_table(
        "sale_items",
        sa.Column("id", sa.String(64), primary_key=True),
        _fk("sale_id", "sales.id", "CASCADE"),
        _fk("product_id", "products.id", "RESTRICT"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_sale_items_product_id", "sale_items", ["product_id"])


def downgrade() -> None:
    op.drop_index("idx_sale_items_product_id", table_name="sale_items")
    op.drop_table("sale_items")
    op.drop_index("idx_sales_created_at", table_name="sales")
    op.drop_index("idx_sales_cashier_id", table_name="sales")
    op.drop_index("idx_sales_sale_date", table_name="sales")
    op.drop_table("sales")
    op.drop_table("stock_transfer_items")
    op.drop_index("idx_stock_transfers_transfer_date", table_name="stock_transfers")
    op.drop_table("stock_transfers")
    op.drop_table("supply_order_items")
    op.drop_index("idx_supply_orders_order_date", table_name="supply_orders")
    op.drop_index("idx_supply_orders_supplier_id", table_name="supply_orders")
    op.drop_table("supply_orders")
    op.drop_table("suppliers")
    op.drop_table("inventory")
    op.drop_index("idx_products_is_active", table_name="products")
    op.drop_index("idx_products_created_at", table_name="products")
    op.drop_table("products")
