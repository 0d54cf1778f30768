"""Products, customers, payment methods, branches and shippings.

Revision ID: 20261019000001
Revises: 20261019000000
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261019000001"
down_revision: Union[str, None] = "20261019000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("product_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=64), nullable=True),
        sa.Column("size", sa.String(length=64), nullable=True),
        sa.Column("price", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["category_id"], ["category.category_id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("product_id"),
    )
    op.create_index(op.f("ix_products_product_name"), "products", ["product_name"], unique=False)
    op.create_index(op.f("ix_products_category_id"), "products", ["category_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("hometown", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("customer_id"),
        sa.UniqueConstraint("phone"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_customers_full_name"), "customers", ["full_name"], unique=False)

    op.create_table(
        "payments",
        sa.Column("payment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("payment_method_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("payment_id"),
        sa.UniqueConstraint("payment_method_name"),
    )

    op.create_table(
        "branches",
        sa.Column("branch_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("branch_name", sa.String(length=255), nullable=False),
        sa.Column("branch_address", sa.Text(), nullable=False),
        sa.Column("manager_id", sa.String(length=36), nullable=True),
        sa.PrimaryKeyConstraint("branch_id"),
    )
    op.create_index(op.f("ix_branches_manager_id"), "branches", ["manager_id"], unique=False)

    op.create_table(
        "shippings",
        sa.Column("shipping_id", sa.String(length=32), nullable=False),
        sa.Column("order_id", sa.String(length=32), nullable=False),
        sa.Column("name_customer", sa.String(length=255), nullable=False),
        sa.Column("phone_customer", sa.String(length=32), nullable=False),
        sa.Column("shipping_address", sa.Text(), nullable=False),
        sa.Column("carrier", sa.String(length=255), nullable=True),
        sa.Column("tracking_number", sa.String(length=64), nullable=True),
        sa.Column("shipping_cost", sa.Numeric(precision=14, scale=2), nullable=False, server_default="0"),
        sa.Column("cod_shipping", sa.Numeric(precision=14, scale=2), nullable=False, server_default="0"),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("unit_weight", sa.String(length=16), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("delivery_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_delivery_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["order_id"], ["orders.order_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("shipping_id"),
        sa.UniqueConstraint("order_id"),
    )


def downgrade() -> None:
    op.drop_table("shippings")
    op.drop_index(op.f("ix_branches_manager_id"), table_name="branches")
    op.drop_table("branches")
    op.drop_table("payments")
    op.drop_index(op.f("ix_customers_full_name"), table_name="customers")
    op.drop_table("customers")
    op.drop_index(op.f("ix_products_category_id"), table_name="products")
    op.drop_index(op.f("ix_products_product_name"), table_name="products")
    op.drop_table("products")
