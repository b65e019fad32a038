"""Shops, customers, wishlists, wishlist items and events.

Revision ID: 001
Revises:
Create Date: 2025-08-10

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "shops",
        sa.Column("id", sa.CHAR(32), primary_key=True),
        sa.Column("domain", sa.String(255), unique=True, nullable=False),
        sa.Column("access_token", sa.Text, nullable=False),
        sa.Column("installed_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.CHAR(32), primary_key=True),
        sa.Column("shop_id", sa.CHAR(32), sa.ForeignKey("shops.id", ondelete="CASCADE"), nullable=False),
        sa.Column("shop_customer_id", sa.BigInteger, nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("shop_id", "shop_customer_id", name="uq_shop_customer"),
    )

    op.create_table(
        "wishlists",
        sa.Column("id", sa.CHAR(32), primary_key=True),
        sa.Column("shop_id", sa.CHAR(32), sa.ForeignKey("shops.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_id", sa.CHAR(32), sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("share_uuid", sa.String(255), unique=True, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("shop_id", "customer_id", name="uq_shop_customer_wishlist"),
    )

    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.CHAR(32), primary_key=True),
        sa.Column("wishlist_id", sa.CHAR(32), sa.ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.BigInteger, nullable=False),
        sa.Column("variant_id", sa.BigInteger, nullable=False),
        sa.Column("handle", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("wishlist_id", "product_id", "variant_id", name="uq_wishlist_variant"),
    )
    op.create_index("ix_wishlist_items_product_variant", "wishlist_items", ["product_id", "variant_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.CHAR(32), primary_key=True),
        sa.Column("shop_id", sa.CHAR(32), sa.ForeignKey("shops.id", ondelete="CASCADE"), nullable=False),
        sa.Column("customer_id", sa.CHAR(32), sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_events_shop_customer_type", "events", ["shop_id", "customer_id", "type"])


def downgrade() -> None:
    op.drop_index("ix_events_shop_customer_type", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_wishlist_items_product_variant", table_name="wishlist_items")
    op.drop_table("wishlist_items")
    op.drop_table("wishlists")
    op.drop_table("customers")
    op.drop_table("shops")
