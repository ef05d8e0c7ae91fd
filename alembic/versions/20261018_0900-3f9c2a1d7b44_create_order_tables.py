"""create_order_tables

Revision ID: 3f9c2a1d7b44
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a1d7b44'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Product name'),
        sa.Column('sku', sa.String(length=100), nullable=False, comment='Stock keeping unit'),
        sa.Column('price', sa.Numeric(precision=15, scale=0), nullable=False, comment='Regular price (VND)'),
        sa.Column('sale_price', sa.Numeric(precision=15, scale=0), nullable=True, comment='Sale price (VND)'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0', comment='Units on hand'),
        sa.Column('sales', sa.Integer(), nullable=False, server_default='0', comment='Units sold'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('sales >= 0', name='ck_products_sales_non_negative'),
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_is_active', 'products', ['is_active'], unique=False)

    op.create_table(
        'vouchers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False, comment='Case-sensitive code'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('discount_type', sa.String(length=20), nullable=False, comment='PERCENTAGE/FIXED'),
        sa.Column('discount_value', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('min_order_value', sa.Numeric(precision=15, scale=0), nullable=True),
        sa.Column('max_discount', sa.Numeric(precision=15, scale=0), nullable=True, comment='Caps PERCENTAGE discounts'),
        sa.Column('usage_limit', sa.Integer(), nullable=True, comment='NULL = unlimited'),
        sa.Column('used_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vouchers_code', 'vouchers', ['code'], unique=True)

    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_number', sa.String(length=40), nullable=False, comment='ORD<ms><4 digits>'),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING',
                  comment='PENDING/PROCESSING/SHIPPING/COMPLETED/CANCELLED'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='UNPAID', comment='UNPAID/PAID'),
        sa.Column('payment_method', sa.String(length=20), nullable=False, comment='COD/BANK_TRANSFER/MOMO'),
        sa.Column('subtotal', sa.Numeric(precision=15, scale=0), nullable=False),
        sa.Column('discount', sa.Numeric(precision=15, scale=0), nullable=False, server_default='0'),
        sa.Column('shipping_fee', sa.Numeric(precision=15, scale=0), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(precision=15, scale=0), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=30), nullable=False),
        sa.Column('shipping_address', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('voucher_code', sa.String(length=50), nullable=True),
        sa.Column('voucher_id', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['voucher_id'], ['vouchers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_user_id', 'orders', ['user_id'], unique=False)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)
    op.create_index('ix_orders_user_created', 'orders', ['user_id', 'created_at'], unique=False)
    op.create_index(
        'ix_orders_sweep', 'orders', ['payment_method', 'status', 'payment_status', 'created_at'], unique=False
    )

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_sku', sa.String(length=100), nullable=False),
        sa.Column('price', sa.Numeric(precision=15, scale=0), nullable=False, comment='Unit price at purchase'),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=15, scale=0), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'], unique=False)

    op.create_table(
        'carts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_carts_user_id', 'carts', ['user_id'], unique=True)

    op.create_table(
        'cart_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('cart_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['cart_id'], ['carts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
    )
    op.create_index('ix_cart_items_cart_id', 'cart_items', ['cart_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_cart_items_cart_id', table_name='cart_items')
    op.drop_table('cart_items')
    op.drop_index('ix_carts_user_id', table_name='carts')
    op.drop_table('carts')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_sweep', table_name='orders')
    op.drop_index('ix_orders_user_created', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_vouchers_code', table_name='vouchers')
    op.drop_table('vouchers')
    op.drop_index('ix_products_is_active', table_name='products')
    op.drop_index('ix_products_sku', table_name='products')
    op.drop_table('products')
