"""Initial schema - users, sellers, products, orders, restock subscriptions, notifications

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UTC_NOW = sa.text("timezone('utc', now())")

ENUMS = {
    'userrole': ('USER', 'SELLER', 'ADMIN'),
    'productstatus': ('DRAFT', 'ACTIVE', 'SOLD_OUT', 'INACTIVE'),
    'orderstatus': ('PENDING', 'PAID', 'SHIPPED', 'DELIVERED', 'CANCELLED'),
    'notificationtype': ('RESTOCK', 'STOCK_ALERT', 'ORDER', 'SYSTEM'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def upgrade() -> None:
    # Create custom types/enums
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('role', _enum('userrole'), nullable=False, server_default='USER'),
        sa.Column('total_purchase_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'sellers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('business_number', sa.String(20), nullable=False, unique=True),
        sa.Column('min_stock_threshold', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_sellers_user_id', 'sellers', ['user_id'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('sellers.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sales_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', _enum('productstatus'), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('sales_count >= 0', name='ck_products_sales_count_non_negative'),
    )
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_index('ix_products_status', 'products', ['status'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('order_number', sa.String(50), nullable=False, unique=True),
        sa.Column('status', _enum('orderstatus'), nullable=False, server_default='PENDING'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('final_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('recipient_name', sa.String(100), nullable=False),
        sa.Column('recipient_phone', sa.String(20), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('sellers.id'), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_seller_created', 'order_items', ['seller_id', 'created_at'])
    op.create_index('ix_order_items_product_created', 'order_items', ['product_id', 'created_at'])

    op.create_table(
        'restock_subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('notified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_restock_subscriptions_product_id', 'restock_subscriptions', ['product_id'])
    op.create_index('ix_restock_subscriptions_user_id', 'restock_subscriptions', ['user_id'])
    # One pending subscription per (product, user); notified rows are history
    op.create_index(
        'uq_restock_subscriptions_pending',
        'restock_subscriptions',
        ['product_id', 'user_id'],
        unique=True,
        postgresql_where=sa.text('notified = false'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', _enum('notificationtype'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=False), nullable=False, server_default=UTC_NOW),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_type', 'notifications', ['type'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    for table in ('notifications', 'restock_subscriptions', 'order_items', 'orders', 'products', 'sellers', 'users'):
        op.drop_table(table)

    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
