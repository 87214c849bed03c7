"""create_store_and_marketplace_tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-18 10:12:04.318220

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


order_status_enum = sa.Enum(
    'pending', 'processing', 'shipped', 'delivered', 'completed', 'cancelled',
    name='order_status_enum',
)
shipping_method_enum = sa.Enum(
    'retiro', 'to_coordinate', 'moto', 'correo', name='shipping_method_enum'
)
stock_movement_type_enum = sa.Enum(
    'marketplace_sale', 'adjustment', name='stock_movement_type_enum'
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=True),
        sa.Column('image', sa.String(length=1000), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('draft', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('ml_item_id', sa.String(length=50), nullable=True),
        sa.Column('ml_status', sa.String(length=50), nullable=True),
        sa.Column('last_ml_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('stock IS NULL OR stock >= 0', name='products_stock_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_ml_item_id'), 'products', ['ml_item_id'], unique=False)

    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=30), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('customer_address', sa.String(length=500), nullable=True),
        sa.Column('customer_city', sa.String(length=100), nullable=True),
        sa.Column('customer_province', sa.String(length=100), nullable=True),
        sa.Column('customer_postal_code', sa.String(length=20), nullable=True),
        sa.Column('street_name', sa.String(length=255), nullable=True),
        sa.Column('street_number', sa.String(length=20), nullable=True),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(precision=12, scale=2), server_default='0', nullable=True),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', order_status_enum, server_default='pending', nullable=True),
        sa.Column('payment_id', sa.String(length=100), nullable=True),
        sa.Column('payment_status', sa.String(length=50), nullable=True),
        sa.Column('shipping_method', shipping_method_enum, server_default='retiro', nullable=True),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('ml_shipment_id', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_orders_order_number'), 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'], unique=False)

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sale_type', sa.String(length=20), server_default='unidad', nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', stock_movement_type_enum, nullable=False),
        sa.Column('requested_quantity', sa.Integer(), nullable=False),
        sa.Column('applied_quantity', sa.Integer(), nullable=False),
        sa.Column('stock_after', sa.Integer(), nullable=True),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('external_item_id', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference', 'external_item_id', name='uq_stock_movements_reference_item')
    )
    op.create_index(op.f('ix_stock_movements_product_id'), 'stock_movements', ['product_id'], unique=False)

    # Marketplace service tables
    op.create_table(
        'ml_tokens',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=50), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('expires_in', sa.Integer(), nullable=True),
        sa.Column('scope', sa.String(length=500), nullable=True),
        sa.Column('token_type', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table(
        'shipments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('ml_shipment_id', sa.String(length=50), nullable=False),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('carrier', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('estimated_delivery', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_shipments_order_id'), 'shipments', ['order_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_shipments_order_id'), table_name='shipments')
    op.drop_table('shipments')
    op.drop_table('ml_tokens')

    op.drop_index(op.f('ix_stock_movements_product_id'), table_name='stock_movements')
    op.drop_table('stock_movements')
    op.drop_table('order_items')
    op.drop_index('ix_orders_payment_status', table_name='orders')
    op.drop_index(op.f('ix_orders_order_number'), table_name='orders')
    op.drop_table('orders')
    op.drop_index(op.f('ix_products_ml_item_id'), table_name='products')
    op.drop_table('products')

    stock_movement_type_enum.drop(op.get_bind(), checkfirst=True)
    shipping_method_enum.drop(op.get_bind(), checkfirst=True)
    order_status_enum.drop(op.get_bind(), checkfirst=True)
