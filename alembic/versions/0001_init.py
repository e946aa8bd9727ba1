from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('preferred_language', sa.String(5), nullable=False, server_default='en'),
        sa.Column('is_admin', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)

    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('dietary_tags', sa.JSON, nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'pickup_windows',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('label', sa.String(100), nullable=False, unique=True),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.Column('max_capacity', sa.Integer, nullable=False, server_default='20'),
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'inventory',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('menu_item_id', sa.Integer, sa.ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pickup_date', sa.Date, nullable=False),
        sa.Column('daily_cap', sa.Integer, nullable=False),
        sa.Column('reserved_quantity', sa.Integer, nullable=False, server_default='0'),
        sa.UniqueConstraint('menu_item_id', 'pickup_date', name='uq_inventory_item_date'),
        sa.CheckConstraint('daily_cap >= 0', name='ck_inventory_cap_non_negative'),
        sa.CheckConstraint('reserved_quantity >= 0', name='ck_inventory_reserved_non_negative'),
    )
    op.create_index('ix_inventory_menu_item_id', 'inventory', ['menu_item_id'])
    op.create_index('ix_inventory_pickup_date', 'inventory', ['pickup_date'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('pickup_date', sa.Date, nullable=False),
        sa.Column('pickup_window_id', sa.Integer, sa.ForeignKey('pickup_windows.id'), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='paid'),
        sa.Column('subtotal_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('service_fee_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('delivery_fee_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('delivery_address', sa.JSON, nullable=True),
        sa.Column('notes', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('stripe_session_id', name='uq_orders_stripe_session_id'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_pickup_date', 'orders', ['pickup_date'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('menu_item_id', sa.Integer, sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(10, 2), nullable=False),
        sa.Column('name_snapshot', sa.String(100), nullable=True),
    )

def downgrade():
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('inventory')
    op.drop_table('pickup_windows')
    op.drop_table('menu_items')
    op.drop_table('profiles')
