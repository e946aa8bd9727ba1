from alembic import op
import sqlalchemy as sa

revision = '0002_add_inquiries'
down_revision = '0001_init'
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'inquiries',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('event_type', sa.String(30), nullable=False),
        sa.Column('event_date', sa.Date, nullable=False),
        sa.Column('servings', sa.Integer, nullable=False),
        sa.Column('tiers', sa.Integer, nullable=False),
        sa.Column('shape', sa.String(30), nullable=False),
        sa.Column('style', sa.String(30), nullable=False),
        sa.Column('color_palette_text', sa.String(200), nullable=True),
        sa.Column('dietary_notes', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(30), nullable=False, server_default='new'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_inquiries_user_id', 'inquiries', ['user_id'])
    op.create_index('ix_inquiries_status', 'inquiries', ['status'])

    op.create_table(
        'inquiry_images',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('inquiry_id', sa.Integer, sa.ForeignKey('inquiries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('inquiry_id', sa.Integer, sa.ForeignKey('inquiries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('payment_link_url', sa.String(500), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

def downgrade():
    op.drop_table('quotes')
    op.drop_table('inquiry_images')
    op.drop_table('inquiries')
