from alembic import op
import sqlalchemy as sa

revision = '0003_add_app_settings'
down_revision = '0002_add_inquiries'
branch_labels = None
depends_on = None

def upgrade():
    # runtime business parameters, one validated JSON document per key
    op.create_table(
        'app_settings',
        sa.Column('key', sa.String(50), primary_key=True),
        sa.Column('value', sa.JSON, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

def downgrade():
    op.drop_table('app_settings')
