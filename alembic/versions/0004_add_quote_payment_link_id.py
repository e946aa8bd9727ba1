from alembic import op
import sqlalchemy as sa

revision = '0004_add_quote_payment_link_id'
down_revision = '0003_add_app_settings'
branch_labels = None
depends_on = None

def upgrade():
    # provider link id, matched against paid payment-link sessions
    with op.batch_alter_table('quotes') as batch_op:
        batch_op.add_column(sa.Column('payment_link_id', sa.String(100), nullable=True))
        batch_op.create_unique_constraint('uq_quotes_payment_link_id', ['payment_link_id'])

def downgrade():
    with op.batch_alter_table('quotes') as batch_op:
        batch_op.drop_constraint('uq_quotes_payment_link_id', type_='unique')
        batch_op.drop_column('payment_link_id')
