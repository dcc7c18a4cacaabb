"""add module table for the question bank

Revision ID: 9c3e4f7a2b10
Revises: 5b7d1e0c9a42
Create Date: 2026-10-17 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9c3e4f7a2b10'
down_revision = '5b7d1e0c9a42'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'module' in set(insp.get_table_names()):
        return

    op.create_table(
        'module',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('topics', sa.Text(), nullable=True),
        sa.Column('is_custom', sa.Boolean(), nullable=False, server_default=sa.true()),
    )


def downgrade():
    op.drop_table('module')
