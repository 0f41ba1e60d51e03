"""Add staff blocks

Revision ID: 20250615_0900_add_blocks
Revises: 20250601_1000_create_booking_tables
Create Date: 2025-06-15 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20250615_0900_add_blocks'
down_revision = '20250601_1000_create_booking_tables'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'blocks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('block_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('table_ids', sa.JSON(), nullable=False),
        sa.Column('reason', sa.String(200)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('start_time < end_time', name='ck_blocks_time_range'),
    )
    op.create_index('ix_blocks_venue_id', 'blocks', ['venue_id'])
    op.create_index('idx_blocks_venue_date', 'blocks', ['venue_id', 'block_date'])


def downgrade():
    op.drop_index('idx_blocks_venue_date', table_name='blocks')
    op.drop_index('ix_blocks_venue_id', table_name='blocks')
    op.drop_table('blocks')
