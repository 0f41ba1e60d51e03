"""Create venue configuration and booking tables

Revision ID: 20250601_1000_create_booking_tables
Revises:
Create Date: 2025-06-01 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20250601_1000_create_booking_tables'
down_revision = None
branch_labels = None
depends_on = None

TABLE_STATUS = sa.Enum('ACTIVE', 'INACTIVE', name='tablestatus')
PRIORITY_ITEM_TYPE = sa.Enum('TABLE', 'GROUP', name='priorityitemtype')
BOOKING_STATUS = sa.Enum(
    'CONFIRMED', 'SEATED', 'FINISHED', 'CANCELLED', 'NO_SHOW',
    'PENDING_PAYMENT', 'PAYMENT_FAILED', 'EXPIRED', 'LATE',
    name='bookingstatus',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'venues',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_venues_slug', 'venues', ['slug'], unique=True)

    op.create_table(
        'tables',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('label', sa.String(50), nullable=False),
        sa.Column('seats', sa.Integer(), nullable=False),
        sa.Column('status', TABLE_STATUS, nullable=False, server_default='ACTIVE'),
        sa.Column('online_bookable', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('priority_rank', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint('seats > 0', name='ck_tables_seats_positive'),
    )
    op.create_index('ix_tables_venue_id', 'tables', ['venue_id'])
    op.create_index('idx_tables_venue_status', 'tables', ['venue_id', 'status'])

    op.create_table(
        'join_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('table_ids', sa.JSON(), nullable=False),
        sa.Column('min_party_size', sa.Integer(), nullable=False),
        sa.Column('max_party_size', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('min_party_size <= max_party_size', name='ck_join_groups_party_range'),
    )
    op.create_index('ix_join_groups_venue_id', 'join_groups', ['venue_id'])

    op.create_table(
        'booking_windows',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('service_id', sa.String(36)),
        sa.Column('days', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('start_date', sa.Date()),
        sa.Column('end_date', sa.Date()),
        sa.Column('blackout_periods', sa.JSON()),
        *_timestamps(),
        sa.CheckConstraint('start_time < end_time', name='ck_booking_windows_time_range'),
    )
    op.create_index('ix_booking_windows_venue_id', 'booking_windows', ['venue_id'])
    op.create_index('ix_booking_windows_service_id', 'booking_windows', ['service_id'])

    op.create_table(
        'booking_priorities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('item_type', PRIORITY_ITEM_TYPE, nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('priority_rank', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_booking_priorities_venue_id', 'booking_priorities', ['venue_id'])
    op.create_index(
        'idx_booking_priorities_venue_party', 'booking_priorities', ['venue_id', 'party_size']
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('service_id', sa.String(36)),
        sa.Column('table_id', sa.Integer(), sa.ForeignKey('tables.id'), nullable=True),
        sa.Column('is_unallocated', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('guest_name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(200)),
        sa.Column('phone', sa.String(50)),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('booking_time', sa.Time(), nullable=False),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('status', BOOKING_STATUS, nullable=False, server_default='CONFIRMED'),
        *_timestamps(),
        sa.CheckConstraint('party_size >= 1', name='ck_bookings_party_size'),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'])
    op.create_index('ix_bookings_venue_id', 'bookings', ['venue_id'])
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])
    op.create_index(
        'idx_bookings_venue_date_status', 'bookings', ['venue_id', 'booking_date', 'status']
    )

    op.create_table(
        'booking_table_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'booking_id', sa.Integer(),
            sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('table_id', sa.Integer(), sa.ForeignKey('tables.id'), nullable=False),
        sa.UniqueConstraint('booking_id', 'table_id', name='uq_booking_table'),
    )
    op.create_index('idx_assignments_table', 'booking_table_assignments', ['table_id'])

    op.create_table(
        'slot_holds',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('venue_id', sa.String(36), sa.ForeignKey('venues.id'), nullable=False),
        sa.Column('service_id', sa.String(36)),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column('lock_token', sa.String(36), nullable=False),
        sa.Column('locked_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('released_at', sa.DateTime()),
        sa.Column('reason', sa.String(50)),
    )
    op.create_index('ix_slot_holds_venue_id', 'slot_holds', ['venue_id'])
    op.create_index('ix_slot_holds_lock_token', 'slot_holds', ['lock_token'], unique=True)
    op.create_index('idx_slot_holds_slot', 'slot_holds', ['venue_id', 'booking_date', 'start_time'])


def downgrade():
    op.drop_table('slot_holds')
    op.drop_table('booking_table_assignments')
    op.drop_table('bookings')
    op.drop_table('booking_priorities')
    op.drop_table('booking_windows')
    op.drop_table('join_groups')
    op.drop_table('tables')
    op.drop_table('venues')

    bind = op.get_bind()
    BOOKING_STATUS.drop(bind, checkfirst=True)
    PRIORITY_ITEM_TYPE.drop(bind, checkfirst=True)
    TABLE_STATUS.drop(bind, checkfirst=True)
