"""Initial booking schema

Revision ID: 0001
Revises:
Create Date: 2024-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create resources table
    op.create_table('resources',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('granularity', sa.String(length=8), nullable=False),
        sa.Column('weekdays', sa.JSON(), nullable=False),
        sa.Column('dates', sa.JSON(), nullable=False),
        sa.Column('slot_templates', sa.JSON(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_resources_kind'), 'resources', ['kind'], unique=False)

    # Create reservations table
    op.create_table('reservations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('resource_id', sa.String(length=64), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reference', sa.String(length=32), nullable=False),
        sa.Column('customer_ref', sa.String(length=128), nullable=True),
        sa.Column('cancellation_reason', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('starts_at < ends_at', name='ck_reservation_interval_not_empty'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference')
    )
    op.create_index(op.f('ix_reservations_resource_id'), 'reservations', ['resource_id'], unique=False)
    op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
    op.create_index(op.f('ix_reservations_customer_ref'), 'reservations', ['customer_ref'], unique=False)
    op.create_index(op.f('ix_reservations_created_at'), 'reservations', ['created_at'], unique=False)
    # At most one active reservation per exact interval; overlap is checked in-process
    op.create_index(
        'uq_reservation_active_interval',
        'reservations',
        ['resource_id', 'starts_at', 'ends_at'],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    # Create reservation_events table
    op.create_table('reservation_events',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reservation_id', sa.Uuid(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('at', sa.DateTime(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_reservation_events_reservation_id'), 'reservation_events', ['reservation_id'], unique=False
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('reservation_events')
    op.drop_table('reservations')
    op.drop_table('resources')
