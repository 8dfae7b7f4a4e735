"""Add indexes for sync queries

Revision ID: 001
Revises: 000
Create Date: 2025-11-03 10:30:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '001'
down_revision = '000'
branch_labels = None
depends_on = None

SYNC_TABLES = ['spaces', 'categories', 'items', 'user_preferences']


def upgrade():
    """
    Composite indexes backing the per-user scans:
    - pull: WHERE user_id = ? AND updated_at > ? AND device_id != ?
    - restore sweep: WHERE user_id = ? AND deleted = false
    """
    for table in SYNC_TABLES:
        op.create_index(f'ix_{table}_user_updated', table, ['user_id', 'updated_at'], unique=False)
        op.create_index(f'ix_{table}_user_device', table, ['user_id', 'device_id'], unique=False)
        op.create_index(f'ix_{table}_user_deleted', table, ['user_id', 'deleted'], unique=False)


def downgrade():
    """Remove sync indexes"""
    for table in SYNC_TABLES:
        op.drop_index(f'ix_{table}_user_deleted', table_name=table)
        op.drop_index(f'ix_{table}_user_device', table_name=table)
        op.drop_index(f'ix_{table}_user_updated', table_name=table)
