"""Initial schema: syncable record tables

Revision ID: 000
Revises:
Create Date: 2025-11-03 10:00:00.000000

Creates the four syncable tables. Every table carries the common sync columns
(user_id, deleted, device_id, created_at, updated_at); timestamps are stored
as naive UTC.
For new installations, run: alembic upgrade head
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '000'
down_revision = None
branch_labels = None
depends_on = None


def _sync_columns():
    return [
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('device_id', sa.String(length=255), nullable=False, server_default='server'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    """Create spaces, categories, items and user_preferences"""

    op.create_table(
        'spaces',
        *_sync_columns(),
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('user_id', 'id')
    )

    op.create_table(
        'categories',
        *_sync_columns(),
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('space_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('user_id', 'id')
    )
    op.create_index('ix_categories_space_id', 'categories', ['space_id'])

    op.create_table(
        'items',
        *_sync_columns(),
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('space_id', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.String(length=255), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('image_url', sa.String(length=2048), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('user_id', 'id')
    )
    op.create_index('ix_items_space_id', 'items', ['space_id'])

    # Singleton per user
    op.create_table(
        'user_preferences',
        *_sync_columns(),
        sa.Column('id', sa.String(length=255), nullable=True),
        sa.Column('is_dark_mode', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('theme_color', sa.String(length=50), nullable=False, server_default='blue'),
        sa.PrimaryKeyConstraint('user_id')
    )


def downgrade():
    """Drop all syncable tables"""
    op.drop_table('user_preferences')
    op.drop_index('ix_items_space_id', table_name='items')
    op.drop_table('items')
    op.drop_index('ix_categories_space_id', table_name='categories')
    op.drop_table('categories')
    op.drop_table('spaces')
