"""Initial schema - users, mood entries

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the core MindSync database schema:
- users: Accounts with usage counters, login security and preferences
- mood_entries: Self-reported mood samples (capped per user by the app)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(30), nullable=True, server_default='prefer-not-to-say'),
        sa.Column('timezone', sa.String(64), nullable=True, server_default='America/Bogota'),
        sa.Column('subscription_tier', sa.String(20), nullable=False, server_default='free'),
        sa.Column('total_sessions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_messages', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sessions_this_week', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_session_date', sa.DateTime(), nullable=True),
        sa.Column('last_activity', sa.DateTime(), nullable=True),
        sa.Column('mood_average', sa.Float(), nullable=False, server_default='0'),
        sa.Column('days_tracked', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_until', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('is_email_verified', sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_lock_until', 'users', ['lock_until'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])

    # Create mood_entries table
    op.create_table(
        'mood_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('mood', sa.Integer(), nullable=False),
        sa.Column('context', sa.String(500), nullable=True),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entry_id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('mood BETWEEN 1 AND 10', name='ck_mood_entries_mood_range'),
    )
    op.create_index('ix_mood_entries_user_id', 'mood_entries', ['user_id'])
    op.create_index('ix_mood_entries_timestamp', 'mood_entries', ['timestamp'])


def downgrade() -> None:
    op.drop_table('mood_entries')
    op.drop_table('users')
