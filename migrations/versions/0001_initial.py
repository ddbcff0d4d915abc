"""Initial schema: users, groups, songs, rounds, performances and notifications."""

from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('email', sa.String(), unique=True, index=True),
        sa.Column('name', sa.String()),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'sessions',
        sa.Column('token', sa.String(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'memberships',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'group_id', name='uq_memberships_user_group'),
    )
    op.create_table(
        'group_invitations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('invited_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'songs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('lyrics', sa.Text(), nullable=False),
        sa.Column('genre', sa.String(), nullable=False),
        sa.Column('key', sa.String()),
        sa.Column('notes', sa.Text()),
        sa.Column('favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('harmonica', sa.String()),
        sa.Column('bas_bariton', sa.String()),
        sa.Column('accordion_tuning', sa.String()),
        sa.Column('instrument', sa.String()),
        *_timestamps(),
    )
    op.create_table(
        'rounds',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'round_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('round_id', sa.Integer(), sa.ForeignKey('rounds.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('song_id', sa.Integer(), sa.ForeignKey('songs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint('round_id', 'song_id', name='uq_round_items_round_song'),
    )
    op.create_table(
        'performances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('location', sa.String()),
        sa.Column('date', sa.DateTime(), nullable=False, index=True),
        sa.Column('duration', sa.Integer()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        'performance_setlist_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('performance_id', sa.Integer(), sa.ForeignKey('performances.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('song_id', sa.Integer(), sa.ForeignKey('songs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.UniqueConstraint('performance_id', 'song_id', name='uq_setlist_items_performance_song'),
    )
    op.create_table(
        'performance_reminders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('performance_id', sa.Integer(), sa.ForeignKey('performances.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('reminder_time', sa.DateTime(), nullable=False, index=True),
        sa.Column('sent', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'push_subscriptions',
        sa.Column('endpoint', sa.String(), primary_key=True),
        sa.Column('p256dh', sa.String(), nullable=False),
        sa.Column('auth', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('metadata', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    for table in (
        'logs',
        'push_subscriptions',
        'notifications',
        'performance_reminders',
        'performance_setlist_items',
        'performances',
        'round_items',
        'rounds',
        'songs',
        'group_invitations',
        'memberships',
        'groups',
        'sessions',
        'users',
    ):
        op.drop_table(table)
