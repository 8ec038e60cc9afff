"""initial

Revision ID: 0001
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('username', sa.String(150), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('avatar_image', sa.String(), nullable=True),
        sa.Column('is_avatar_image_set', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table('groups',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.String(200), nullable=True),
        sa.Column('creator_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_groups_creator_id', 'groups', ['creator_id'])
    op.create_table('group_members',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('group_id', sa.Integer, sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('added_by', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('group_id', 'user_id', name='uix_group_member')
    )
    op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])
    op.create_index('ix_group_members_user_id', 'group_members', ['user_id'])

    op.create_table('messages',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('sender_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('group_id', sa.Integer, sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=True),
        sa.Column('chat_type', sa.String(10), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('media', sa.JSON(), nullable=True),
        sa.Column('reply_to', sa.Integer, sa.ForeignKey('messages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_recipient_id', 'messages', ['recipient_id'])
    op.create_index('ix_messages_group_id', 'messages', ['group_id'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])

    op.create_table('calls',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('call_id', sa.String(32), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('initiator_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.Integer, sa.ForeignKey('groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('duration', sa.Integer, nullable=True),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('recording', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_calls_call_id', 'calls', ['call_id'], unique=True)
    op.create_index('ix_calls_initiator_id', 'calls', ['initiator_id'])
    op.create_index('ix_calls_status', 'calls', ['status'])
    op.create_index('ix_calls_created_at', 'calls', ['created_at'])
    op.create_table('call_participants',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('call_pk', sa.Integer, sa.ForeignKey('calls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.Column('left_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_muted', sa.Boolean(), nullable=False),
        sa.Column('is_video_off', sa.Boolean(), nullable=False),
        sa.Column('is_screen_sharing', sa.Boolean(), nullable=False)
    )
    op.create_index('ix_call_participants_call_pk', 'call_participants', ['call_pk'])
    op.create_index('ix_call_participants_user_id', 'call_participants', ['user_id'])

    op.create_table('media',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('file_id', sa.String(32), nullable=False),
        sa.Column('original_name', sa.String(), nullable=False),
        sa.Column('mime_type', sa.String(255), nullable=False),
        sa.Column('size', sa.BigInteger, nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('uploader_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('upload_token', sa.String(64), nullable=True),
        sa.Column('upload_expires_at', sa.DateTime(), nullable=True),
        sa.Column('storage_path', sa.String(), nullable=True),
        sa.Column('urls', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('processing', sa.JSON(), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_media_file_id', 'media', ['file_id'], unique=True)
    op.create_index('ix_media_type', 'media', ['type'])
    op.create_index('ix_media_uploader_id', 'media', ['uploader_id'])
    op.create_index('ix_media_status', 'media', ['status'])
    op.create_index('ix_media_expires_at', 'media', ['expires_at'])
    op.create_index('ix_media_created_at', 'media', ['created_at'])

    op.create_table('stories',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('style', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True)
    )
    op.create_index('ix_stories_user_id', 'stories', ['user_id'])
    op.create_index('ix_stories_expires_at', 'stories', ['expires_at'])
    op.create_index('ix_stories_is_active', 'stories', ['is_active'])
    op.create_table('story_views',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('story_id', sa.Integer, sa.ForeignKey('stories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('viewed_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_story_views_story_id', 'story_views', ['story_id'])
    op.create_table('story_replies',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('story_id', sa.Integer, sa.ForeignKey('stories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True)
    )
    op.create_index('ix_story_replies_story_id', 'story_replies', ['story_id'])

def downgrade():
    op.drop_table('story_replies')
    op.drop_table('story_views')
    op.drop_table('stories')
    op.drop_table('media')
    op.drop_table('call_participants')
    op.drop_table('calls')
    op.drop_table('messages')
    op.drop_table('group_members')
    op.drop_table('groups')
    op.drop_table('users')
