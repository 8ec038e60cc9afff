"""message edits, deletes, reactions, read receipts and group invites

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None

def upgrade():
    with op.batch_alter_table('messages') as batch:
        batch.add_column(sa.Column('is_edited', sa.Boolean(), nullable=False, server_default=sa.false()))
        batch.add_column(sa.Column('edited_at', sa.DateTime(), nullable=True))
        batch.add_column(sa.Column('original_text', sa.Text(), nullable=True))
        batch.add_column(sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()))
        batch.add_column(sa.Column('deleted_at', sa.DateTime(), nullable=True))
        batch.add_column(sa.Column('deleted_by', sa.Integer, nullable=True))
        batch.add_column(sa.Column('reactions', sa.JSON(), nullable=False, server_default=sa.text("'[]'")))
        batch.add_column(sa.Column('read_by', sa.JSON(), nullable=False, server_default=sa.text("'[]'")))
        batch.create_foreign_key('fk_messages_deleted_by', 'users', ['deleted_by'], ['id'], ondelete='SET NULL')
    op.create_index('ix_messages_is_deleted', 'messages', ['is_deleted'])

    with op.batch_alter_table('groups') as batch:
        batch.add_column(sa.Column('invite_code', sa.String(32), nullable=True))
        batch.add_column(sa.Column('invite_expires_at', sa.DateTime(), nullable=True))
        batch.add_column(sa.Column('invite_max_uses', sa.Integer, nullable=True))
        batch.add_column(sa.Column('invite_uses', sa.Integer, nullable=False, server_default='0'))
    op.create_index('ix_groups_invite_code', 'groups', ['invite_code'], unique=True)

def downgrade():
    op.drop_index('ix_groups_invite_code', table_name='groups')
    with op.batch_alter_table('groups') as batch:
        batch.drop_column('invite_uses')
        batch.drop_column('invite_max_uses')
        batch.drop_column('invite_expires_at')
        batch.drop_column('invite_code')

    op.drop_index('ix_messages_is_deleted', table_name='messages')
    with op.batch_alter_table('messages') as batch:
        batch.drop_constraint('fk_messages_deleted_by', type_='foreignkey')
        for column in ('read_by', 'reactions', 'deleted_by', 'deleted_at', 'is_deleted',
                       'original_text', 'edited_at', 'is_edited'):
            batch.drop_column(column)
