"""Create folders, files, collections and profiles tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

visibility_enum = postgresql.ENUM('private', 'shared', name='visibility', create_type=False)
file_type_enum = postgresql.ENUM(
    'pdf', 'docx', 'pptx', 'txt', 'png', 'jpg', 'mp3', 'wav', 'm4a', 'mp4', 'mov',
    name='file_type', create_type=False
)
file_status_enum = postgresql.ENUM(
    'idle', 'uploading', 'scanning', 'processing', 'ready', 'error', 'quarantined',
    name='file_status', create_type=False
)
role_enum = postgresql.ENUM('Admin', 'Student', 'Guest', name='role', create_type=False)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    for enum in (visibility_enum, file_type_enum, file_status_enum, role_enum):
        enum.create(bind, checkfirst=True)

    op.create_table('folders',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('parent_id', sa.UUID(), nullable=True),
        sa.Column('visibility', visibility_enum, nullable=False, server_default='private'),
        sa.Column('path', postgresql.ARRAY(sa.UUID()), nullable=False, server_default='{}'),
        sa.Column('created_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['parent_id'], ['folders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_folders_id'), 'folders', ['id'], unique=False)
    op.create_index(op.f('ix_folders_owner_id'), 'folders', ['owner_id'], unique=False)
    op.create_index(op.f('ix_folders_parent_id'), 'folders', ['parent_id'], unique=False)
    # Descendant lookups during folder deletion filter on path overlap
    op.execute('CREATE INDEX IF NOT EXISTS idx_folders_path ON folders USING GIN(path)')

    op.create_table('files',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('folder_id', sa.UUID(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('type', file_type_enum, nullable=False),
        sa.Column('size', sa.BigInteger(), nullable=False),
        sa.Column('status', file_status_enum, nullable=False, server_default='idle'),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('visibility', visibility_enum, nullable=False, server_default='private'),
        sa.Column('collection_ids', postgresql.ARRAY(sa.UUID()), nullable=False, server_default='{}'),
        sa.Column('tags', postgresql.ARRAY(sa.String()), nullable=False, server_default='{}'),
        sa.Column('meta', postgresql.JSONB(), nullable=True),
        sa.Column('ai_content', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['folder_id'], ['folders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('progress BETWEEN 0 AND 100', name='ck_files_progress_range'),
        sa.CheckConstraint("(progress = 100) = (status = 'ready')", name='ck_files_progress_ready')
    )
    op.create_index(op.f('ix_files_id'), 'files', ['id'], unique=False)
    op.create_index(op.f('ix_files_owner_id'), 'files', ['owner_id'], unique=False)
    op.create_index(op.f('ix_files_folder_id'), 'files', ['folder_id'], unique=False)
    op.create_index('ix_files_folder_visibility_created', 'files', ['folder_id', 'visibility', 'created_at'], unique=False)

    op.create_table('collections',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('visibility', visibility_enum, nullable=False, server_default='private'),
        sa.Column('file_ids', postgresql.ARRAY(sa.UUID()), nullable=False, server_default='{}'),
        sa.Column('created_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', postgresql.TIMESTAMPTZ(), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_collections_id'), 'collections', ['id'], unique=False)
    op.create_index(op.f('ix_collections_owner_id'), 'collections', ['owner_id'], unique=False)
    op.execute('CREATE INDEX IF NOT EXISTS idx_collections_file_ids ON collections USING GIN(file_ids)')

    # Note: profiles.id matches auth.users(id); that foreign key lives in the
    # Supabase SQL migration since Alembic has no access to the auth schema
    op.create_table('profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('role', role_enum, nullable=False, server_default='Student'),
        sa.Column('settings', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('profiles')
    op.drop_index('idx_collections_file_ids', table_name='collections')
    op.drop_index(op.f('ix_collections_owner_id'), table_name='collections')
    op.drop_index(op.f('ix_collections_id'), table_name='collections')
    op.drop_table('collections')
    op.drop_index('ix_files_folder_visibility_created', table_name='files')
    op.drop_index(op.f('ix_files_folder_id'), table_name='files')
    op.drop_index(op.f('ix_files_owner_id'), table_name='files')
    op.drop_index(op.f('ix_files_id'), table_name='files')
    op.drop_table('files')
    op.drop_index('idx_folders_path', table_name='folders')
    op.drop_index(op.f('ix_folders_parent_id'), table_name='folders')
    op.drop_index(op.f('ix_folders_owner_id'), table_name='folders')
    op.drop_index(op.f('ix_folders_id'), table_name='folders')
    op.drop_table('folders')

    bind = op.get_bind()
    for enum in (role_enum, file_status_enum, file_type_enum, visibility_enum):
        enum.drop(bind, checkfirst=True)
