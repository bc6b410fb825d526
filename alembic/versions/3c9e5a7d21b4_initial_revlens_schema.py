"""initial revlens schema

Revision ID: 3c9e5a7d21b4
Revises:
Create Date: 2026-10-19 10:12:31.482117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c9e5a7d21b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1. users
    op.create_table('users',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    # 2. projects
    op.create_table('projects',
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('project_id'),
    )
    op.create_index('idx_user_projects', 'projects', ['user_id', 'created_at'])
    op.create_index('idx_projects_deleted', 'projects', ['deleted_at'])

    # 3. source_files
    op.create_table('source_files',
        sa.Column('file_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('path', sa.String(length=1024), nullable=False),
        sa.Column('size_bytes', sa.BigInteger(), server_default='0', nullable=True),
        sa.Column('mime_type', sa.String(length=255), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('language', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('file_id'),
    )
    op.create_index('idx_source_files_project', 'source_files', ['project_id'])

    # 4. analysis_tasks (created_at/updated_at written by the application)
    op.create_table('analysis_tasks',
        sa.Column('task_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('result', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['file_id'], ['source_files.file_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('task_id'),
    )
    op.create_index('idx_analysis_tasks_project_created', 'analysis_tasks', ['project_id', 'created_at'])
    op.create_index('idx_analysis_tasks_status', 'analysis_tasks', ['status'])

    # 5. dispatch_queue
    op.create_table('dispatch_queue',
        sa.Column('entry_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('topic', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('claimed_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('claimed_by', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('entry_id'),
    )
    op.create_index('idx_dispatch_topic_claimed', 'dispatch_queue', ['topic', 'claimed_at', 'entry_id'])


def downgrade() -> None:
    op.drop_index('idx_dispatch_topic_claimed', table_name='dispatch_queue')
    op.drop_table('dispatch_queue')
    op.drop_index('idx_analysis_tasks_status', table_name='analysis_tasks')
    op.drop_index('idx_analysis_tasks_project_created', table_name='analysis_tasks')
    op.drop_table('analysis_tasks')
    op.drop_index('idx_source_files_project', table_name='source_files')
    op.drop_table('source_files')
    op.drop_index('idx_projects_deleted', table_name='projects')
    op.drop_index('idx_user_projects', table_name='projects')
    op.drop_table('projects')
    op.drop_table('users')
