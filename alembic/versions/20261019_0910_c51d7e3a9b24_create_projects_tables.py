"""create_projects_tables

Revision ID: c51d7e3a9b24
Revises: 8b2e4d6f0a13
Create Date: 2026-10-19 09:10:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = 'c51d7e3a9b24'
down_revision: Union[str, None] = '8b2e4d6f0a13'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create projects and project_members tables.

    projects.team_id carries no foreign key: projects outlive their team.
    """
    op.create_table(
        'projects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('planning', 'active', 'on_hold', 'completed', 'archived', name='project_status'),
            nullable=False,
            server_default='planning',
        ),
        sa.Column('priority', sa.Enum('low', 'medium', 'high', name='project_priority'), nullable=False, server_default='medium'),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tags', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('team_id', UUID(as_uuid=True), nullable=False),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_projects_team_id', 'projects', ['team_id'])
    op.create_index('ix_projects_owner_id', 'projects', ['owner_id'])

    op.create_table(
        'project_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'role',
            sa.Enum('viewer', 'contributor', 'manager', name='project_role'),
            nullable=False,
            server_default='contributor',
        ),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_members_project_user'),
    )
    op.create_index('ix_project_members_project_id', 'project_members', ['project_id'])
    op.create_index('ix_project_members_user_id', 'project_members', ['user_id'])


def downgrade() -> None:
    """Drop projects and project_members tables."""
    op.drop_table('project_members')
    op.drop_table('projects')
    op.execute("DROP TYPE IF EXISTS project_role")
    op.execute("DROP TYPE IF EXISTS project_priority")
    op.execute("DROP TYPE IF EXISTS project_status")
