"""create_tasks_table

Revision ID: e7a3f1c8d265
Revises: c51d7e3a9b24
Create Date: 2026-10-19 09:15:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = 'e7a3f1c8d265'
down_revision: Union[str, None] = 'c51d7e3a9b24'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE TYPE task_status AS ENUM ('todo', 'in_progress', 'review', 'completed')")
    op.execute("CREATE TYPE task_priority AS ENUM ('low', 'medium', 'high', 'urgent')")
    # project_id has no foreign key: tasks survive deletion of their project
    op.execute("""
        CREATE TABLE tasks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title VARCHAR(500) NOT NULL,
            description TEXT,
            status task_status NOT NULL DEFAULT 'todo',
            priority task_priority NOT NULL DEFAULT 'medium',
            due_date TIMESTAMPTZ,
            assigned_to JSONB NOT NULL DEFAULT '[]'::jsonb,
            tags JSONB NOT NULL DEFAULT '[]'::jsonb,
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            project_id UUID NOT NULL,
            created_by UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_tasks_project_id ON tasks(project_id)")
    op.execute("CREATE INDEX ix_tasks_project_status ON tasks(project_id, status)")
    op.execute("CREATE INDEX ix_tasks_created_at ON tasks(created_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS tasks")
    op.execute("DROP TYPE IF EXISTS task_priority")
    op.execute("DROP TYPE IF EXISTS task_status")
