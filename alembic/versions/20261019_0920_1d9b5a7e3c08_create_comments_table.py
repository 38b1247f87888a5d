"""create_comments_table

Revision ID: 1d9b5a7e3c08
Revises: e7a3f1c8d265
Create Date: 2026-10-19 09:20:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '1d9b5a7e3c08'
down_revision: Union[str, None] = 'e7a3f1c8d265'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # task_id and parent_comment_id are plain columns; orphans are allowed
    op.execute("""
        CREATE TABLE comments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            content TEXT NOT NULL,
            task_id UUID NOT NULL,
            author_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parent_comment_id UUID,
            mentions JSONB NOT NULL DEFAULT '[]'::jsonb,
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            is_edited BOOLEAN NOT NULL DEFAULT false,
            edited_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_comments_task_id ON comments(task_id)")
    op.execute("CREATE INDEX ix_comments_author_id ON comments(author_id)")
    op.execute(
        "CREATE INDEX ix_comments_parent_comment_id ON comments(parent_comment_id) "
        "WHERE parent_comment_id IS NOT NULL"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS comments")
