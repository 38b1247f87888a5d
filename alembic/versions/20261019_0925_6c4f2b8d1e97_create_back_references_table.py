"""create_back_references_table

Revision ID: 6c4f2b8d1e97
Revises: 1d9b5a7e3c08
Create Date: 2026-10-19 09:25:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '6c4f2b8d1e97'
down_revision: Union[str, None] = '1d9b5a7e3c08'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        "CREATE TYPE reference_field AS ENUM "
        "('user_teams', 'team_projects', 'project_tasks', 'task_comments', 'comment_replies')"
    )
    # One row per list element; the primary key makes append-if-absent a single INSERT
    op.execute("""
        CREATE TABLE back_references (
            field reference_field NOT NULL,
            owner_id UUID NOT NULL,
            target_id UUID NOT NULL,
            added_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (field, owner_id, target_id)
        )
    """)
    op.execute("CREATE INDEX ix_back_references_target_id ON back_references(target_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS back_references")
    op.execute("DROP TYPE IF EXISTS reference_field")
