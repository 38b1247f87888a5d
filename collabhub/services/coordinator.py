"""
Consistency coordinator.

After a primary write has been committed, brings the back-reference lists of
related entities in line with it. Every event maps to a fixed, ordered list
of steps; each step is one atomic statement committed on its own. There is
no compensation: if a step fails, the steps before it stay applied, the
failure is logged and PropagationFailedError is raised so the caller can
report the inconsistency.

| Event                 | Steps                                                       |
|-----------------------|-------------------------------------------------------------|
| team_created          | push team -> creator.teams                                   |
| team_member_added     | push team -> user.teams                                      |
| team_member_removed   | pull team <- user.teams                                      |
| team_deleted          | pull team <- teams of every member captured before deletion  |
| project_created       | push project -> team.projects                                |
| comment_created       | push comment -> task.comments; push -> parent.replies        |
| comment_deleted       | pull <- task.comments; pull <- parent.replies;               |
|                       | delete direct replies (one level only)                       |

Role changes on teams and projects, and project member additions, have no
steps: project membership does not feed any user-side list.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Iterable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from collabhub.core.exceptions import PropagationFailedError
from collabhub.models.comment import Comment
from collabhub.models.reference import ReferenceField
from collabhub.services.store import EntityStore

logger = logging.getLogger(__name__)

Step = tuple[str, Callable[[], Awaitable[object]]]


class PropagationEvent(str, enum.Enum):
    team_created = "team_created"
    team_member_added = "team_member_added"
    team_member_removed = "team_member_removed"
    team_deleted = "team_deleted"
    project_created = "project_created"
    comment_created = "comment_created"
    comment_deleted = "comment_deleted"


class ConsistencyCoordinator:
    """Runs the propagation steps for one event, in order."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def team_created(self, team_id: UUID, creator_id: UUID) -> None:
        await self._run(
            PropagationEvent.team_created,
            team_id,
            [
                ("push creator.teams",
                 lambda: self.store.push(ReferenceField.user_teams, creator_id, team_id)),
            ],
        )

    async def team_member_added(self, team_id: UUID, user_id: UUID) -> None:
        await self._run(
            PropagationEvent.team_member_added,
            team_id,
            [
                ("push user.teams",
                 lambda: self.store.push(ReferenceField.user_teams, user_id, team_id)),
            ],
        )

    async def team_member_removed(self, team_id: UUID, user_id: UUID) -> None:
        await self._run(
            PropagationEvent.team_member_removed,
            team_id,
            [
                ("pull user.teams",
                 lambda: self.store.pull(ReferenceField.user_teams, user_id, team_id)),
            ],
        )

    async def team_deleted(self, team_id: UUID, member_ids: Iterable[UUID]) -> None:
        member_ids = list(member_ids)
        await self._run(
            PropagationEvent.team_deleted,
            team_id,
            [
                ("pull members.teams",
                 lambda: self.store.pull_from_many(ReferenceField.user_teams, member_ids, team_id)),
            ],
        )

    async def project_created(self, project_id: UUID, team_id: UUID) -> None:
        await self._run(
            PropagationEvent.project_created,
            project_id,
            [
                ("push team.projects",
                 lambda: self.store.push(ReferenceField.team_projects, team_id, project_id)),
            ],
        )

    async def comment_created(self, comment: Comment) -> None:
        steps: list[Step] = [
            ("push task.comments",
             lambda: self.store.push(ReferenceField.task_comments, comment.task_id, comment.id)),
        ]
        if comment.parent_comment_id is not None:
            parent_id = comment.parent_comment_id
            steps.append(
                ("push parent.replies",
                 lambda: self.store.push(ReferenceField.comment_replies, parent_id, comment.id)),
            )
        await self._run(PropagationEvent.comment_created, comment.id, steps)

    async def comment_deleted(self, comment: Comment, reply_ids: list[UUID]) -> None:
        """
        `reply_ids` is the deleted comment's replies list, read before deletion.

        Replies are removed as documents together with the lists they own,
        but nothing below them is touched: a reply to a reply keeps existing
        and its id stays wherever it was listed.
        """
        steps: list[Step] = [
            ("pull task.comments",
             lambda: self.store.pull(ReferenceField.task_comments, comment.task_id, comment.id)),
        ]
        if comment.parent_comment_id is not None:
            parent_id = comment.parent_comment_id
            steps.append(
                ("pull parent.replies",
                 lambda: self.store.pull(ReferenceField.comment_replies, parent_id, comment.id)),
            )
        if reply_ids:
            steps.append(("delete replies", lambda: self._delete_replies(reply_ids)))
        await self._run(PropagationEvent.comment_deleted, comment.id, steps)

    async def _delete_replies(self, reply_ids: list[UUID]) -> None:
        await self.store.delete_many(Comment, reply_ids)
        await self.store.discard_owned_references(reply_ids, ReferenceField.comment_replies)

    async def _run(self, event: PropagationEvent, resource_id: UUID, steps: list[Step]) -> None:
        for name, step in steps:
            try:
                await step()
                await self.store.commit()
            except SQLAlchemyError as exc:
                await self.store.rollback()
                logger.error(
                    "Propagation failed: event=%s step=%r resource_id=%s error=%s",
                    event.value,
                    name,
                    resource_id,
                    exc,
                )
                raise PropagationFailedError(event.value, name, resource_id) from exc
            logger.debug("Propagated %s step=%r resource_id=%s", event.value, name, resource_id)
