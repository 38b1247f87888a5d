"""
Task business logic.

Task CRUD, status lifecycle and attachments. Permissions come from the
owning project; tasks carry no role list of their own.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.models.base import utcnow
from collabhub.models.reference import ReferenceField
from collabhub.models.task import Task, TaskPriority, TaskStatus
from collabhub.schemas.common import AttachmentRequest, DeleteResponse
from collabhub.schemas.task import (
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from collabhub.services.authorization import (
    Action,
    Authorizer,
    Principal,
    check_project,
    check_task,
)
from collabhub.services.populate import in_order, load_user_summaries
from collabhub.services.store import EntityStore
from collabhub.services.task_state import apply_status

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = EntityStore(db)
        self.authorizer = Authorizer(db)

    # -----------------------------------------------------------------------
    # List / get
    # -----------------------------------------------------------------------

    async def list_tasks(
        self,
        project_id: UUID,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        assigned_to: UUID | None = None,
    ) -> TaskListResponse:
        stmt = select(Task).where(Task.project_id == project_id)
        if status is not None:
            stmt = stmt.where(Task.status == status)
        if priority is not None:
            stmt = stmt.where(Task.priority == priority)
        result = await self.db.execute(stmt.order_by(Task.created_at.desc()))
        tasks = list(result.scalars().all())

        # assigned_to is a JSON list; filtered here to stay portable across backends
        if assigned_to is not None:
            tasks = [t for t in tasks if str(assigned_to) in t.assigned_to]

        return TaskListResponse(
            tasks=[await self._to_response(t) for t in tasks],
            total=len(tasks),
        )

    async def get_task(self, task_id: UUID) -> TaskResponse:
        task = await self.authorizer.load_task(task_id)
        return await self._to_response(task)

    # -----------------------------------------------------------------------
    # Create / update / delete
    # -----------------------------------------------------------------------

    async def create_task(self, data: TaskCreateRequest, principal: Principal) -> TaskResponse:
        """
        Create a task in a project.

        The project's task list is not updated; tasks are found by project_id.
        """
        project = await self.authorizer.load_project(data.project_id)
        check_project(principal, project, Action.create_task).enforce()

        task = Task(
            title=data.title,
            description=data.description,
            priority=data.priority,
            due_date=data.due_date,
            assigned_to=[str(user_id) for user_id in data.assigned_to],
            tags=data.tags,
            attachments=[],
            project_id=project.id,
            created_by=principal.id,
        )
        apply_status(task, data.status)
        self.db.add(task)
        await self.db.commit()
        logger.info("Task created: task_id=%s project_id=%s", task.id, project.id)
        return await self.get_task(task.id)

    async def update_task(
        self, task_id: UUID, data: TaskUpdateRequest, principal: Principal
    ) -> TaskResponse:
        task = await self.authorizer.load_task(task_id)
        project = await self.authorizer.load_project(task.project_id)
        check_task(principal, task, project, Action.update_task).enforce()

        if data.title is not None:
            task.title = data.title
        if data.description is not None:
            task.description = data.description
        if data.priority is not None:
            task.priority = data.priority
        if data.due_date is not None:
            task.due_date = data.due_date
        if data.assigned_to is not None:
            task.assigned_to = [str(user_id) for user_id in data.assigned_to]
        if data.tags is not None:
            task.tags = data.tags
        apply_status(task, data.status)

        await self.db.commit()
        return await self.get_task(task_id)

    async def delete_task(self, task_id: UUID, principal: Principal) -> DeleteResponse:
        """Delete a task. Its comments stay behind pointing at the deleted task."""
        task = await self.authorizer.load_task(task_id)
        project = await self.authorizer.load_project(task.project_id)
        check_task(principal, task, project, Action.delete_task).enforce()

        await self.db.delete(task)
        await self.store.discard_owned_references([task_id], ReferenceField.task_comments)
        await self.db.commit()
        logger.info("Task deleted: task_id=%s", task_id)
        return DeleteResponse(id=task_id, message="Task deleted successfully")

    # -----------------------------------------------------------------------
    # Attachments
    # -----------------------------------------------------------------------

    async def add_attachment(
        self, task_id: UUID, data: AttachmentRequest, principal: Principal
    ) -> TaskResponse:
        task = await self.authorizer.load_task(task_id)
        project = await self.authorizer.load_project(task.project_id)
        check_task(principal, task, project, Action.update_task).enforce()

        # Reassign so the JSON column is flagged dirty.
        task.attachments = [
            *task.attachments,
            {
                "name": data.name,
                "url": data.url,
                "type": data.type,
                "uploaded_at": utcnow().isoformat(),
            },
        ]
        await self.db.commit()
        return await self.get_task(task_id)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _to_response(self, task: Task) -> TaskResponse:
        users = await load_user_summaries(self.db, [task.created_by, *task.assigned_to])
        comment_ids = await self.store.references(ReferenceField.task_comments, task.id)

        return TaskResponse(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            project_id=task.project_id,
            created_by=task.created_by,
            creator=users.get(task.created_by),
            assigned_to=in_order(users, task.assigned_to),
            tags=task.tags,
            attachments=task.attachments,
            comments=comment_ids,
            completed_at=task.completed_at,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
