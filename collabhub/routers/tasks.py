"""
Task endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_principal
from collabhub.models.task import TaskPriority, TaskStatus
from collabhub.schemas.common import AttachmentRequest, DeleteResponse
from collabhub.schemas.task import (
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from collabhub.services.authorization import Principal
from collabhub.services.task_service import TaskService

router = APIRouter()


def get_task_service(
    db: AsyncSession = Depends(get_db),
) -> TaskService:
    return TaskService(db=db)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    data: TaskCreateRequest,
    principal: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return await service.create_task(data, principal)


@router.get(
    "/project/{project_id}",
    response_model=TaskListResponse,
    summary="List tasks of a project",
)
async def list_project_tasks(
    project_id: UUID,
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    assigned_to: UUID | None = Query(default=None),
    _: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    return await service.list_tasks(project_id, status_filter, priority, assigned_to)


@router.get("/{task_id}", response_model=TaskResponse, summary="Get task detail")
async def get_task(
    task_id: UUID,
    _: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return await service.get_task(task_id)


@router.put("/{task_id}", response_model=TaskResponse, summary="Update task")
async def update_task(
    task_id: UUID,
    data: TaskUpdateRequest,
    principal: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Omitting `status` leaves the status and completion time unchanged."""
    return await service.update_task(task_id, data, principal)


@router.delete("/{task_id}", response_model=DeleteResponse, summary="Delete task")
async def delete_task(
    task_id: UUID,
    principal: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> DeleteResponse:
    return await service.delete_task(task_id, principal)


@router.post(
    "/{task_id}/attachments",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file reference to a task",
)
async def add_task_attachment(
    task_id: UUID,
    data: AttachmentRequest,
    principal: Principal = Depends(get_principal),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    return await service.add_attachment(task_id, data, principal)
