"""
Project management endpoints.

CRUD operations for projects and project members.
"""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_principal
from collabhub.models.project import ProjectStatus
from collabhub.schemas.common import DeleteResponse
from collabhub.schemas.project import (
    ProjectCreateRequest,
    ProjectListResponse,
    ProjectMemberRequest,
    ProjectResponse,
    ProjectUpdateRequest,
)
from collabhub.services.authorization import Principal
from collabhub.services.project_service import ProjectService

router = APIRouter()


def get_project_service(
    db: AsyncSession = Depends(get_db),
) -> ProjectService:
    return ProjectService(db=db)


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
)
async def create_project(
    data: ProjectCreateRequest,
    principal: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.create_project(data, principal)


@router.get(
    "/team/{team_id}",
    response_model=ProjectListResponse,
    summary="List projects of a team",
)
async def list_team_projects(
    team_id: UUID,
    status_filter: ProjectStatus | None = Query(default=None, alias="status"),
    _: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    return await service.list_projects(team_id, status_filter)


@router.get("/{project_id}", response_model=ProjectResponse, summary="Get project detail")
async def get_project(
    project_id: UUID,
    _: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.get_project(project_id)


@router.put("/{project_id}", response_model=ProjectResponse, summary="Update project")
async def update_project(
    project_id: UUID,
    data: ProjectUpdateRequest,
    principal: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.update_project(project_id, data, principal)


@router.delete("/{project_id}", response_model=DeleteResponse, summary="Delete project")
async def delete_project(
    project_id: UUID,
    principal: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> DeleteResponse:
    return await service.delete_project(project_id, principal)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.post(
    "/{project_id}/members",
    response_model=ProjectResponse,
    summary="Add a project member or change their role",
)
async def upsert_project_member(
    project_id: UUID,
    data: ProjectMemberRequest,
    principal: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.upsert_member(project_id, data, principal)


@router.delete(
    "/{project_id}/members/{user_id}",
    response_model=ProjectResponse,
    summary="Remove a project member",
)
async def remove_project_member(
    project_id: UUID,
    user_id: UUID,
    expected_version: int | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.remove_member(project_id, user_id, principal, expected_version)
