"""
Team management endpoints.

CRUD for teams plus add / change-role / remove for team members.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_principal
from collabhub.schemas.common import DeleteResponse
from collabhub.schemas.team import (
    TeamCreateRequest,
    TeamListResponse,
    TeamMemberRequest,
    TeamResponse,
    TeamUpdateRequest,
)
from collabhub.services.authorization import Principal
from collabhub.services.team_service import TeamService

router = APIRouter()


def get_team_service(
    db: AsyncSession = Depends(get_db),
) -> TeamService:
    return TeamService(db=db)


@router.post(
    "",
    response_model=TeamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a team",
)
async def create_team(
    data: TeamCreateRequest,
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamResponse:
    return await service.create_team(data, principal)


@router.get("/my-teams", response_model=TeamListResponse, summary="List my teams")
async def list_my_teams(
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamListResponse:
    return await service.list_my_teams(principal)


@router.get("/{team_id}", response_model=TeamResponse, summary="Get team detail")
async def get_team(
    team_id: UUID,
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamResponse:
    """Private teams are visible to their members and creator only."""
    return await service.get_team(team_id, principal)


@router.put("/{team_id}", response_model=TeamResponse, summary="Update team")
async def update_team(
    team_id: UUID,
    data: TeamUpdateRequest,
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamResponse:
    return await service.update_team(team_id, data, principal)


@router.delete("/{team_id}", response_model=DeleteResponse, summary="Delete team")
async def delete_team(
    team_id: UUID,
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> DeleteResponse:
    return await service.delete_team(team_id, principal)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.post(
    "/{team_id}/members",
    response_model=TeamResponse,
    summary="Add a team member or change their role",
)
async def upsert_team_member(
    team_id: UUID,
    data: TeamMemberRequest,
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamResponse:
    return await service.upsert_member(team_id, data, principal)


@router.delete(
    "/{team_id}/members/{user_id}",
    response_model=TeamResponse,
    summary="Remove a team member",
)
async def remove_team_member(
    team_id: UUID,
    user_id: UUID,
    expected_version: int | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    service: TeamService = Depends(get_team_service),
) -> TeamResponse:
    return await service.remove_member(team_id, user_id, principal, expected_version)
