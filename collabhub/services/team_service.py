"""
Team business logic.

Team CRUD and membership. Every write follows the same order: load,
authorize, mutate, commit, then hand the committed change to the
consistency coordinator and build the response.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.exceptions import NotFoundError
from collabhub.models.reference import ReferenceField
from collabhub.models.team import Team, TeamMember, TeamRole
from collabhub.models.user import User
from collabhub.schemas.common import DeleteResponse
from collabhub.schemas.team import (
    TeamCreateRequest,
    TeamListResponse,
    TeamMemberRequest,
    TeamMemberResponse,
    TeamResponse,
    TeamSettings,
    TeamUpdateRequest,
)
from collabhub.services.authorization import Action, Authorizer, Principal, check_team
from collabhub.services.coordinator import ConsistencyCoordinator
from collabhub.services.lifecycle import propagate_and_respond
from collabhub.services.membership import (
    MembershipChange,
    check_version,
    remove_member,
    touch,
    upsert_member,
    write_with_version_check,
)
from collabhub.services.populate import in_order, load_project_summaries, load_user_summaries
from collabhub.services.store import EntityStore

logger = logging.getLogger(__name__)


class TeamService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = EntityStore(db)
        self.authorizer = Authorizer(db)
        self.coordinator = ConsistencyCoordinator(self.store)

    # -----------------------------------------------------------------------
    # Create / read
    # -----------------------------------------------------------------------

    async def create_team(self, data: TeamCreateRequest, principal: Principal) -> TeamResponse:
        """Create a team with the creator as its first admin member."""
        team = Team(
            name=data.name,
            description=data.description,
            visibility=data.visibility,
            created_by=principal.id,
            members=[TeamMember(user_id=principal.id, role=TeamRole.admin)],
        )
        self.db.add(team)
        await self.db.commit()
        team_id = team.id
        logger.info("Team created: team_id=%s creator=%s", team_id, principal.id)

        return await propagate_and_respond(
            self.coordinator.team_created(team_id, principal.id),
            lambda: self.get_team_response(team_id),
        )

    async def list_my_teams(self, principal: Principal) -> TeamListResponse:
        """Teams the principal created or belongs to, oldest first."""
        member_of = select(TeamMember.team_id).where(TeamMember.user_id == principal.id)
        result = await self.db.execute(
            select(Team)
            .where(or_(Team.created_by == principal.id, Team.id.in_(member_of)))
            .order_by(Team.created_at)
        )
        teams = list(result.scalars().all())
        return TeamListResponse(
            teams=[await self._to_response(team) for team in teams],
            total=len(teams),
        )

    async def get_team(self, team_id: UUID, principal: Principal) -> TeamResponse:
        team = await self.authorizer.load_team(team_id)
        check_team(principal, team, Action.view_team).enforce()
        return await self._to_response(team)

    async def get_team_response(self, team_id: UUID) -> TeamResponse:
        team = await self.authorizer.load_team(team_id)
        return await self._to_response(team)

    # -----------------------------------------------------------------------
    # Update / delete
    # -----------------------------------------------------------------------

    async def update_team(
        self, team_id: UUID, data: TeamUpdateRequest, principal: Principal
    ) -> TeamResponse:
        async def mutate() -> Team:
            team = await self.authorizer.load_team(team_id)
            check_team(principal, team, Action.update_team).enforce()
            check_version(team, data.expected_version)

            if data.name is not None:
                team.name = data.name
            if data.description is not None:
                team.description = data.description
            if data.avatar_url is not None:
                team.avatar_url = data.avatar_url
            if data.settings is not None:
                if data.settings.visibility is not None:
                    team.visibility = data.settings.visibility
                if data.settings.notify_email is not None:
                    team.notify_email = data.settings.notify_email
                if data.settings.notify_in_app is not None:
                    team.notify_in_app = data.settings.notify_in_app
            return team

        await write_with_version_check(self.db, mutate, expected_version=data.expected_version)
        return await self.get_team_response(team_id)

    async def delete_team(self, team_id: UUID, principal: Principal) -> DeleteResponse:
        """
        Delete a team and its membership rows.

        Projects stay behind with a dangling team_id. Members are captured
        before the delete so the coordinator can clean their team lists.
        """

        async def mutate() -> list[UUID]:
            team = await self.authorizer.load_team(team_id)
            check_team(principal, team, Action.delete_team).enforce()
            member_ids = [m.user_id for m in team.members]
            await self.db.delete(team)
            await self.store.discard_owned_references([team_id], ReferenceField.team_projects)
            return member_ids

        member_ids = await write_with_version_check(self.db, mutate)
        logger.info("Team deleted: team_id=%s members=%d", team_id, len(member_ids))

        async def respond() -> DeleteResponse:
            return DeleteResponse(id=team_id, message="Team deleted successfully")

        return await propagate_and_respond(
            self.coordinator.team_deleted(team_id, member_ids), respond
        )

    # -----------------------------------------------------------------------
    # Members
    # -----------------------------------------------------------------------

    async def upsert_member(
        self, team_id: UUID, data: TeamMemberRequest, principal: Principal
    ) -> TeamResponse:
        """Add a member or change an existing member's role."""

        async def mutate() -> MembershipChange:
            team = await self.authorizer.load_team(team_id)
            check_team(principal, team, Action.manage_team_members).enforce()
            check_version(team, data.expected_version)
            if await self.store.get(User, data.user_id) is None:
                raise NotFoundError("user", data.user_id)

            _, change = upsert_member(
                team.members,
                data.user_id,
                data.role,
                lambda user_id, role: TeamMember(user_id=user_id, role=role),
            )
            if change is not MembershipChange.unchanged:
                touch(team)
            return change

        change = await write_with_version_check(
            self.db, mutate, expected_version=data.expected_version
        )
        logger.info(
            "Team member %s: team_id=%s user_id=%s role=%s",
            change.value, team_id, data.user_id, data.role.value,
        )

        propagation = None
        if change is MembershipChange.added:
            propagation = self.coordinator.team_member_added(team_id, data.user_id)
        return await propagate_and_respond(propagation, lambda: self.get_team_response(team_id))

    async def remove_member(
        self,
        team_id: UUID,
        user_id: UUID,
        principal: Principal,
        expected_version: int | None = None,
    ) -> TeamResponse:
        async def mutate() -> MembershipChange:
            team = await self.authorizer.load_team(team_id)
            check_team(principal, team, Action.manage_team_members).enforce()
            check_version(team, expected_version)
            change = remove_member(team.members, user_id)
            if change is MembershipChange.unchanged:
                raise NotFoundError("member", user_id)
            touch(team)
            return change

        await write_with_version_check(self.db, mutate, expected_version=expected_version)
        logger.info("Team member removed: team_id=%s user_id=%s", team_id, user_id)

        return await propagate_and_respond(
            self.coordinator.team_member_removed(team_id, user_id),
            lambda: self.get_team_response(team_id),
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _to_response(self, team: Team) -> TeamResponse:
        project_ids = await self.store.references(ReferenceField.team_projects, team.id)
        users = await load_user_summaries(
            self.db, [team.created_by, *(m.user_id for m in team.members)]
        )
        projects = await load_project_summaries(self.db, project_ids)

        return TeamResponse(
            id=team.id,
            name=team.name,
            description=team.description,
            avatar_url=team.avatar_url,
            is_active=team.is_active,
            settings=TeamSettings(
                visibility=team.visibility,
                notify_email=team.notify_email,
                notify_in_app=team.notify_in_app,
            ),
            created_by=team.created_by,
            creator=users.get(team.created_by),
            members=[
                TeamMemberResponse(
                    user_id=m.user_id,
                    user=users.get(m.user_id),
                    role=m.role,
                    joined_at=m.joined_at,
                )
                for m in team.members
            ],
            projects=in_order(projects, project_ids),
            version=team.version,
            created_at=team.created_at,
            updated_at=team.updated_at,
        )
