"""
User profile business logic.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.exceptions import InvalidPasswordError
from collabhub.core.security import hash_password, verify_password
from collabhub.models.reference import ReferenceField
from collabhub.models.user import User
from collabhub.schemas.user import (
    ChangePasswordRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    UserListResponse,
)
from collabhub.services.authorization import Action, Principal, check_global
from collabhub.services.populate import in_order, load_team_summaries
from collabhub.services.store import EntityStore

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.store = EntityStore(db)

    async def get_profile(self, user: User) -> ProfileResponse:
        return await self._to_profile(user)

    async def update_profile(self, user: User, data: ProfileUpdateRequest) -> ProfileResponse:
        if data.first_name is not None:
            user.first_name = data.first_name
        if data.last_name is not None:
            user.last_name = data.last_name
        if data.avatar_url is not None:
            user.avatar_url = data.avatar_url
        await self.db.commit()
        return await self._to_profile(user)

    async def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not verify_password(data.current_password, user.password_hash):
            raise InvalidPasswordError("Current password is incorrect")
        user.password_hash = hash_password(data.new_password)
        await self.db.commit()
        logger.info("Password changed: user_id=%s", user.id)

    async def list_users(self, principal: Principal) -> UserListResponse:
        """All users, newest first. Global admins only."""
        check_global(principal, Action.list_users).enforce()
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        users = list(result.scalars().all())
        return UserListResponse(
            users=[await self._to_profile(u) for u in users],
            total=len(users),
        )

    async def _to_profile(self, user: User) -> ProfileResponse:
        team_ids = await self.store.references(ReferenceField.user_teams, user.id)
        teams = await load_team_summaries(self.db, team_ids)
        return ProfileResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar_url=user.avatar_url,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            teams=in_order(teams, team_ids),
        )
