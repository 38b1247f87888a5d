"""
Authorization check endpoint.

Lets clients ask whether the current user may perform an action before
attempting it. Never mutates anything.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.core.database import get_db
from collabhub.core.dependencies import get_principal
from collabhub.schemas.authorization import AuthorizeRequest, AuthorizeResponse
from collabhub.services.authorization import Authorizer, Principal

router = APIRouter()


@router.post("/authorize", response_model=AuthorizeResponse, summary="Check a permission")
async def authorize(
    data: AuthorizeRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> AuthorizeResponse:
    """A denial is a 200 with allowed=false; a missing resource is a 404."""
    decision = await Authorizer(db).authorize(
        principal, data.resource_kind, data.resource_id, data.action
    )
    return AuthorizeResponse(
        allowed=decision.allowed,
        resource_kind=data.resource_kind,
        resource_id=data.resource_id,
        action=data.action,
        reason=decision.reason,
    )
