"""
Authorization check schemas.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from collabhub.services.authorization import Action, ResourceKind


class AuthorizeRequest(BaseModel):
    """Request body for POST /authorize."""

    resource_kind: ResourceKind
    resource_id: UUID
    action: Action


class AuthorizeResponse(BaseModel):
    allowed: bool
    resource_kind: ResourceKind
    resource_id: UUID
    action: Action
    reason: str
