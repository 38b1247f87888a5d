"""
Domain exception classes.

Services raise these; a single handler in main.py renders them in the
{"detail": {"code": ..., "message": ...}} shape used by every endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class CollabHubError(Exception):
    """Base exception for CollabHub."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "ERROR"

    def __init__(self, message: str = "An error occurred", code: str | None = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class NotFoundError(CollabHubError):
    """A resource, or a parent it references, does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: object | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            f"{resource.capitalize()} not found",
            code=f"{resource.upper()}_NOT_FOUND",
        )


class ForbiddenError(CollabHubError):
    """Authenticated, but the role model denies the action."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, resource: str, action: str, reason: str) -> None:
        self.resource = resource
        self.action = action
        self.reason = reason
        super().__init__(f"Not authorized to {action.replace('_', ' ')}: {reason}")

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail.update(resource=self.resource, action=self.action)
        return detail


class InvalidPasswordError(CollabHubError):
    """The current password supplied with a password change is wrong."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_PASSWORD"


class ConflictError(CollabHubError):
    """A write lost an optimistic-concurrency race or hit a uniqueness rule."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ValidationFailedError(CollabHubError):
    """Malformed input that slipped past request schemas."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_FAILED"


class PropagationFailedError(CollabHubError):
    """
    The primary write committed but a back-reference step did not.

    Carries the committed resource so callers can tell "nothing happened"
    apart from "happened but related entities are stale".
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PROPAGATION_FAILED"

    def __init__(self, event: str, step: str, resource_id: object) -> None:
        self.event = event
        self.step = step
        self.resource_id = resource_id
        self.resource: dict[str, Any] | None = None
        super().__init__(
            f"{event} was applied but propagation step '{step}' failed; "
            "related back-references may be stale"
        )

    def attach(self, resource: dict[str, Any]) -> None:
        self.resource = resource

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail.update(event=self.event, step=self.step, resource=self.resource)
        return detail
