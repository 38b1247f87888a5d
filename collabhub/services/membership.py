"""
Membership model helpers.

Team and project membership lists are rows attached to their owning entity
(TeamMember, ProjectMember). These helpers implement the list semantics
(at most one entry per user, role changes in place, additions append) and
the optimistic-locking loop every membership write runs under.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from collabhub.core.config import settings
from collabhub.core.exceptions import ConflictError
from collabhub.models.base import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")
RoleT = TypeVar("RoleT", bound=enum.Enum)


class MemberRow(Protocol):
    user_id: UUID
    role: enum.Enum


class Versioned(Protocol):
    id: UUID
    version: int
    updated_at: object


class MembershipChange(str, enum.Enum):
    added = "added"
    role_changed = "role_changed"
    unchanged = "unchanged"
    removed = "removed"


def find_member(members: Iterable[MemberRow], user_id: UUID) -> MemberRow | None:
    for member in members:
        if member.user_id == user_id:
            return member
    return None


def role_of(members: Iterable[MemberRow], user_id: UUID) -> enum.Enum | None:
    member = find_member(members, user_id)
    return member.role if member is not None else None


def upsert_member(
    members: list,
    user_id: UUID,
    role: RoleT,
    factory: Callable[[UUID, RoleT], MemberRow],
) -> tuple[MemberRow, MembershipChange]:
    """
    Set `user_id`'s role: update the existing entry in place or append a new one.

    `members` is the ORM collection; appending to it schedules the insert.
    """
    existing = find_member(members, user_id)
    if existing is not None:
        if existing.role == role:
            return existing, MembershipChange.unchanged
        existing.role = role
        return existing, MembershipChange.role_changed

    member = factory(user_id, role)
    members.append(member)
    return member, MembershipChange.added


def remove_member(members: list, user_id: UUID) -> MembershipChange:
    existing = find_member(members, user_id)
    if existing is None:
        return MembershipChange.unchanged
    members.remove(existing)
    return MembershipChange.removed


def check_version(entity: Versioned, expected_version: int | None) -> None:
    """Compare-and-swap precondition supplied by the caller."""
    if expected_version is not None and entity.version != expected_version:
        raise ConflictError(
            f"Expected version {expected_version} but found {entity.version}",
            code="VERSION_CONFLICT",
        )


def touch(entity: Versioned) -> None:
    """
    Mark the owning row dirty so the flush bumps its version.

    Membership rows live in their own table; without this a role change
    would not go through the owner's version check.
    """
    entity.updated_at = utcnow()


async def write_with_version_check(
    db: AsyncSession,
    mutate: Callable[[], Awaitable[T]],
    *,
    expected_version: int | None = None,
    max_retries: int | None = None,
) -> T:
    """
    Run a read-modify-write membership mutation and commit it.

    `mutate` must (re)load the owning entity, check permissions, apply the
    change and return a result. If the commit loses a race (the owner's
    version moved, or a concurrent insert of the same member hit the unique
    index) the transaction is rolled back. With `expected_version` the caller
    asked for compare-and-swap, so the conflict is raised right away;
    otherwise `mutate` is re-run against fresh state up to `max_retries`
    times before ConflictError is raised.
    """
    retries = settings.MEMBERSHIP_MAX_RETRIES if max_retries is None else max_retries
    attempt = 0
    while True:
        result = await mutate()
        try:
            await db.commit()
            return result
        except (StaleDataError, IntegrityError) as exc:
            await db.rollback()
            if expected_version is not None or attempt >= retries:
                logger.warning(
                    "Membership write gave up after %d attempt(s): %s", attempt + 1, exc
                )
                raise ConflictError(
                    "The resource was modified concurrently; re-read and retry",
                    code="VERSION_CONFLICT",
                ) from exc
            attempt += 1
            logger.info("Membership write lost a race, retrying (attempt %d)", attempt + 1)
