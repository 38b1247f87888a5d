"""
Entity store operations.

Thin layer over AsyncSession exposing the operations the lifecycle services
and the consistency coordinator rely on:

- fetch by id
- append-if-absent / remove-by-value on a back-reference list
- the same removal applied to many owners in one statement
- bulk delete by id set

Whole-document conditional replace is the ORM's job: Team and Project carry
a `version_id_col`, so any flush of a stale instance fails with
StaleDataError instead of overwriting a concurrent write.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from collabhub.models.base import utcnow
from collabhub.models.reference import BackReference, ReferenceField

ModelT = TypeVar("ModelT")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class EntityStore:
    """Storage primitives shared by services. Never commits on its own."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Documents
    # -----------------------------------------------------------------------

    async def get(self, model: type[ModelT], entity_id: UUID, *options: Any) -> ModelT | None:
        """Fetch by primary key, re-reading the row even if it is already in the session."""
        stmt = (
            select(model)
            .where(model.id == entity_id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        if options:
            stmt = stmt.options(*options)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, model: type[ModelT], ids: Iterable[UUID]) -> list[ModelT]:
        ids = list(ids)
        if not ids:
            return []
        result = await self.db.execute(
            select(model).where(model.id.in_(ids))  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def delete_many(self, model: type[Any], ids: Sequence[UUID]) -> int:
        """Delete every row of `model` whose id is in `ids`. Returns the row count."""
        if not ids:
            return 0
        result = await self.db.execute(
            delete(model)
            .where(model.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # -----------------------------------------------------------------------
    # Back-reference lists
    # -----------------------------------------------------------------------

    async def push(self, field: ReferenceField, owner_id: UUID, target_id: UUID) -> None:
        """Append `target_id` to the owner's list unless it is already there."""
        insert = _INSERT_BY_DIALECT[self.db.get_bind().dialect.name]
        stmt = (
            insert(BackReference)
            .values(field=field, owner_id=owner_id, target_id=target_id, added_at=utcnow())
            .on_conflict_do_nothing(index_elements=["field", "owner_id", "target_id"])
        )
        await self.db.execute(stmt)

    async def pull(self, field: ReferenceField, owner_id: UUID, target_id: UUID) -> None:
        """Remove `target_id` from the owner's list if present."""
        await self.db.execute(
            delete(BackReference).where(
                BackReference.field == field,
                BackReference.owner_id == owner_id,
                BackReference.target_id == target_id,
            )
        )

    async def pull_from_many(
        self, field: ReferenceField, owner_ids: Iterable[UUID], target_id: UUID
    ) -> int:
        """Remove `target_id` from the list of every owner in `owner_ids` in one statement."""
        owner_ids = list(owner_ids)
        if not owner_ids:
            return 0
        result = await self.db.execute(
            delete(BackReference).where(
                BackReference.field == field,
                BackReference.owner_id.in_(owner_ids),
                BackReference.target_id == target_id,
            )
        )
        return result.rowcount or 0

    async def discard_owned_references(
        self, owner_ids: Iterable[UUID], *fields: ReferenceField
    ) -> None:
        """Drop the lists owned by deleted documents (their own arrays go with them)."""
        owner_ids = list(owner_ids)
        if not owner_ids:
            return
        await self.db.execute(
            delete(BackReference).where(
                BackReference.field.in_(fields),
                BackReference.owner_id.in_(owner_ids),
            )
        )

    async def references(self, field: ReferenceField, owner_id: UUID) -> list[UUID]:
        """Return the owner's list in insertion order."""
        result = await self.db.execute(
            select(BackReference.target_id)
            .where(BackReference.field == field, BackReference.owner_id == owner_id)
            .order_by(BackReference.added_at)
        )
        return list(result.scalars().all())

    async def references_for(
        self, field: ReferenceField, owner_ids: Iterable[UUID]
    ) -> dict[UUID, list[UUID]]:
        """Batch version of references() for list endpoints."""
        owner_ids = list(owner_ids)
        refs: dict[UUID, list[UUID]] = {owner_id: [] for owner_id in owner_ids}
        if not owner_ids:
            return refs
        result = await self.db.execute(
            select(BackReference.owner_id, BackReference.target_id)
            .where(BackReference.field == field, BackReference.owner_id.in_(owner_ids))
            .order_by(BackReference.added_at)
        )
        for owner_id, target_id in result.all():
            refs[owner_id].append(target_id)
        return refs

    # -----------------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------------

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
