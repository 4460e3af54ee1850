"""Typed data access shared by the services."""

import uuid
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from educrm.exceptions import NotFoundException
from educrm.models.base import Base, utcnow
from educrm.utils.pagination import Page, PageParams, paginate

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Reads and writes for one model.

    Soft-deleted rows are invisible to every read here.
    """

    def __init__(self, model: type[ModelT], resource_name: str):
        self.model = model
        self.resource_name = resource_name

    def query(self) -> Select:
        query = select(self.model)
        if hasattr(self.model, "deleted_at"):
            query = query.where(self.model.deleted_at.is_(None))
        return query

    async def get(self, db: AsyncSession, entity_id: uuid.UUID) -> ModelT | None:
        result = await db.execute(self.query().where(self.model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_or_404(self, db: AsyncSession, entity_id: uuid.UUID) -> ModelT:
        entity = await self.get(db, entity_id)
        if entity is None:
            raise NotFoundException(self.resource_name)
        return entity

    async def get_for_update(self, db: AsyncSession, entity_id: uuid.UUID) -> ModelT:
        """Load a row and hold a write lock on it until the transaction ends."""
        result = await db.execute(
            self.query().where(self.model.id == entity_id).with_for_update()
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            raise NotFoundException(self.resource_name)
        return entity

    async def find_all(self, db: AsyncSession, *criteria: Any, order_by: Sequence[Any] = ()) -> list[ModelT]:
        query = self.query().where(*criteria)
        if order_by:
            query = query.order_by(*order_by)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def add(self, db: AsyncSession, entity: ModelT) -> ModelT:
        db.add(entity)
        await db.flush()
        return entity

    async def soft_delete(self, db: AsyncSession, entity: ModelT) -> None:
        entity.deleted_at = utcnow()
        await db.flush()

    async def page(
        self,
        db: AsyncSession,
        params: PageParams,
        *criteria: Any,
        search_fields: tuple[Any, ...] = (),
        sort_fields: dict[str, Any] | None = None,
    ) -> Page[ModelT]:
        """Paginated listing with search and a sort whitelist (created_at by default)."""
        if sort_fields is None:
            sort_fields = {"created_at": self.model.created_at}
        return await paginate(
            db,
            self.query().where(*criteria),
            params,
            search_fields=search_fields,
            sort_fields=sort_fields,
            tie_breaker=self.model.id,
        )
