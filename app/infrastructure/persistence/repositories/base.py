"""Base repository: generic lookups plus commit-per-write with store error mapping."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete as sa_delete, select
from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import (
    ConflictException,
    InternalException,
    KeystoneException,
    StoreUnavailableException,
    ValidationException,
)
from app.infrastructure.persistence.database import Base

logger = logging.getLogger(__name__)


def map_store_error(
    error: SQLAlchemyError, operation: str, conflict_message: str | None = None
) -> KeystoneException:
    """Translate a SQLAlchemy failure into the domain exception callers handle."""
    if isinstance(error, IntegrityError):
        return ConflictException(conflict_message or "Resource already exists")
    if isinstance(error, DataError):
        return ValidationException("A value is too long or has an invalid format")
    if isinstance(error, OperationalError | InterfaceError | PoolTimeoutError):
        return StoreUnavailableException(operation)
    return InternalException(f"store error during {operation}")


async def rollback_quietly(db: AsyncSession, operation: str) -> None:
    """Roll back after a failed statement; the session is shared by the whole request."""
    try:
        await db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback failed after %s", operation)


class BaseRepository[ModelType: Base]:
    """Base repository with get_row, add, delete_by_id and commit handling.

    Every write commits before returning. Any SQLAlchemy error rolls the
    session back before it is re-raised as a domain exception, so one
    failed statement never poisons later calls on the same session.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    @asynccontextmanager
    async def guard(
        self, operation: str, conflict_message: str | None = None
    ) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await rollback_quietly(self.db, operation)
            raise map_store_error(e, operation, conflict_message) from e

    async def get_row(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        async with self.guard(f"select {self.model.__tablename__}"):
            result = await self.db.execute(select(self.model).where(model.id == entity_id))
            return result.scalar_one_or_none()

    async def add(self, obj: ModelType, *, conflict_message: str | None = None) -> ModelType:
        """Insert obj, commit, and return it refreshed."""
        async with self.guard(f"insert {self.model.__tablename__}", conflict_message):
            self.db.add(obj)
            await self.db.commit()
            await self.db.refresh(obj)
        return obj

    async def delete_by_id(self, entity_id: str) -> None:
        """Delete by primary key; no-op if the row is missing."""
        model: Any = self.model
        async with self.guard(f"delete {self.model.__tablename__}"):
            await self.db.execute(sa_delete(self.model).where(model.id == entity_id))
            await self.db.commit()
