"""Base repository pattern for data access.

This module provides a base repository class for implementing the
repository pattern across all modules, separating data access from
business logic.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proficiency.shared.database import Base

# Generic type for SQLAlchemy models
ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(ABC, Generic[ModelT]):
    """Base repository providing common CRUD operations.

    All module-specific repositories should inherit from this class
    and implement the required abstract methods.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[ModelT]:
        """Return the SQLAlchemy model class for this repository."""
        pass

    async def get_by_id(self, id: UUID) -> ModelT | None:
        """Get a single entity by ID.

        Args:
            id: Entity UUID

        Returns:
            Entity if found, None otherwise
        """
        result = await self._session.execute(
            select(self._model_class).where(self._model_class.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, entity: ModelT) -> ModelT:
        """Create a new entity.

        Args:
            entity: Entity to create

        Returns:
            Created entity with generated ID
        """
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity
