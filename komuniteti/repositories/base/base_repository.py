"""
Base repository with standardized CRUD operations and error handling.

Provides the foundation for the maintenance repositories. Database
failures are translated into the application exception taxonomy:
connectivity problems become TransientServiceError, everything else
RepositoryError.
"""

from typing import Any, Dict, Generic, List, NoReturn, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from komuniteti.core.exceptions import (
    ConcurrencyConflictError,
    RepositoryError,
    ResourceNotFoundError,
    TransientServiceError,
)
from komuniteti.core.logging import get_logger
from komuniteti.models.base import BaseModel, TimestampModel
from komuniteti.utils.datetime_utils import utcnow

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)

TRANSIENT_DB_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Write operations take ``commit``: pass ``commit=False`` to stage
    several changes and commit them together from the service layer.
    """

    not_found_error: Optional[Type[ResourceNotFoundError]] = None

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    # ==================== Transactions ====================

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._raise_database_error("Commit", e)

    def _raise_database_error(self, operation: str, error: SQLAlchemyError) -> NoReturn:
        """Roll back and re-raise a database error as an application exception."""
        self.db.rollback()
        if isinstance(error, TRANSIENT_DB_ERRORS):
            logger.warning(f"{operation} on {self.model.__name__} failed transiently: {error}")
            raise TransientServiceError(
                f"{operation} failed: database unavailable",
                operation=operation,
            ) from error
        logger.error(f"{operation} on {self.model.__name__} failed: {error}", exc_info=True)
        raise RepositoryError(
            f"{operation} failed",
            details={"model": self.model.__name__, "error_type": type(error).__name__},
        ) from error

    def _finish_write(self, entity: ModelType, commit: bool) -> None:
        if commit:
            self.db.commit()
            self.db.refresh(entity)
        else:
            self.db.flush()

    # ==================== Create Operations ====================

    def create(self, entity: ModelType, commit: bool = True) -> ModelType:
        """
        Create new entity.

        Timestamped entities get created_at == updated_at.
        """
        try:
            if isinstance(entity, TimestampModel):
                now = utcnow()
                entity.created_at = entity.created_at or now
                entity.updated_at = entity.created_at

            self.db.add(entity)
            self._finish_write(entity, commit)

            logger.info(f"Created {self.model.__name__} with id: {entity.id}")
            return entity

        except SQLAlchemyError as e:
            self._raise_database_error("Create", e)

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self._raise_database_error("Find by ID", e)

    def get_by_id(self, id: str) -> ModelType:
        """Entity by ID; raises the repository's not-found error when missing."""
        entity = self.find_by_id(id)
        if entity is None:
            if self.not_found_error is not None:
                raise self.not_found_error(id)
            raise ResourceNotFoundError(self.model.__name__, id)
        return entity

    def find_all(self, order_by: Optional[Any] = None) -> List[ModelType]:
        """Find all entities, oldest first unless ``order_by`` is given."""
        try:
            stmt = select(self.model)
            if order_by is not None:
                stmt = stmt.order_by(order_by)
            elif hasattr(self.model, "created_at"):
                stmt = stmt.order_by(self.model.created_at, self.model.id)
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._raise_database_error("Find all", e)

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        order_by: Optional[Any] = None,
    ) -> List[ModelType]:
        """
        Find entities matching equality criteria.

        Args:
            criteria: Mapping of column name to required value
            order_by: Optional ordering clause
        """
        try:
            stmt = select(self.model)
            for key, value in criteria.items():
                if hasattr(self.model, key):
                    stmt = stmt.where(getattr(self.model, key) == value)
            if order_by is not None:
                stmt = stmt.order_by(order_by)
            elif hasattr(self.model, "created_at"):
                stmt = stmt.order_by(self.model.created_at, self.model.id)
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._raise_database_error("Find by criteria", e)

    # ==================== Update Operations ====================

    def check_version(self, entity: ModelType, version: Optional[int]) -> None:
        """
        Raise ConcurrencyConflictError when ``version`` is stale.

        A ``None`` version skips the check.
        """
        if version is not None and hasattr(entity, "version") and entity.version != version:
            raise ConcurrencyConflictError(entity.id, version, entity.version)

    def update(
        self,
        id: str,
        data: Dict[str, Any],
        version: Optional[int] = None,
        commit: bool = True,
    ) -> ModelType:
        """
        Set attributes from ``data`` and bump the version.

        Raises:
            ResourceNotFoundError: If the entity does not exist
            ConcurrencyConflictError: If ``version`` is given and stale
        """
        entity = self.get_by_id(id)
        self.check_version(entity, version)

        try:
            for key, value in data.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.mark_modified(entity)
            self._finish_write(entity, commit)

            logger.info(f"Updated {self.model.__name__} with id: {id}")
            return entity

        except SQLAlchemyError as e:
            self._raise_database_error("Update", e)

    def mark_modified(self, entity: ModelType) -> None:
        """Bump updated_at and version of an entity changed in place."""
        if isinstance(entity, TimestampModel):
            entity.touch()
        if hasattr(entity, "version"):
            entity.version = (entity.version or 0) + 1

    # ==================== Delete Operations ====================

    def delete(self, id: str, commit: bool = True) -> None:
        """
        Delete entity.

        Raises:
            ResourceNotFoundError: If entity not found
        """
        entity = self.get_by_id(id)
        try:
            self.db.delete(entity)
            if commit:
                self.db.commit()
            else:
                self.db.flush()
            logger.info(f"Deleted {self.model.__name__} with id: {id}")
        except SQLAlchemyError as e:
            self._raise_database_error("Delete", e)
