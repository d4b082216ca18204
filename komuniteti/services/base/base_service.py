"""
Base class of the maintenance services.

A service method describes its command as a closure and hands it to
``_execute``, which runs it in one transaction and turns the outcome
into a ServiceResult.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from sqlalchemy.orm import Session

from komuniteti.core.exceptions import (
    BaseAppException,
    RepositoryError,
    TransientServiceError,
)
from komuniteti.core.logging import get_logger
from komuniteti.repositories.base.base_repository import BaseRepository
from komuniteti.services.base.service_result import (
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)
TData = TypeVar("TData")

# A broken collaborator, as opposed to a rejected command
INFRASTRUCTURE_ERRORS = (RepositoryError, TransientServiceError)


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Shared plumbing: repository, session, logger and the command runner.

    Args:
        repository: Primary repository of the service
        db_session: Session shared by every repository the service uses
    """

    def __init__(self, repository: TRepo, db_session: Session):
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Commit when the block completes; roll back if it raises anything."""
        try:
            yield self.db
            self.repository.commit()
        except Exception:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
            raise

    def _execute(
        self,
        operation: str,
        command: Callable[[], TData],
        entity_ref: Optional[Any] = None,
        success_message: Optional[str] = None,
    ) -> ServiceResult[TData]:
        """
        Run ``command`` in one transaction.

        Application exceptions become failed results after rollback.
        Anything else is a programming error and propagates.
        """
        try:
            with self.transaction():
                data = command()
        except BaseAppException as e:
            return self._failure(e, operation, entity_ref)

        self._logger.info(
            f"Operation: {operation}",
            extra={"entity_ref": str(entity_ref) if entity_ref is not None else None},
        )
        return ServiceResult.success(data, message=success_message)

    def _failure(
        self,
        exception: BaseAppException,
        operation: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "error_code": exception.error_code.value,
        }
        if isinstance(exception, INFRASTRUCTURE_ERRORS):
            self._logger.error(f"{operation} failed: {exception}", exc_info=True, extra=context)
            severity = ErrorSeverity.ERROR
        else:
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            severity = ErrorSeverity.WARNING
        return ServiceResult.failure(ServiceError.from_exception(exception, severity))
