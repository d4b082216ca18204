"""
Result envelope returned by every maintenance service command.

A command either succeeds with data or fails with a ServiceError that
carries the typed application exception behind it; ``unwrap`` hands
the data back or re-raises that exception unchanged.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from komuniteti.core import exceptions as app_exceptions
from komuniteti.utils.datetime_utils import utcnow


class ErrorCode(str, Enum):
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ErrorSeverity(str, Enum):
    """WARNING for rejected commands, ERROR for infrastructure failures."""

    WARNING = "WARNING"
    ERROR = "ERROR"


# First match wins, so subclasses must precede their bases
EXCEPTION_ERROR_CODES = (
    (app_exceptions.ResourceNotFoundError, ErrorCode.NOT_FOUND),
    (app_exceptions.ValidationError, ErrorCode.VALIDATION_ERROR),
    (app_exceptions.InvalidTransitionError, ErrorCode.INVALID_TRANSITION),
    (app_exceptions.ConcurrencyConflictError, ErrorCode.CONCURRENCY_CONFLICT),
    (app_exceptions.TransientServiceError, ErrorCode.SERVICE_UNAVAILABLE),
    (app_exceptions.RepositoryError, ErrorCode.DATABASE_ERROR),
)


def error_code_for(exception: Exception) -> ErrorCode:
    for exc_type, error_code in EXCEPTION_ERROR_CODES:
        if isinstance(exception, exc_type):
            return error_code
    return ErrorCode.INTERNAL_ERROR


@dataclass
class ServiceError:
    """Why a command failed, plus the exception to re-raise for it."""

    code: ErrorCode
    message: str
    exception: app_exceptions.BaseAppException
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    @classmethod
    def from_exception(
        cls,
        exception: app_exceptions.BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> "ServiceError":
        return cls(
            code=error_code_for(exception),
            message=exception.message,
            exception=exception,
            severity=severity,
            details=dict(exception.details),
        )


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Outcome of a service command.

    Truthy on success. ``metadata`` carries extras such as the total of
    a search.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message, metadata=metadata or {})

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message, metadata=metadata or {})

    def unwrap(self) -> TData:
        """
        Return the data of a successful result.

        Raises:
            BaseAppException: The typed exception behind a failure
        """
        if self.is_success:
            return self.data
        if self.error is None:
            raise app_exceptions.BaseAppException("Cannot unwrap failed result: unknown error")
        raise self.error.exception

    def add_metadata(self, key: str, value: Any) -> "ServiceResult[TData]":
        self.metadata[key] = value
        return self

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        outcome = "Success" if self.is_success else f"Failure[{self.error.code.value if self.error else '?'}]"
        return f"ServiceResult({outcome}: {self.message})" if self.message else f"ServiceResult({outcome})"


BoolResult = ServiceResult[bool]


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
    "BoolResult",
    "error_code_for",
]
