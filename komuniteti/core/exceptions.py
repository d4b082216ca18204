"""
Exceptions raised by the maintenance workflow engine.

Repositories and workflow rules raise them, services carry them inside
a failed ServiceResult, and the HTTP layer renders them with the
``status_code`` each class declares.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Wire codes of the JSON error body."""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class BaseAppException(Exception):
    """
    Root of the engine's exception hierarchy.

    Subclasses set ``error_code`` and ``status_code`` as class
    attributes; ``details`` holds structured context for the caller.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """JSON error body: ``{"error": {message, code, details, type}}``"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": type(self).__name__,
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class ResourceNotFoundError(BaseAppException):
    error_code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        details = {"resource_type": resource_type}
        if resource_id:
            details["resource_id"] = str(resource_id)
        if not message:
            message = (
                f"{resource_type} with id '{resource_id}' not found"
                if resource_id
                else f"{resource_type} not found"
            )
        super().__init__(message, details)


class RequestNotFoundError(ResourceNotFoundError):
    def __init__(self, request_id: Optional[str] = None):
        super().__init__("Maintenance request", request_id)


class WorkerNotFoundError(ResourceNotFoundError):
    def __init__(self, worker_id: Optional[str] = None):
        super().__init__("Maintenance worker", worker_id)


# ---------------------------------------------------------------------------
# Rejected commands
# ---------------------------------------------------------------------------

class ValidationError(BaseAppException):
    """A command argument or payload field is invalid."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 422

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        super().__init__(message, {"field_errors": field_errors} if field_errors else {})


class InvalidTransitionError(BaseAppException):
    """The request's current status does not permit the command."""

    error_code = ErrorCode.INVALID_TRANSITION
    status_code = 409

    def __init__(
        self,
        current_status: str,
        target_status: str,
        allowed: Optional[List[str]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message or f"Cannot move a request from {current_status} to {target_status}",
            {
                "current_status": current_status,
                "target_status": target_status,
                "allowed_transitions": allowed or [],
            },
        )


class ConcurrencyConflictError(BaseAppException):
    """The caller's expected version is no longer the stored one."""

    error_code = ErrorCode.CONCURRENCY_CONFLICT
    status_code = 409

    def __init__(self, resource_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"{resource_id} is at version {actual_version}, expected {expected_version}",
            {
                "resource_id": str(resource_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

class RepositoryError(BaseAppException):
    """Non-retryable database failure."""

    error_code = ErrorCode.DATABASE_ERROR
    status_code = 500

    def __init__(self, message: str = "Database operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class TransientServiceError(BaseAppException):
    """Timeout or lost connection; the caller may retry."""

    error_code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ResourceNotFoundError",
    "RequestNotFoundError",
    "WorkerNotFoundError",
    "ValidationError",
    "InvalidTransitionError",
    "ConcurrencyConflictError",
    "RepositoryError",
    "TransientServiceError",
]
