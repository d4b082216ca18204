"""
Base service infrastructure.
"""

from komuniteti.services.base.base_service import BaseService
from komuniteti.services.base.operation_tracker import (
    OperationOutcome,
    OperationStatus,
    OperationTracker,
)
from komuniteti.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "BaseService",
    "ErrorCode",
    "ErrorSeverity",
    "OperationOutcome",
    "OperationStatus",
    "OperationTracker",
    "ServiceError",
    "ServiceResult",
]
