"""
Outcome tracking for commands issued through the maintenance gateway.

Every invoked command gets one OperationOutcome keyed by its operation
id. The outcome starts pending and ends in success (with the payload) or
failure (with the error), so callers can clear in-flight indicators on
both paths.
"""

import threading
from collections import OrderedDict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from komuniteti.core.exceptions import BaseAppException
from komuniteti.utils.datetime_utils import utcnow


class OperationStatus(str, Enum):
    """Operation status enumeration"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class OperationOutcome:
    """Outcome of one invoked command"""

    def __init__(
        self,
        operation_id: str,
        operation: str,
        status: OperationStatus = OperationStatus.PENDING,
        result: Any = None,
        error: Optional[BaseAppException] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.operation_id = operation_id
        self.operation = operation
        self.status = status
        self.result = result
        self.error = error
        self.started_at = started_at or utcnow()
        self.completed_at = completed_at
        self.metadata = metadata or {}

    @property
    def is_pending(self) -> bool:
        return self.status == OperationStatus.PENDING

    @property
    def execution_time(self) -> Optional[float]:
        """Seconds between start and completion, once completed"""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "operation_id": self.operation_id,
            "operation": self.operation,
            "status": self.status.value,
            "error": self.error.to_dict()["error"] if self.error else None,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "execution_time": self.execution_time,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"OperationOutcome(id={self.operation_id}, operation={self.operation}, status={self.status.value})"


class OperationTracker:
    """
    Thread-safe registry of operation outcomes.

    Keeps the most recent ``max_entries`` outcomes; older completed ones
    are evicted first.
    """

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._outcomes: "OrderedDict[str, OperationOutcome]" = OrderedDict()
        self._lock = threading.Lock()

    def start(self, operation: str, metadata: Optional[Dict[str, Any]] = None) -> OperationOutcome:
        """Register a new pending operation and return its outcome record."""
        outcome = OperationOutcome(str(uuid4()), operation, metadata=metadata)
        with self._lock:
            self._outcomes[outcome.operation_id] = outcome
            self._evict()
        return outcome

    def succeed(self, operation_id: str, result: Any = None) -> OperationOutcome:
        return self._complete(operation_id, OperationStatus.SUCCESS, result=result)

    def fail(self, operation_id: str, error: BaseAppException) -> OperationOutcome:
        return self._complete(operation_id, OperationStatus.FAILURE, error=error)

    def get(self, operation_id: str) -> Optional[OperationOutcome]:
        with self._lock:
            return self._outcomes.get(operation_id)

    def pending(self) -> List[OperationOutcome]:
        with self._lock:
            return [o for o in self._outcomes.values() if o.is_pending]

    def __len__(self) -> int:
        return len(self._outcomes)

    def _complete(
        self,
        operation_id: str,
        status: OperationStatus,
        result: Any = None,
        error: Optional[BaseAppException] = None,
    ) -> OperationOutcome:
        with self._lock:
            outcome = self._outcomes.get(operation_id)
            if outcome is None:
                raise KeyError(operation_id)
            if not outcome.is_pending:
                raise ValueError(f"Operation {operation_id} already completed")
            outcome.status = status
            outcome.result = result
            outcome.error = error
            outcome.completed_at = utcnow()
            return outcome

    def _evict(self) -> None:
        excess = len(self._outcomes) - self.max_entries
        if excess <= 0:
            return
        for operation_id in [k for k, o in self._outcomes.items() if not o.is_pending][:excess]:
            del self._outcomes[operation_id]
