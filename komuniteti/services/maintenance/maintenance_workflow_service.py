"""
Maintenance workflow service: status transitions, priority changes,
assignment and scheduling.

Each command changes the request and, where it applies, the assigned
worker's counters in a single transaction. A rejected command leaves
both untouched.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from komuniteti.core.exceptions import InvalidTransitionError, ValidationError
from komuniteti.models.maintenance import MaintenanceRequest
from komuniteti.repositories.maintenance import (
    MaintenanceRequestRepository,
    MaintenanceWorkerRepository,
)
from komuniteti.schemas.common.enums import MaintenancePriority, MaintenanceStatus
from komuniteti.schemas.maintenance import MaintenanceRequestResponse
from komuniteti.services.base import BaseService, ServiceResult
from komuniteti.services.maintenance.maintenance_request_service import to_request_snapshot
from komuniteti.utils.datetime_utils import DateTimeHelper, utcnow


class MaintenanceWorkflowService(BaseService[MaintenanceRequest, MaintenanceRequestRepository]):
    """
    Request state machine.

    Only the pairs listed in VALID_STATUS_TRANSITIONS are accepted;
    same-state requests and anything out of a terminal state fail with
    InvalidTransitionError. There is no reopen path.
    """

    VALID_STATUS_TRANSITIONS: Dict[MaintenanceStatus, FrozenSet[MaintenanceStatus]] = {
        MaintenanceStatus.OPEN: frozenset({MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED}),
        MaintenanceStatus.IN_PROGRESS: frozenset({MaintenanceStatus.RESOLVED, MaintenanceStatus.CANCELLED}),
        MaintenanceStatus.RESOLVED: frozenset(),  # Terminal state
        MaintenanceStatus.CANCELLED: frozenset(),  # Terminal state
    }

    def __init__(
        self,
        repository: MaintenanceRequestRepository,
        db_session: Session,
        worker_repository: Optional[MaintenanceWorkerRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.worker_repository = worker_repository or MaintenanceWorkerRepository(db_session)

    # -------------------------------------------------------------------------
    # Transition rules
    # -------------------------------------------------------------------------

    @classmethod
    def allowed_transitions(cls, status: MaintenanceStatus) -> List[MaintenanceStatus]:
        """Targets reachable from ``status``, in enum order."""
        allowed = cls.VALID_STATUS_TRANSITIONS.get(MaintenanceStatus(status), frozenset())
        return [s for s in MaintenanceStatus if s in allowed]

    @classmethod
    def is_valid_transition(cls, current: MaintenanceStatus, target: MaintenanceStatus) -> bool:
        return MaintenanceStatus(target) in cls.VALID_STATUS_TRANSITIONS.get(
            MaintenanceStatus(current), frozenset()
        )

    def _ensure_transition(self, current: MaintenanceStatus, target: MaintenanceStatus) -> None:
        if not self.is_valid_transition(current, target):
            raise InvalidTransitionError(
                MaintenanceStatus(current).value,
                MaintenanceStatus(target).value,
                allowed=[s.value for s in self.allowed_transitions(current)],
            )

    def _ensure_not_terminal(self, request: MaintenanceRequest, action: str) -> None:
        status = MaintenanceStatus(request.status)
        if status.is_terminal:
            raise InvalidTransitionError(
                status.value,
                status.value,
                message=f"Cannot {action} a {status.value} request",
            )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def change_status(
        self,
        request_id: str,
        status: MaintenanceStatus,
        resolution_details: Optional[str] = None,
        actual_cost: Optional[Decimal] = None,
        expected_version: Optional[int] = None,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """
        Move a request to ``status``.

        open -> in-progress sets started_at. in-progress -> resolved
        requires non-blank resolution details, sets completed_at and may
        record the actual cost. Cancelling sets completed_at. Reaching a
        terminal state releases the assignee's active counter; resolving
        also counts a completion for them.
        """
        target = MaintenanceStatus(status)

        def command() -> MaintenanceRequestResponse:
            request = self.repository.get_for_update(request_id, expected_version)
            current = MaintenanceStatus(request.status)
            self._ensure_transition(current, target)

            details = (resolution_details or "").strip()
            if target == MaintenanceStatus.RESOLVED and not details:
                raise ValidationError(
                    "Resolution details are required to resolve a request",
                    field_errors={"resolution_details": ["must not be blank"]},
                )
            if actual_cost is not None and target != MaintenanceStatus.RESOLVED:
                raise ValidationError(
                    "Actual cost can only be recorded when resolving a request",
                    field_errors={"actual_cost": ["only allowed with status resolved"]},
                )
            if actual_cost is not None and Decimal(actual_cost) < 0:
                raise ValidationError(
                    "Actual cost must not be negative",
                    field_errors={"actual_cost": ["must be >= 0"]},
                )

            now = utcnow()
            request.status = target
            if target == MaintenanceStatus.IN_PROGRESS:
                request.started_at = now
            if target.is_terminal:
                request.completed_at = now
            if target == MaintenanceStatus.RESOLVED:
                request.resolution_details = details
                if actual_cost is not None:
                    request.actual_cost = Decimal(actual_cost)

            if target.is_terminal and request.assigned_to_id:
                self._settle_assignee(request, target, now)

            self.repository.mark_modified(request)
            self.db.flush()
            return to_request_snapshot(request)

        result = self._execute("change maintenance request status", command, request_id)
        if result:
            self._logger.info(f"Maintenance request {request_id} moved to {target.value}")
        return result

    def update_priority(
        self,
        request_id: str,
        priority: MaintenancePriority,
        expected_version: Optional[int] = None,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """Change priority; allowed in every status."""
        priority = MaintenancePriority(priority)

        def command() -> MaintenanceRequestResponse:
            request = self.repository.get_for_update(request_id, expected_version)
            request.priority = priority
            self.repository.mark_modified(request)
            self.db.flush()
            return to_request_snapshot(request)

        return self._execute("update maintenance request priority", command, request_id)

    def assign(
        self,
        request_id: str,
        worker_id: str,
        worker_name: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """
        Assign a non-terminal request to a worker.

        Moving the request to another worker releases the previous
        assignee's counter; assigning it to the current assignee again
        leaves both counters as they are. Status does not change.
        """

        def command() -> MaintenanceRequestResponse:
            request = self.repository.get_for_update(request_id, expected_version)
            self._ensure_not_terminal(request, "assign")
            worker = self.worker_repository.get_by_id(worker_id)

            previous_id = request.assigned_to_id
            if previous_id != worker.id:
                if previous_id:
                    previous = self.worker_repository.find_by_id(previous_id)
                    if previous is not None:
                        self.worker_repository.release_assignment(previous)
                self.worker_repository.increment_assigned(worker)
                request.assigned_to_id = worker.id
                request.assigned_at = utcnow()

            request.assigned_to_name = worker_name or worker.name
            self.repository.mark_modified(request)
            self.db.flush()
            return to_request_snapshot(request)

        result = self._execute("assign maintenance request", command, request_id)
        if result:
            self._logger.info(f"Maintenance request {request_id} assigned to worker {worker_id}")
        return result

    def schedule(
        self,
        request_id: str,
        scheduled_date: datetime,
        expected_version: Optional[int] = None,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """Set the planned visit date of a non-terminal request."""

        def command() -> MaintenanceRequestResponse:
            request = self.repository.get_for_update(request_id, expected_version)
            self._ensure_not_terminal(request, "schedule")
            request.scheduled_date = DateTimeHelper.to_naive_utc(scheduled_date)
            self.repository.mark_modified(request)
            self.db.flush()
            return to_request_snapshot(request)

        return self._execute("schedule maintenance request", command, request_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _settle_assignee(
        self,
        request: MaintenanceRequest,
        target: MaintenanceStatus,
        completed_at: datetime,
    ) -> None:
        worker = self.worker_repository.find_by_id(request.assigned_to_id)
        if worker is None:
            return
        if target == MaintenanceStatus.RESOLVED:
            hours = DateTimeHelper.hours_between(request.created_at, completed_at)
            self.worker_repository.record_completion(worker, hours)
        else:
            self.worker_repository.release_assignment(worker)
