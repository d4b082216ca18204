"""
Maintenance Worker Repository.

Worker registry persistence and workload counter bookkeeping.
"""

from typing import Any, Dict, List

from sqlalchemy import case
from sqlalchemy.orm import Session

from komuniteti.core.exceptions import WorkerNotFoundError
from komuniteti.models.maintenance import MaintenanceWorker
from komuniteti.repositories.base.base_repository import BaseRepository
from komuniteti.schemas.common.enums import MaintenanceType, WorkerAvailability


class MaintenanceWorkerRepository(BaseRepository[MaintenanceWorker]):
    """
    Repository for maintenance worker operations.

    Counter changes are written as SQL expressions evaluated against the
    stored row, so concurrent commands touching the same worker from
    different sessions do not lose updates.
    """

    not_found_error = WorkerNotFoundError

    def __init__(self, session: Session):
        super().__init__(MaintenanceWorker, session)

    def create_worker(self, data: Dict[str, Any], commit: bool = True) -> MaintenanceWorker:
        """Register a worker with zeroed workload counters."""
        worker = MaintenanceWorker(
            name=data["name"],
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            specialties=[MaintenanceType(s).value for s in data.get("specialties", [])],
            is_external=data.get("is_external", False),
            company=data.get("company"),
            image=data.get("image"),
            availability=WorkerAvailability(data.get("availability", WorkerAvailability.AVAILABLE)),
            assigned_requests=0,
            completed_requests=0,
            average_resolution_time=0.0,
        )
        return self.create(worker, commit=commit)

    def list_all(self) -> List[MaintenanceWorker]:
        return self.find_all(order_by=MaintenanceWorker.name)

    def find_by_specialty(self, request_type: MaintenanceType) -> List[MaintenanceWorker]:
        """
        Workers qualified for a request type.

        Specialties are stored as a JSON list, so the match runs in Python
        to stay portable across database backends.
        """
        return [worker for worker in self.list_all() if worker.has_specialty(request_type)]

    def list_available(self) -> List[MaintenanceWorker]:
        return self.find_by_criteria(
            {"availability": WorkerAvailability.AVAILABLE},
            order_by=MaintenanceWorker.name,
        )

    # ==================== Workload Counters ====================

    def increment_assigned(self, worker: MaintenanceWorker) -> None:
        worker.assigned_requests = MaintenanceWorker.assigned_requests + 1
        worker.touch()
        self.db.flush()

    def release_assignment(self, worker: MaintenanceWorker) -> None:
        """Decrement the active assignment counter, never below zero."""
        worker.assigned_requests = case(
            (MaintenanceWorker.assigned_requests > 0, MaintenanceWorker.assigned_requests - 1),
            else_=0,
        )
        worker.touch()
        self.db.flush()

    def record_completion(self, worker: MaintenanceWorker, resolution_hours: float) -> None:
        """
        Release the assignment and fold one resolution into the running mean.

        All right-hand sides of the UPDATE see the pre-update row.
        """
        hours = max(float(resolution_hours), 0.0)
        worker.assigned_requests = case(
            (MaintenanceWorker.assigned_requests > 0, MaintenanceWorker.assigned_requests - 1),
            else_=0,
        )
        worker.average_resolution_time = (
            MaintenanceWorker.average_resolution_time * MaintenanceWorker.completed_requests + hours
        ) / (MaintenanceWorker.completed_requests + 1)
        worker.completed_requests = MaintenanceWorker.completed_requests + 1
        worker.touch()
        self.db.flush()
