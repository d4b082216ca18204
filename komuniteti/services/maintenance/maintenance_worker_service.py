"""
Maintenance worker service: registry of workers, their specialties and
explicitly managed availability.
"""

from typing import List

from sqlalchemy.orm import Session

from komuniteti.models.maintenance import MaintenanceWorker
from komuniteti.repositories.maintenance import MaintenanceWorkerRepository
from komuniteti.schemas.common.enums import MaintenanceType, WorkerAvailability
from komuniteti.schemas.maintenance import WorkerCreate, WorkerResponse
from komuniteti.services.base import BaseService, ServiceResult


def to_worker_snapshot(worker: MaintenanceWorker) -> WorkerResponse:
    return WorkerResponse.model_validate(worker)


class MaintenanceWorkerService(BaseService[MaintenanceWorker, MaintenanceWorkerRepository]):
    """
    Worker registry.

    Workload counters are maintained by the workflow service. Availability
    changes only through ``set_availability``.
    """

    def __init__(self, repository: MaintenanceWorkerRepository, db_session: Session):
        super().__init__(repository, db_session)

    def register_worker(self, worker: WorkerCreate) -> ServiceResult[WorkerResponse]:
        return self._execute(
            "register maintenance worker",
            lambda: to_worker_snapshot(
                self.repository.create_worker(worker.model_dump(), commit=False)
            ),
            worker.name,
            success_message="Worker registered",
        )

    def get_worker(self, worker_id: str) -> ServiceResult[WorkerResponse]:
        return self._execute(
            "get maintenance worker",
            lambda: to_worker_snapshot(self.repository.get_by_id(worker_id)),
            worker_id,
        )

    def list_workers(self) -> ServiceResult[List[WorkerResponse]]:
        return self._execute(
            "list maintenance workers",
            lambda: [to_worker_snapshot(w) for w in self.repository.list_all()],
        )

    def find_by_specialty(self, specialty: MaintenanceType) -> ServiceResult[List[WorkerResponse]]:
        """Workers whose specialties include ``specialty``."""
        specialty = MaintenanceType(specialty)
        return self._execute(
            "find maintenance workers by specialty",
            lambda: [to_worker_snapshot(w) for w in self.repository.find_by_specialty(specialty)],
            specialty.value,
        )

    def list_available(self) -> ServiceResult[List[WorkerResponse]]:
        return self._execute(
            "list available maintenance workers",
            lambda: [to_worker_snapshot(w) for w in self.repository.list_available()],
        )

    def set_availability(
        self,
        worker_id: str,
        availability: WorkerAvailability,
    ) -> ServiceResult[WorkerResponse]:
        """Administrator action; the counters are left untouched."""

        def command() -> WorkerResponse:
            worker = self.repository.get_by_id(worker_id)
            worker.availability = WorkerAvailability(availability)
            worker.touch()
            self.db.flush()
            return to_worker_snapshot(worker)

        return self._execute("set maintenance worker availability", command, worker_id)
