"""
Maintenance request service: create, read, update, delete and document
attachment for maintenance requests.

Status, assignment and priority changes are owned by
MaintenanceWorkflowService; this service only merges non-workflow fields.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from komuniteti.models.maintenance import MaintenanceRequest
from komuniteti.repositories.maintenance import (
    MaintenanceRequestRepository,
    MaintenanceWorkerRepository,
)
from komuniteti.schemas.common.enums import MaintenanceStatus
from komuniteti.schemas.maintenance import (
    DocumentCreate,
    DocumentResponse,
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceRequestUpdate,
)
from komuniteti.services.base import BaseService, ServiceResult
from komuniteti.services.base.service_result import BoolResult


def to_request_snapshot(request: MaintenanceRequest) -> MaintenanceRequestResponse:
    """Copy an ORM row into an immutable snapshot."""
    return MaintenanceRequestResponse.model_validate(request)


class MaintenanceRequestService(BaseService[MaintenanceRequest, MaintenanceRequestRepository]):
    """
    Request store operations.

    Every method runs as one command in its own transaction and returns
    snapshots, never live ORM rows.
    """

    def __init__(
        self,
        repository: MaintenanceRequestRepository,
        db_session: Session,
        worker_repository: Optional[MaintenanceWorkerRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.worker_repository = worker_repository or MaintenanceWorkerRepository(db_session)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_request(
        self,
        draft: MaintenanceRequestCreate,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """Create a request from a validated draft; status defaults to open."""

        def command() -> MaintenanceRequestResponse:
            request = self.repository.create_request(draft.model_dump(), commit=False)
            return to_request_snapshot(request)

        result = self._execute("create maintenance request", command, success_message="Request created")
        if result:
            self._logger.info(
                f"Maintenance request {result.data.id} created in building {draft.building_id}"
            )
        return result

    def update_request(
        self,
        request_id: str,
        update: MaintenanceRequestUpdate,
    ) -> ServiceResult[MaintenanceRequestResponse]:
        """
        Merge the fields set on ``update`` into the request.

        Bumps updated_at and version; a stale ``expected_version`` fails
        with a concurrency conflict.
        """

        def command() -> MaintenanceRequestResponse:
            request = self.repository.update_request(
                request_id,
                update.changes(),
                expected_version=update.expected_version,
                commit=False,
            )
            return to_request_snapshot(request)

        return self._execute("update maintenance request", command, request_id)

    def delete_request(self, request_id: str) -> BoolResult:
        """
        Delete a request with its comments and documents.

        An active assignment is released so the worker's counter keeps
        matching its open workload.
        """

        def command() -> bool:
            request = self.repository.get_by_id(request_id)
            if request.assigned_to_id and not request.is_terminal:
                worker = self.worker_repository.find_by_id(request.assigned_to_id)
                if worker is not None:
                    self.worker_repository.release_assignment(worker)
            self.repository.delete(request_id, commit=False)
            return True

        return self._execute("delete maintenance request", command, request_id)

    def attach_document(
        self,
        request_id: str,
        document: DocumentCreate,
    ) -> ServiceResult[DocumentResponse]:
        """Append document metadata to a request."""

        def command() -> DocumentResponse:
            request = self.repository.get_by_id(request_id)
            stored = self.repository.add_document(request, document.model_dump(), commit=False)
            return DocumentResponse.model_validate(stored)

        return self._execute("attach maintenance document", command, request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_request(self, request_id: str) -> ServiceResult[MaintenanceRequestResponse]:
        return self._execute(
            "get maintenance request",
            lambda: to_request_snapshot(self.repository.get_by_id(request_id)),
            request_id,
        )

    def list_requests(self) -> ServiceResult[List[MaintenanceRequestResponse]]:
        return self._execute(
            "list maintenance requests",
            lambda: [to_request_snapshot(r) for r in self.repository.list_all()],
        )

    def list_by_building(self, building_id: str) -> ServiceResult[List[MaintenanceRequestResponse]]:
        return self._execute(
            "list maintenance requests by building",
            lambda: [to_request_snapshot(r) for r in self.repository.list_by_building(building_id)],
            building_id,
        )

    def list_by_unit(self, unit_id: str) -> ServiceResult[List[MaintenanceRequestResponse]]:
        return self._execute(
            "list maintenance requests by unit",
            lambda: [to_request_snapshot(r) for r in self.repository.list_by_unit(unit_id)],
            unit_id,
        )

    def list_by_status(
        self,
        status: MaintenanceStatus,
    ) -> ServiceResult[List[MaintenanceRequestResponse]]:
        return self._execute(
            "list maintenance requests by status",
            lambda: [to_request_snapshot(r) for r in self.repository.list_by_status(status)],
            MaintenanceStatus(status).value,
        )
