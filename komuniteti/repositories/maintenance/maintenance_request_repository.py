"""
Maintenance Request Repository.

Persistence of maintenance requests and their attached documents.
Status changes go through the workflow service, which stages them here
with ``commit=False`` and commits once per command.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from komuniteti.core.exceptions import RequestNotFoundError
from komuniteti.models.maintenance import (
    MaintenanceDocument,
    MaintenanceRequest,
)
from komuniteti.repositories.base.base_repository import BaseRepository
from komuniteti.schemas.common.enums import MaintenanceStatus
from komuniteti.utils.datetime_utils import utcnow


class MaintenanceRequestRepository(BaseRepository[MaintenanceRequest]):
    """
    Repository for maintenance request operations.

    Listing queries eagerly load comments and documents so that rows can
    be turned into snapshots without further round trips.
    """

    not_found_error = RequestNotFoundError

    def __init__(self, session: Session):
        """Initialize repository with session."""
        super().__init__(MaintenanceRequest, session)

    # ============================================================================
    # CREATE OPERATIONS
    # ============================================================================

    def create_request(self, data: Dict[str, Any], commit: bool = True) -> MaintenanceRequest:
        """
        Create new maintenance request.

        Args:
            data: Column values from a validated draft

        Returns:
            Created maintenance request with created_at == updated_at
        """
        now = utcnow()
        status = MaintenanceStatus(data.get("status") or MaintenanceStatus.OPEN)

        request = MaintenanceRequest(
            **{key: value for key, value in data.items() if hasattr(MaintenanceRequest, key)}
        )
        request.status = status
        request.images = list(data.get("images") or [])
        request.version = 1
        request.created_at = now
        request.updated_at = now

        # Timestamps follow the lifecycle stage a caller-provided status implies
        if status in (MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.RESOLVED):
            request.started_at = now
        if status.is_terminal:
            request.completed_at = now

        return self.create(request, commit=commit)

    def add_document(
        self,
        request: MaintenanceRequest,
        data: Dict[str, Any],
        commit: bool = True,
    ) -> MaintenanceDocument:
        """Append document metadata to a request."""
        try:
            document = MaintenanceDocument(request_id=request.id, created_at=utcnow(), **data)
            self.db.add(document)
            request.documents.append(document)
            self.mark_modified(request)
            self._finish_write(document, commit)
            return document
        except SQLAlchemyError as e:
            self._raise_database_error("Attach document", e)

    # ============================================================================
    # READ OPERATIONS
    # ============================================================================

    def _select(self):
        return select(MaintenanceRequest).options(
            selectinload(MaintenanceRequest.comments),
            selectinload(MaintenanceRequest.documents),
        )

    def _list(self, *conditions) -> List[MaintenanceRequest]:
        try:
            stmt = self._select().where(*conditions).order_by(
                MaintenanceRequest.created_at, MaintenanceRequest.id
            )
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._raise_database_error("List requests", e)

    def list_all(self) -> List[MaintenanceRequest]:
        return self._list()

    def list_by_building(self, building_id: str) -> List[MaintenanceRequest]:
        return self._list(MaintenanceRequest.building_id == building_id)

    def list_by_unit(self, unit_id: str) -> List[MaintenanceRequest]:
        return self._list(MaintenanceRequest.unit_id == unit_id)

    def list_by_status(self, status: MaintenanceStatus) -> List[MaintenanceRequest]:
        return self._list(MaintenanceRequest.status == MaintenanceStatus(status))

    # ============================================================================
    # UPDATE OPERATIONS
    # ============================================================================

    def update_request(
        self,
        request_id: str,
        changes: Dict[str, Any],
        expected_version: Optional[int] = None,
        commit: bool = True,
    ) -> MaintenanceRequest:
        """
        Merge field changes into a request.

        Raises:
            RequestNotFoundError: If request not found
            ConcurrencyConflictError: If expected_version is stale
        """
        return self.update(request_id, changes, version=expected_version, commit=commit)

    def get_for_update(
        self,
        request_id: str,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequest:
        """Load a request that is about to be mutated, checking its version."""
        request = self.get_by_id(request_id)
        self.check_version(request, expected_version)
        return request
