"""
Service factory wiring the maintenance services to one database session.
"""

from typing import Dict

from sqlalchemy.orm import Session

from komuniteti.repositories.maintenance import (
    MaintenanceCommentRepository,
    MaintenanceRequestRepository,
    MaintenanceWorkerRepository,
)
from komuniteti.services.base import BaseService
from komuniteti.services.maintenance.maintenance_analytics_service import MaintenanceAnalyticsService
from komuniteti.services.maintenance.maintenance_comment_service import MaintenanceCommentService
from komuniteti.services.maintenance.maintenance_request_service import MaintenanceRequestService
from komuniteti.services.maintenance.maintenance_search_service import MaintenanceSearchService
from komuniteti.services.maintenance.maintenance_worker_service import MaintenanceWorkerService
from komuniteti.services.maintenance.maintenance_workflow_service import MaintenanceWorkflowService


class MaintenanceServiceFactory:
    """
    Factory for maintenance services sharing one session.

    Repositories and services are created lazily and cached, so all
    services of one factory see the same unit of work.
    """

    def __init__(self, db_session: Session):
        self.db = db_session
        self._service_cache: Dict[str, BaseService] = {}
        self._requests = MaintenanceRequestRepository(db_session)
        self._workers = MaintenanceWorkerRepository(db_session)
        self._comments = MaintenanceCommentRepository(db_session)

    def _cached(self, cache_key: str, builder):
        if cache_key not in self._service_cache:
            self._service_cache[cache_key] = builder()
        return self._service_cache[cache_key]

    def requests(self) -> MaintenanceRequestService:
        return self._cached(
            "request_service",
            lambda: MaintenanceRequestService(self._requests, self.db, self._workers),
        )

    def workers(self) -> MaintenanceWorkerService:
        return self._cached(
            "worker_service",
            lambda: MaintenanceWorkerService(self._workers, self.db),
        )

    def workflow(self) -> MaintenanceWorkflowService:
        return self._cached(
            "workflow_service",
            lambda: MaintenanceWorkflowService(self._requests, self.db, self._workers),
        )

    def comments(self) -> MaintenanceCommentService:
        return self._cached(
            "comment_service",
            lambda: MaintenanceCommentService(self._comments, self.db, self._requests),
        )

    def search(self) -> MaintenanceSearchService:
        return self._cached(
            "search_service",
            lambda: MaintenanceSearchService(self._requests, self.db),
        )

    def analytics(self) -> MaintenanceAnalyticsService:
        return self._cached(
            "analytics_service",
            lambda: MaintenanceAnalyticsService(self._requests, self.db, self._workers),
        )
