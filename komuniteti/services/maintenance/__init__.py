"""
Maintenance services package.

Request store, worker registry, workflow engine, comment threads,
search and analytics, plus the async gateway in front of them.
"""

from komuniteti.services.maintenance.maintenance_analytics_service import (
    MaintenanceAnalyticsService,
    compute_analytics,
)
from komuniteti.services.maintenance.maintenance_comment_service import MaintenanceCommentService
from komuniteti.services.maintenance.maintenance_gateway import MaintenanceGateway
from komuniteti.services.maintenance.maintenance_request_service import MaintenanceRequestService
from komuniteti.services.maintenance.maintenance_search_service import (
    MaintenanceSearchService,
    filter_requests,
    sort_requests,
)
from komuniteti.services.maintenance.maintenance_service_factory import MaintenanceServiceFactory
from komuniteti.services.maintenance.maintenance_worker_service import MaintenanceWorkerService
from komuniteti.services.maintenance.maintenance_workflow_service import MaintenanceWorkflowService

__all__ = [
    "MaintenanceAnalyticsService",
    "MaintenanceCommentService",
    "MaintenanceGateway",
    "MaintenanceRequestService",
    "MaintenanceSearchService",
    "MaintenanceServiceFactory",
    "MaintenanceWorkerService",
    "MaintenanceWorkflowService",
    "compute_analytics",
    "filter_requests",
    "sort_requests",
]
