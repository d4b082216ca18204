"""
Maintenance schemas package.
"""

from komuniteti.schemas.maintenance.maintenance_analytics import (
    CostSummary,
    MaintenanceAnalytics,
    MonthlySummary,
    PriorityBreakdown,
    StatusCounts,
    TopWorker,
    TypeBreakdown,
)
from komuniteti.schemas.maintenance.maintenance_comment import CommentCreate, CommentResponse
from komuniteti.schemas.maintenance.maintenance_filters import MaintenanceFilterParams
from komuniteti.schemas.maintenance.maintenance_request import (
    AssignmentRequest,
    DocumentCreate,
    DocumentResponse,
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceRequestUpdate,
    PriorityUpdate,
    ScheduleRequest,
    StatusUpdate,
)
from komuniteti.schemas.maintenance.maintenance_worker import (
    AvailabilityUpdate,
    WorkerCreate,
    WorkerResponse,
)

__all__ = [
    "AssignmentRequest",
    "AvailabilityUpdate",
    "CommentCreate",
    "CommentResponse",
    "CostSummary",
    "DocumentCreate",
    "DocumentResponse",
    "MaintenanceAnalytics",
    "MaintenanceFilterParams",
    "MaintenanceRequestCreate",
    "MaintenanceRequestResponse",
    "MaintenanceRequestUpdate",
    "MonthlySummary",
    "PriorityBreakdown",
    "PriorityUpdate",
    "ScheduleRequest",
    "StatusCounts",
    "StatusUpdate",
    "TopWorker",
    "TypeBreakdown",
    "WorkerCreate",
    "WorkerResponse",
]
