"""
Maintenance repositories package.
"""

from komuniteti.repositories.maintenance.maintenance_comment_repository import (
    MaintenanceCommentRepository,
)
from komuniteti.repositories.maintenance.maintenance_request_repository import (
    MaintenanceRequestRepository,
)
from komuniteti.repositories.maintenance.maintenance_worker_repository import (
    MaintenanceWorkerRepository,
)

__all__ = [
    "MaintenanceCommentRepository",
    "MaintenanceRequestRepository",
    "MaintenanceWorkerRepository",
]
