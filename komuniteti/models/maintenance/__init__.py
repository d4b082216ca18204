"""
Maintenance models package.
"""

from komuniteti.models.maintenance.maintenance_request import (
    MaintenanceComment,
    MaintenanceDocument,
    MaintenanceRequest,
)
from komuniteti.models.maintenance.maintenance_worker import MaintenanceWorker

__all__ = [
    "MaintenanceRequest",
    "MaintenanceComment",
    "MaintenanceDocument",
    "MaintenanceWorker",
]
