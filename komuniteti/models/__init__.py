"""ORM models."""

from komuniteti.models.base import Base
from komuniteti.models.maintenance import (
    MaintenanceComment,
    MaintenanceDocument,
    MaintenanceRequest,
    MaintenanceWorker,
)

__all__ = [
    "Base",
    "MaintenanceRequest",
    "MaintenanceComment",
    "MaintenanceDocument",
    "MaintenanceWorker",
]
