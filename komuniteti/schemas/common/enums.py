"""
Enumerations shared by models and schemas.

Values are part of the wire contract and must not change.
"""

from enum import Enum


class MaintenanceStatus(str, Enum):
    """Maintenance request status."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (MaintenanceStatus.RESOLVED, MaintenanceStatus.CANCELLED)


class MaintenancePriority(str, Enum):
    """Priority level enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceType(str, Enum):
    """Maintenance request type, also used as worker specialty."""

    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    HVAC = "hvac"
    APPLIANCE = "appliance"
    STRUCTURAL = "structural"
    COMMON_AREA = "common_area"
    LANDSCAPING = "landscaping"
    SECURITY = "security"
    OTHER = "other"


class WorkerAvailability(str, Enum):
    """Worker availability, set explicitly by an administrator."""

    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


class CommentAuthorRole(str, Enum):
    """Role of a comment author."""

    MANAGER = "manager"
    ADMINISTRATOR = "administrator"
    MAINTENANCE = "maintenance"
    RESIDENT = "resident"


class RecurringFrequency(str, Enum):
    """Recurrence of preventive maintenance requests."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RequestSortOption(str, Enum):
    """Sort keys for request listings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"


# Filter sentinel accepted for status and type criteria
FILTER_ALL = "all"


__all__ = [
    "MaintenanceStatus",
    "MaintenancePriority",
    "MaintenanceType",
    "WorkerAvailability",
    "CommentAuthorRole",
    "RecurringFrequency",
    "RequestSortOption",
    "FILTER_ALL",
]
