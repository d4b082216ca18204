"""
Maintenance worker schemas.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from komuniteti.schemas.common.base import BaseCreateSchema, BaseResponseSchema, BaseSchema
from komuniteti.schemas.common.enums import MaintenanceType, WorkerAvailability

__all__ = ["WorkerCreate", "WorkerResponse", "AvailabilityUpdate"]


class WorkerCreate(BaseCreateSchema):
    """Registration of an internal staff member or external contractor."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Driton Berisha",
                "email": "driton@example.com",
                "phone": "+38344123456",
                "specialties": ["plumbing", "hvac"],
                "is_external": False,
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field("", max_length=255)
    phone: str = Field("", max_length=50)
    specialties: List[MaintenanceType] = Field(default_factory=list)
    is_external: bool = False
    company: Optional[str] = Field(None, max_length=255)
    image: Optional[str] = Field(None, max_length=1024)
    availability: WorkerAvailability = WorkerAvailability.AVAILABLE

    @field_validator("specialties")
    @classmethod
    def dedupe_specialties(cls, v: List[MaintenanceType]) -> List[MaintenanceType]:
        """Specialties are a set; keep first occurrence order."""
        return list(dict.fromkeys(v))


class WorkerResponse(BaseResponseSchema):
    """Immutable snapshot of a worker and its workload counters."""

    name: str
    email: str
    phone: str
    specialties: List[MaintenanceType] = Field(default_factory=list)
    is_external: bool = False
    company: Optional[str] = None
    image: Optional[str] = None
    availability: WorkerAvailability
    assigned_requests: int = 0
    completed_requests: int = 0
    average_resolution_time: float = 0.0


class AvailabilityUpdate(BaseSchema):
    availability: WorkerAvailability
