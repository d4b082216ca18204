"""
Maintenance request schemas.

Create, partial update and workflow command payloads, plus the read
snapshot returned for a request together with its comments and
documents.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from komuniteti.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from komuniteti.schemas.common.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
    RecurringFrequency,
)
from komuniteti.schemas.maintenance.maintenance_comment import CommentResponse

__all__ = [
    "MaintenanceRequestCreate",
    "MaintenanceRequestUpdate",
    "StatusUpdate",
    "PriorityUpdate",
    "AssignmentRequest",
    "ScheduleRequest",
    "DocumentCreate",
    "DocumentResponse",
    "MaintenanceRequestResponse",
]

Cost = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class MaintenanceRequestCreate(BaseCreateSchema):
    """
    Draft of a new maintenance request.

    Status defaults to open. Callers may override it; the store then
    fills started_at/completed_at so the timestamp invariants hold.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Leaky faucet",
                "description": "Kitchen faucet drips constantly",
                "type": "plumbing",
                "submitter_id": "u-100",
                "submitter_name": "Arta Krasniqi",
                "building_id": "b1",
                "building_name": "Tower A",
                "unit_id": "u-12",
                "unit_number": "12",
                "location": "Kitchen",
                "priority": "medium",
            }
        }
    )

    title: str = Field(..., min_length=1, max_length=255, description="Brief issue summary")
    description: str = Field("", max_length=5000, description="Detailed issue description")
    type: MaintenanceType = Field(..., description="Request type")
    submitter_id: str = Field(..., min_length=1, max_length=64)
    submitter_name: str = Field("", max_length=255)
    building_id: str = Field(..., min_length=1, max_length=64)
    building_name: str = Field("", max_length=255)
    unit_id: Optional[str] = Field(None, max_length=64)
    unit_number: Optional[str] = Field(None, max_length=50)
    location: str = Field("", max_length=255)
    status: MaintenanceStatus = Field(MaintenanceStatus.OPEN)
    priority: MaintenancePriority = Field(MaintenancePriority.MEDIUM)
    scheduled_date: Optional[datetime] = None
    estimated_cost: Optional[Cost] = None
    actual_cost: Optional[Cost] = None
    resolution_details: Optional[str] = Field(None, max_length=5000)
    images: List[str] = Field(default_factory=list, max_length=20, description="Image URLs")
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    next_recurring_date: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_consistency(self) -> "MaintenanceRequestCreate":
        if self.is_recurring and self.recurring_frequency is None:
            raise ValueError("recurring_frequency is required for recurring requests")
        if self.status == MaintenanceStatus.RESOLVED and not (self.resolution_details or "").strip():
            raise ValueError("resolution_details is required for resolved requests")
        if self.actual_cost is not None and self.status != MaintenanceStatus.RESOLVED:
            raise ValueError("actual_cost can only be set on resolved requests")
        return self


class MaintenanceRequestUpdate(BaseUpdateSchema):
    """
    Partial update of non-workflow fields.

    Status, timestamps and assignment are owned by the workflow service
    and are rejected here.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    type: Optional[MaintenanceType] = None
    building_id: Optional[str] = Field(None, min_length=1, max_length=64)
    building_name: Optional[str] = Field(None, max_length=255)
    unit_id: Optional[str] = Field(None, max_length=64)
    unit_number: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    estimated_cost: Optional[Cost] = None
    images: Optional[List[str]] = Field(None, max_length=20)
    is_recurring: Optional[bool] = None
    recurring_frequency: Optional[RecurringFrequency] = None
    next_recurring_date: Optional[datetime] = None
    expected_version: Optional[int] = Field(
        None,
        ge=1,
        description="Version the caller last read; mismatch is a conflict",
    )

    @field_validator(
        "title",
        "description",
        "type",
        "building_id",
        "building_name",
        "location",
        "images",
        "is_recurring",
    )
    @classmethod
    def reject_null(cls, v):
        # required columns may be omitted from a patch but never cleared
        if v is None:
            raise ValueError("cannot be null")
        return v


class StatusUpdate(BaseSchema):
    """Requested status transition."""

    status: MaintenanceStatus
    resolution_details: Optional[str] = Field(None, max_length=5000)
    actual_cost: Optional[Cost] = None
    expected_version: Optional[int] = Field(None, ge=1)


class PriorityUpdate(BaseSchema):
    priority: MaintenancePriority
    expected_version: Optional[int] = Field(None, ge=1)


class AssignmentRequest(BaseSchema):
    """Assign a request to a worker."""

    worker_id: str = Field(..., min_length=1, max_length=36)
    worker_name: Optional[str] = Field(
        None,
        max_length=255,
        description="Display name override; defaults to the registered name",
    )
    expected_version: Optional[int] = Field(None, ge=1)


class ScheduleRequest(BaseSchema):
    scheduled_date: datetime
    expected_version: Optional[int] = Field(None, ge=1)


class DocumentCreate(BaseCreateSchema):
    """Metadata of an uploaded document."""

    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=1024)
    content_type: str = Field("application/pdf", max_length=100)
    size: int = Field(0, ge=0, description="Size in bytes")
    uploaded_by_id: str = Field(..., min_length=1, max_length=64)
    uploaded_by_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("content_type")
    @classmethod
    def normalize_content_type(cls, v: str) -> str:
        return v.lower()


class DocumentResponse(BaseSchema):
    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str
    request_id: str
    name: str
    url: str
    content_type: str
    size: int
    uploaded_by_id: str
    uploaded_by_name: str
    created_at: datetime


class MaintenanceRequestResponse(BaseResponseSchema):
    """Immutable snapshot of a maintenance request."""

    title: str
    description: str
    type: MaintenanceType
    submitter_id: str
    submitter_name: str
    building_id: str
    building_name: str
    unit_id: Optional[str] = None
    unit_number: Optional[str] = None
    location: str
    status: MaintenanceStatus
    priority: MaintenancePriority
    scheduled_date: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    assigned_to_id: Optional[str] = None
    assigned_to_name: Optional[str] = None
    assigned_at: Optional[datetime] = None
    estimated_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None
    resolution_details: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    next_recurring_date: Optional[datetime] = None
    version: int
    comments: List[CommentResponse] = Field(default_factory=list)
    documents: List[DocumentResponse] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
