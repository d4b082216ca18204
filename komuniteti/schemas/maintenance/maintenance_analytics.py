"""
Maintenance analytics schemas.

Computed on demand from request and worker snapshots; never persisted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field

from komuniteti.schemas.common.base import BaseSchema
from komuniteti.schemas.common.enums import MaintenancePriority, MaintenanceType

__all__ = [
    "StatusCounts",
    "TypeBreakdown",
    "PriorityBreakdown",
    "CostSummary",
    "MonthlySummary",
    "TopWorker",
    "MaintenanceAnalytics",
]


class AnalyticsSchema(BaseSchema):
    model_config = ConfigDict(frozen=True, validate_assignment=False)


class StatusCounts(AnalyticsSchema):
    """Request counts per status; they sum to the total."""

    open: int = Field(0, ge=0)
    in_progress: int = Field(0, ge=0, serialization_alias="in-progress")
    resolved: int = Field(0, ge=0)
    cancelled: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.open + self.in_progress + self.resolved + self.cancelled


class TypeBreakdown(AnalyticsSchema):
    type: MaintenanceType
    count: int = Field(..., ge=1)
    percentage: int = Field(..., ge=0, le=100)


class PriorityBreakdown(AnalyticsSchema):
    priority: MaintenancePriority
    count: int = Field(..., ge=1)
    percentage: int = Field(..., ge=0, le=100)


class CostSummary(AnalyticsSchema):
    """
    Cost totals.

    average_per_request divides by the number of requests that carry an
    actual cost, not by the total number of requests.
    """

    total_estimated: Decimal = Decimal("0")
    total_actual: Decimal = Decimal("0")
    average_per_request: Decimal = Decimal("0")


class MonthlySummary(AnalyticsSchema):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM of created_at")
    request_count: int = Field(..., ge=1)
    resolution_rate: float = Field(..., ge=0, le=1)
    average_cost: Decimal = Decimal("0")


class TopWorker(AnalyticsSchema):
    worker_id: str
    name: str
    completed_requests: int = Field(..., ge=0)
    average_resolution_time: float = Field(..., ge=0)


class MaintenanceAnalytics(AnalyticsSchema):
    """Aggregate view over a building's (or all) maintenance requests."""

    building_id: Optional[str] = None
    total_requests: int = Field(0, ge=0)
    status_counts: StatusCounts = Field(default_factory=StatusCounts)
    type_breakdown: List[TypeBreakdown] = Field(default_factory=list)
    priority_breakdown: List[PriorityBreakdown] = Field(default_factory=list)
    cost_summary: CostSummary = Field(default_factory=CostSummary)
    average_resolution_time: float = Field(0.0, ge=0, description="Hours")
    monthly_summary: List[MonthlySummary] = Field(default_factory=list)
    top_workers: List[TopWorker] = Field(default_factory=list)
