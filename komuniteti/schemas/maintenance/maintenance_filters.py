"""
Maintenance filter schemas.

Criteria held by the caller and applied by the search service.
"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator, model_validator

from komuniteti.schemas.common.base import BaseFilterSchema
from komuniteti.schemas.common.enums import (
    FILTER_ALL,
    MaintenanceStatus,
    MaintenanceType,
)

__all__ = ["MaintenanceFilterParams"]


class MaintenanceFilterParams(BaseFilterSchema):
    """
    Maintenance request filter criteria.

    All predicates are AND-combined. Status and type accept "all".
    The free-text query matches title, description, location, building
    name, unit number and submitter name. It is matched as typed,
    surrounding whitespace included; a query of only whitespace is
    ignored.
    """

    model_config = ConfigDict(
        str_strip_whitespace=False,
        json_schema_extra={
            "example": {
                "status": "open",
                "type": "all",
                "building_id": "b1",
                "query": "leak",
            }
        },
    )

    status: Union[MaintenanceStatus, Literal["all"]] = Field(
        FILTER_ALL,
        description="Exact status or 'all'",
    )
    type: Union[MaintenanceType, Literal["all"]] = Field(
        FILTER_ALL,
        description="Exact request type or 'all'",
    )
    building_id: Optional[str] = Field(None, description="Filter by building")
    unit_id: Optional[str] = Field(None, description="Filter by unit")
    start_date: Optional[datetime] = Field(None, description="Inclusive lower bound on created_at")
    end_date: Optional[datetime] = Field(None, description="Inclusive upper bound on created_at")
    query: Optional[str] = Field(None, max_length=255, description="Case-insensitive text search")

    @field_validator("query")
    @classmethod
    def blank_query_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None

    @field_validator("building_id", "unit_id")
    @classmethod
    def strip_ids(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def validate_date_range(self) -> "MaintenanceFilterParams":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be before or equal to end_date")
        return self

