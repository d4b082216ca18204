"""
Shared pydantic configuration for maintenance schemas.

Inputs (create, update, filter) reject unknown fields. Outputs are
frozen snapshots loaded straight from ORM rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
    "BaseFilterSchema",
]

VERSION_GUARD_FIELD = "expected_version"


class BaseSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Enum members stay members; JSON output uses their values
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseCreateSchema(BaseSchema):
    """Payload that creates a new entity."""

    model_config = ConfigDict(extra="forbid")


class BaseUpdateSchema(BaseSchema):
    """
    Partial update payload.

    Every field is optional; only the ones the caller sent are applied.
    An ``expected_version`` field, when declared, guards the update and
    is never written to the entity.
    """

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set by the caller, without the version guard."""
        return self.model_dump(exclude_unset=True, exclude={VERSION_GUARD_FIELD})


class BaseResponseSchema(BaseSchema):
    """Immutable read snapshot of a stored entity."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str = Field(..., description="Unique identifier")
    created_at: datetime
    updated_at: datetime


class BaseFilterSchema(BaseSchema):
    """Query criteria; immutable once built."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)
