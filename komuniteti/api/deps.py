"""
FastAPI dependencies.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from komuniteti.api import deps

    router = APIRouter()

    @router.get("/requests")
    async def list_requests(gateway = Depends(deps.get_gateway)):
        return await gateway.get_all_requests()
"""

from datetime import datetime
from typing import Optional

from fastapi import Query, Request
from pydantic import ValidationError as PydanticValidationError

from komuniteti.core.exceptions import ValidationError
from komuniteti.schemas.common.enums import FILTER_ALL
from komuniteti.schemas.maintenance import MaintenanceFilterParams
from komuniteti.services.maintenance import MaintenanceGateway


def get_gateway(request: Request) -> MaintenanceGateway:
    """Gateway instance created by the application factory."""
    return request.app.state.maintenance_gateway


def get_filter_params(
    status: str = Query(FILTER_ALL, description="Exact status or 'all'"),
    type: str = Query(FILTER_ALL, description="Exact request type or 'all'"),
    building_id: Optional[str] = Query(None),
    unit_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    query: Optional[str] = Query(None, max_length=255),
) -> MaintenanceFilterParams:
    """Build filter criteria from query parameters."""
    try:
        return MaintenanceFilterParams(
            status=status,
            type=type,
            building_id=building_id,
            unit_id=unit_id,
            start_date=start_date,
            end_date=end_date,
            query=query,
        )
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid filter parameters",
            field_errors=field_errors_from(e),
        ) from e


def field_errors_from(error) -> dict:
    """Group pydantic error messages by dotted field location."""
    field_errors: dict = {}
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body") or "__root__"
        field_errors.setdefault(location, []).append(item.get("msg", "invalid value"))
    return field_errors
