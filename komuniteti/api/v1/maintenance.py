"""
Maintenance API endpoints.

Thin HTTP layer over MaintenanceGateway. Errors are rendered by the
application exception handlers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from komuniteti.api.deps import get_filter_params, get_gateway
from komuniteti.core.exceptions import ResourceNotFoundError
from komuniteti.schemas.common.enums import MaintenanceType, RequestSortOption
from komuniteti.schemas.maintenance import (
    AssignmentRequest,
    AvailabilityUpdate,
    CommentCreate,
    CommentResponse,
    DocumentCreate,
    DocumentResponse,
    MaintenanceAnalytics,
    MaintenanceFilterParams,
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceRequestUpdate,
    PriorityUpdate,
    ScheduleRequest,
    StatusUpdate,
    WorkerCreate,
    WorkerResponse,
)
from komuniteti.services.maintenance import MaintenanceGateway

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@router.get("/requests", response_model=List[MaintenanceRequestResponse])
async def list_requests(
    criteria: MaintenanceFilterParams = Depends(get_filter_params),
    sort: RequestSortOption = Query(RequestSortOption.NEWEST),
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    """List requests matching the filter criteria, newest first by default."""
    return await gateway.search_requests(criteria, sort)


@router.post(
    "/requests",
    response_model=MaintenanceRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    draft: MaintenanceRequestCreate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.create_request(draft)


@router.get("/requests/{request_id}", response_model=MaintenanceRequestResponse)
async def get_request(request_id: str, gateway: MaintenanceGateway = Depends(get_gateway)):
    return await gateway.get_request_by_id(request_id)


@router.patch("/requests/{request_id}", response_model=MaintenanceRequestResponse)
async def update_request(
    request_id: str,
    update: MaintenanceRequestUpdate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    """Partial update of non-workflow fields."""
    return await gateway.update_request(request_id, update)


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(request_id: str, gateway: MaintenanceGateway = Depends(get_gateway)):
    await gateway.delete_request(request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

@router.post("/requests/{request_id}/status", response_model=MaintenanceRequestResponse)
async def change_status(
    request_id: str,
    payload: StatusUpdate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.update_request_status(
        request_id,
        payload.status,
        payload.resolution_details,
        payload.actual_cost,
        payload.expected_version,
    )


@router.post("/requests/{request_id}/priority", response_model=MaintenanceRequestResponse)
async def change_priority(
    request_id: str,
    payload: PriorityUpdate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.update_request_priority(request_id, payload.priority, payload.expected_version)


@router.post("/requests/{request_id}/assignment", response_model=MaintenanceRequestResponse)
async def assign_request(
    request_id: str,
    payload: AssignmentRequest,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.assign_request_to_worker(
        request_id,
        payload.worker_id,
        payload.worker_name,
        payload.expected_version,
    )


@router.post("/requests/{request_id}/schedule", response_model=MaintenanceRequestResponse)
async def schedule_request(
    request_id: str,
    payload: ScheduleRequest,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.schedule_request(request_id, payload.scheduled_date, payload.expected_version)


# ---------------------------------------------------------------------------
# Comments & documents
# ---------------------------------------------------------------------------

@router.post(
    "/requests/{request_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    request_id: str,
    comment: CommentCreate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.add_comment(request_id, comment)


@router.get("/requests/{request_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    request_id: str,
    include_private: bool = Query(True),
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.list_comments(request_id, include_private)


@router.post(
    "/requests/{request_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def attach_document(
    request_id: str,
    document: DocumentCreate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.attach_document(request_id, document)


# ---------------------------------------------------------------------------
# Workers
# ---------------------------------------------------------------------------

@router.get("/workers", response_model=List[WorkerResponse])
async def list_workers(
    specialty: Optional[MaintenanceType] = Query(None),
    available_only: bool = Query(False),
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    """All workers, or those with a specialty, or only available ones."""
    if specialty is not None:
        workers = await gateway.get_workers_by_specialty(specialty)
        if available_only:
            available = {w.id for w in await gateway.get_available_workers()}
            workers = [w for w in workers if w.id in available]
        return workers
    if available_only:
        return await gateway.get_available_workers()
    return await gateway.get_all_workers()


@router.get("/workers/{worker_id}", response_model=WorkerResponse)
async def get_worker(worker_id: str, gateway: MaintenanceGateway = Depends(get_gateway)):
    return await gateway.get_worker(worker_id)


@router.post("/workers", response_model=WorkerResponse, status_code=status.HTTP_201_CREATED)
async def register_worker(worker: WorkerCreate, gateway: MaintenanceGateway = Depends(get_gateway)):
    return await gateway.register_worker(worker)


@router.post("/workers/{worker_id}/availability", response_model=WorkerResponse)
async def set_worker_availability(
    worker_id: str,
    payload: AvailabilityUpdate,
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.set_worker_availability(worker_id, payload.availability)


# ---------------------------------------------------------------------------
# Analytics & operations
# ---------------------------------------------------------------------------

@router.get("/analytics", response_model=MaintenanceAnalytics)
async def get_analytics(
    building_id: Optional[str] = Query(None),
    gateway: MaintenanceGateway = Depends(get_gateway),
):
    return await gateway.get_analytics(building_id)


@router.get("/operations/{operation_id}")
async def get_operation(operation_id: str, gateway: MaintenanceGateway = Depends(get_gateway)):
    """Outcome of a previously issued command."""
    outcome = gateway.tracker.get(operation_id)
    if outcome is None:
        raise ResourceNotFoundError("Operation", operation_id)
    return outcome.to_dict()
