"""
Maintenance search service.

``filter_requests`` and ``sort_requests`` are pure functions over
request snapshots; the service only loads the snapshot to work on.
"""

from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from komuniteti.models.maintenance import MaintenanceRequest
from komuniteti.repositories.maintenance import MaintenanceRequestRepository
from komuniteti.schemas.common.enums import (
    FILTER_ALL,
    MaintenancePriority,
    RequestSortOption,
)
from komuniteti.schemas.maintenance import MaintenanceFilterParams, MaintenanceRequestResponse
from komuniteti.services.base import BaseService, ServiceResult
from komuniteti.services.maintenance.maintenance_request_service import to_request_snapshot
from komuniteti.utils.datetime_utils import DateTimeHelper

# Lower rank sorts first
PRIORITY_RANK = {
    MaintenancePriority.URGENT: 0,
    MaintenancePriority.HIGH: 1,
    MaintenancePriority.MEDIUM: 2,
    MaintenancePriority.LOW: 3,
}

SEARCHABLE_FIELDS = (
    "title",
    "description",
    "location",
    "building_name",
    "unit_number",
    "submitter_name",
)


def matches_query(request: MaintenanceRequestResponse, query: str) -> bool:
    """Case-insensitive substring match on any searchable field."""
    needle = query.casefold()
    return any(
        needle in value.casefold()
        for value in (getattr(request, name) for name in SEARCHABLE_FIELDS)
        if value
    )


def matches(request: MaintenanceRequestResponse, criteria: MaintenanceFilterParams) -> bool:
    if criteria.status != FILTER_ALL and request.status != criteria.status:
        return False
    if criteria.type != FILTER_ALL and request.type != criteria.type:
        return False
    if criteria.building_id and request.building_id != criteria.building_id:
        return False
    if criteria.unit_id and request.unit_id != criteria.unit_id:
        return False
    if criteria.start_date and request.created_at < DateTimeHelper.to_naive_utc(criteria.start_date):
        return False
    if criteria.end_date and request.created_at > DateTimeHelper.to_naive_utc(criteria.end_date):
        return False
    if criteria.query and not matches_query(request, criteria.query):
        return False
    return True


def filter_requests(
    requests: Iterable[MaintenanceRequestResponse],
    criteria: Optional[MaintenanceFilterParams] = None,
) -> List[MaintenanceRequestResponse]:
    """
    Requests satisfying every predicate in ``criteria``.

    Input order is preserved and the result is a new list, so filtering
    is idempotent.
    """
    criteria = criteria or MaintenanceFilterParams()
    return [request for request in requests if matches(request, criteria)]


def sort_requests(
    requests: Sequence[MaintenanceRequestResponse],
    sort: RequestSortOption = RequestSortOption.NEWEST,
) -> List[MaintenanceRequestResponse]:
    """
    Return a new list ordered by ``sort``.

    All orderings are stable: equal keys keep their input order.
    """
    sort = RequestSortOption(sort)
    if sort == RequestSortOption.NEWEST:
        return sorted(requests, key=lambda r: r.created_at, reverse=True)
    if sort == RequestSortOption.OLDEST:
        return sorted(requests, key=lambda r: r.created_at)
    return sorted(requests, key=lambda r: PRIORITY_RANK[r.priority])


class MaintenanceSearchService(BaseService[MaintenanceRequest, MaintenanceRequestRepository]):
    """Filter and sort requests loaded from the store."""

    def __init__(self, repository: MaintenanceRequestRepository, db_session: Session):
        super().__init__(repository, db_session)

    def search(
        self,
        criteria: Optional[MaintenanceFilterParams] = None,
        sort: RequestSortOption = RequestSortOption.NEWEST,
    ) -> ServiceResult[List[MaintenanceRequestResponse]]:
        criteria = criteria or MaintenanceFilterParams()

        def command() -> List[MaintenanceRequestResponse]:
            if criteria.building_id:
                rows = self.repository.list_by_building(criteria.building_id)
            else:
                rows = self.repository.list_all()
            snapshot = [to_request_snapshot(row) for row in rows]
            return sort_requests(filter_requests(snapshot, criteria), sort)

        result = self._execute("search maintenance requests", command)
        if result:
            result.add_metadata("total", len(result.data))
        return result
