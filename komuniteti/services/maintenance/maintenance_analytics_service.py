"""
Maintenance analytics service.

Analytics are recomputed from scratch over request and worker snapshots
on every call; nothing is cached or persisted.
"""

from collections import Counter, OrderedDict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from komuniteti.config.settings import settings
from komuniteti.models.maintenance import MaintenanceRequest
from komuniteti.repositories.maintenance import (
    MaintenanceRequestRepository,
    MaintenanceWorkerRepository,
)
from komuniteti.schemas.common.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
)
from komuniteti.schemas.maintenance import (
    CostSummary,
    MaintenanceAnalytics,
    MaintenanceRequestResponse,
    MonthlySummary,
    PriorityBreakdown,
    StatusCounts,
    TopWorker,
    TypeBreakdown,
    WorkerResponse,
)
from komuniteti.services.base import BaseService, ServiceResult
from komuniteti.services.maintenance.maintenance_request_service import to_request_snapshot
from komuniteti.services.maintenance.maintenance_worker_service import to_worker_snapshot
from komuniteti.utils.datetime_utils import DateTimeHelper

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def percentage(count: int, total: int) -> int:
    """Share of ``total`` in whole percent, rounded half up; 0 when total is 0."""
    if total == 0:
        return 0
    return int((Decimal(count) * 100 / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean_cost(costs: Sequence[Decimal]) -> Decimal:
    if not costs:
        return ZERO
    return (sum(costs, ZERO) / len(costs)).quantize(CENTS, rounding=ROUND_HALF_UP)


def status_counts(requests: Sequence[MaintenanceRequestResponse]) -> StatusCounts:
    counts = Counter(r.status for r in requests)
    return StatusCounts(
        open=counts[MaintenanceStatus.OPEN],
        in_progress=counts[MaintenanceStatus.IN_PROGRESS],
        resolved=counts[MaintenanceStatus.RESOLVED],
        cancelled=counts[MaintenanceStatus.CANCELLED],
    )


def type_breakdown(requests: Sequence[MaintenanceRequestResponse]) -> List[TypeBreakdown]:
    counts = Counter(r.type for r in requests)
    total = len(requests)
    return [
        TypeBreakdown(type=t, count=counts[t], percentage=percentage(counts[t], total))
        for t in MaintenanceType
        if counts[t]
    ]


def priority_breakdown(requests: Sequence[MaintenanceRequestResponse]) -> List[PriorityBreakdown]:
    counts = Counter(r.priority for r in requests)
    total = len(requests)
    return [
        PriorityBreakdown(priority=p, count=counts[p], percentage=percentage(counts[p], total))
        for p in MaintenancePriority
        if counts[p]
    ]


def cost_summary(requests: Sequence[MaintenanceRequestResponse]) -> CostSummary:
    """
    Estimated and actual cost totals.

    The average divides by the number of requests with an actual cost.
    """
    estimated = [r.estimated_cost for r in requests if r.estimated_cost is not None]
    actual = [r.actual_cost for r in requests if r.actual_cost is not None]
    return CostSummary(
        total_estimated=sum(estimated, ZERO),
        total_actual=sum(actual, ZERO),
        average_per_request=mean_cost(actual),
    )


def average_resolution_time(requests: Sequence[MaintenanceRequestResponse]) -> float:
    """Mean hours from creation to completion over resolved requests."""
    hours = [
        DateTimeHelper.hours_between(r.created_at, r.completed_at)
        for r in requests
        if r.status == MaintenanceStatus.RESOLVED and r.created_at and r.completed_at
    ]
    if not hours:
        return 0.0
    return round(sum(hours) / len(hours), 2)


def monthly_summary(requests: Sequence[MaintenanceRequestResponse]) -> List[MonthlySummary]:
    months: Dict[str, List[MaintenanceRequestResponse]] = OrderedDict()
    for request in sorted(requests, key=lambda r: r.created_at):
        months.setdefault(DateTimeHelper.month_key(request.created_at), []).append(request)

    summary = []
    for month, bucket in months.items():
        resolved = sum(1 for r in bucket if r.status == MaintenanceStatus.RESOLVED)
        summary.append(
            MonthlySummary(
                month=month,
                request_count=len(bucket),
                resolution_rate=resolved / len(bucket),
                average_cost=mean_cost([r.actual_cost for r in bucket if r.actual_cost is not None]),
            )
        )
    return summary


def top_workers(
    workers: Sequence[WorkerResponse],
    limit: Optional[int] = None,
) -> List[TopWorker]:
    """Most completed requests first; ties go to the faster average resolution."""
    ranked = sorted(workers, key=lambda w: (-w.completed_requests, w.average_resolution_time))
    if limit is not None:
        ranked = ranked[:limit]
    return [
        TopWorker(
            worker_id=w.id,
            name=w.name,
            completed_requests=w.completed_requests,
            average_resolution_time=w.average_resolution_time,
        )
        for w in ranked
    ]


def compute_analytics(
    requests: Sequence[MaintenanceRequestResponse],
    workers: Sequence[WorkerResponse],
    building_id: Optional[str] = None,
    top_workers_limit: Optional[int] = None,
) -> MaintenanceAnalytics:
    """
    Aggregate analytics over a snapshot of requests and workers.

    When ``building_id`` is given, only that building's requests count.
    """
    if building_id:
        requests = [r for r in requests if r.building_id == building_id]

    return MaintenanceAnalytics(
        building_id=building_id,
        total_requests=len(requests),
        status_counts=status_counts(requests),
        type_breakdown=type_breakdown(requests),
        priority_breakdown=priority_breakdown(requests),
        cost_summary=cost_summary(requests),
        average_resolution_time=average_resolution_time(requests),
        monthly_summary=monthly_summary(requests),
        top_workers=top_workers(workers, top_workers_limit),
    )


class MaintenanceAnalyticsService(BaseService[MaintenanceRequest, MaintenanceRequestRepository]):
    """Loads snapshots from the store and hands them to compute_analytics."""

    def __init__(
        self,
        repository: MaintenanceRequestRepository,
        db_session: Session,
        worker_repository: Optional[MaintenanceWorkerRepository] = None,
    ):
        super().__init__(repository, db_session)
        self.worker_repository = worker_repository or MaintenanceWorkerRepository(db_session)

    def get_analytics(
        self,
        building_id: Optional[str] = None,
        top_workers_limit: Optional[int] = None,
    ) -> ServiceResult[MaintenanceAnalytics]:
        if top_workers_limit is None:
            top_workers_limit = settings.ANALYTICS_TOP_WORKERS_LIMIT

        def command() -> MaintenanceAnalytics:
            rows = (
                self.repository.list_by_building(building_id)
                if building_id
                else self.repository.list_all()
            )
            requests = [to_request_snapshot(r) for r in rows]
            workers = [to_worker_snapshot(w) for w in self.worker_repository.list_all()]
            return compute_analytics(requests, workers, building_id, top_workers_limit)

        return self._execute("compute maintenance analytics", command, building_id)
