"""Tests for the workflow engine: transitions, assignment, priority, scheduling."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from komuniteti.core.exceptions import (
    InvalidTransitionError,
    ValidationError,
    WorkerNotFoundError,
)
from komuniteti.models.maintenance import MaintenanceRequest
from komuniteti.schemas.common.enums import MaintenancePriority, MaintenanceStatus
from komuniteti.services.base import ErrorCode
from komuniteti.services.maintenance import MaintenanceWorkflowService
from komuniteti.utils.datetime_utils import utcnow
from tests.factories import make_draft

OPEN = MaintenanceStatus.OPEN
IN_PROGRESS = MaintenanceStatus.IN_PROGRESS
RESOLVED = MaintenanceStatus.RESOLVED
CANCELLED = MaintenanceStatus.CANCELLED


def move_to(services, request_id, status, **kwargs):
    return services.workflow().change_status(request_id, status, **kwargs).unwrap()


def test_leaky_faucet_lifecycle(services, worker):
    """Create, assign, start and resolve with a cost."""
    created = services.requests().create_request(
        make_draft(title="Leaky faucet", building_id="b1", priority=MaintenancePriority.MEDIUM)
    ).unwrap()
    assert created.status == OPEN

    assigned = services.workflow().assign(created.id, worker.id).unwrap()
    assert assigned.assigned_to_id == worker.id
    assert assigned.assigned_to_name == worker.name
    assert assigned.status == OPEN

    started = move_to(services, created.id, IN_PROGRESS)
    assert started.status == IN_PROGRESS
    assert started.started_at is not None

    resolved = move_to(
        services,
        created.id,
        RESOLVED,
        resolution_details="Fixed washer",
        actual_cost=Decimal("45"),
    )
    assert resolved.status == RESOLVED
    assert resolved.completed_at is not None
    assert resolved.actual_cost == Decimal("45")
    assert resolved.resolution_details == "Fixed washer"


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            (OPEN, IN_PROGRESS, True),
            (OPEN, CANCELLED, True),
            (OPEN, RESOLVED, False),
            (OPEN, OPEN, False),
            (IN_PROGRESS, RESOLVED, True),
            (IN_PROGRESS, CANCELLED, True),
            (IN_PROGRESS, OPEN, False),
            (IN_PROGRESS, IN_PROGRESS, False),
            (RESOLVED, OPEN, False),
            (RESOLVED, IN_PROGRESS, False),
            (RESOLVED, CANCELLED, False),
            (CANCELLED, OPEN, False),
            (CANCELLED, RESOLVED, False),
        ],
    )
    def test_is_valid_transition(self, current, target, allowed):
        assert MaintenanceWorkflowService.is_valid_transition(current, target) is allowed

    def test_terminal_states_have_no_exits(self):
        assert MaintenanceWorkflowService.allowed_transitions(RESOLVED) == []
        assert MaintenanceWorkflowService.allowed_transitions(CANCELLED) == []


class TestStatusChanges:
    def test_start_sets_started_at_only(self, services, request_snapshot):
        started = move_to(services, request_snapshot.id, IN_PROGRESS)

        assert started.started_at is not None
        assert started.completed_at is None
        assert started.version == request_snapshot.version + 1

    def test_cancel_from_open_sets_completed_at(self, services, request_snapshot):
        cancelled = move_to(services, request_snapshot.id, CANCELLED)

        assert cancelled.completed_at is not None
        assert cancelled.started_at is None

    def test_resolve_from_open_is_rejected(self, services, request_snapshot):
        result = services.workflow().change_status(
            request_snapshot.id, RESOLVED, resolution_details="Done"
        )

        assert result.error.code == ErrorCode.INVALID_TRANSITION
        with pytest.raises(InvalidTransitionError) as exc_info:
            result.unwrap()
        assert exc_info.value.details["allowed_transitions"] == ["in-progress", "cancelled"]

    @pytest.mark.parametrize("details", [None, "", "   "])
    def test_resolve_requires_details(self, services, request_snapshot, details):
        move_to(services, request_snapshot.id, IN_PROGRESS)

        result = services.workflow().change_status(
            request_snapshot.id, RESOLVED, resolution_details=details
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        with pytest.raises(ValidationError):
            result.unwrap()
        current = services.requests().get_request(request_snapshot.id).unwrap()
        assert current.status == IN_PROGRESS
        assert current.completed_at is None

    def test_actual_cost_only_when_resolving(self, services, request_snapshot):
        result = services.workflow().change_status(
            request_snapshot.id, IN_PROGRESS, actual_cost=Decimal("10")
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert services.requests().get_request(request_snapshot.id).unwrap().status == OPEN

    @pytest.mark.parametrize("terminal", [RESOLVED, CANCELLED])
    @pytest.mark.parametrize("target", [OPEN, IN_PROGRESS, RESOLVED, CANCELLED])
    def test_terminal_states_reject_every_transition(self, services, request_snapshot, terminal, target):
        move_to(services, request_snapshot.id, IN_PROGRESS)
        move_to(services, request_snapshot.id, terminal, resolution_details="Fixed")

        result = services.workflow().change_status(
            request_snapshot.id, target, resolution_details="Again"
        )

        assert result.error.code == ErrorCode.INVALID_TRANSITION

    def test_rejected_transition_leaves_request_untouched(self, services, request_snapshot):
        before = services.requests().get_request(request_snapshot.id).unwrap()

        services.workflow().change_status(request_snapshot.id, OPEN)

        after = services.requests().get_request(request_snapshot.id).unwrap()
        assert after.version == before.version
        assert after.updated_at == before.updated_at

    def test_stale_version_is_a_conflict(self, services, request_snapshot):
        move_to(services, request_snapshot.id, IN_PROGRESS)

        result = services.workflow().change_status(
            request_snapshot.id, CANCELLED, expected_version=request_snapshot.version
        )

        assert result.error.code == ErrorCode.CONCURRENCY_CONFLICT

    def test_missing_request(self, services):
        result = services.workflow().change_status("missing", IN_PROGRESS)

        assert result.error.code == ErrorCode.NOT_FOUND


class TestAssignment:
    def get_worker(self, services, worker_id):
        return services.workers().get_worker(worker_id).unwrap()

    def test_assign_increments_counter(self, services, request_snapshot, worker):
        services.workflow().assign(request_snapshot.id, worker.id).unwrap()

        assert self.get_worker(services, worker.id).assigned_requests == 1

    def test_reassign_moves_counter(self, services, request_snapshot, worker, second_worker):
        services.workflow().assign(request_snapshot.id, worker.id).unwrap()

        reassigned = services.workflow().assign(request_snapshot.id, second_worker.id).unwrap()

        assert reassigned.assigned_to_id == second_worker.id
        assert self.get_worker(services, worker.id).assigned_requests == 0
        assert self.get_worker(services, second_worker.id).assigned_requests == 1

    def test_reassign_to_same_worker_keeps_counter(self, services, request_snapshot, worker):
        services.workflow().assign(request_snapshot.id, worker.id).unwrap()

        again = services.workflow().assign(request_snapshot.id, worker.id, worker_name="D. Berisha").unwrap()

        assert again.assigned_to_name == "D. Berisha"
        assert self.get_worker(services, worker.id).assigned_requests == 1

    def test_assign_does_not_change_status(self, services, request_snapshot, worker):
        move_to(services, request_snapshot.id, IN_PROGRESS)

        assigned = services.workflow().assign(request_snapshot.id, worker.id).unwrap()

        assert assigned.status == IN_PROGRESS

    def test_assign_terminal_request_is_rejected(self, services, request_snapshot, worker):
        move_to(services, request_snapshot.id, CANCELLED)

        result = services.workflow().assign(request_snapshot.id, worker.id)

        assert result.error.code == ErrorCode.INVALID_TRANSITION
        assert self.get_worker(services, worker.id).assigned_requests == 0

    def test_assign_unknown_worker(self, services, request_snapshot):
        result = services.workflow().assign(request_snapshot.id, "nobody")

        assert result.error.code == ErrorCode.NOT_FOUND
        with pytest.raises(WorkerNotFoundError):
            result.unwrap()

    def test_resolving_releases_and_counts_completion(self, services, db, request_snapshot, worker):
        services.workflow().assign(request_snapshot.id, worker.id).unwrap()
        move_to(services, request_snapshot.id, IN_PROGRESS)
        row = db.get(MaintenanceRequest, request_snapshot.id)
        row.created_at = utcnow() - timedelta(hours=10)
        db.commit()

        move_to(services, request_snapshot.id, RESOLVED, resolution_details="Fixed washer")

        stats = self.get_worker(services, worker.id)
        assert stats.assigned_requests == 0
        assert stats.completed_requests == 1
        assert stats.average_resolution_time == pytest.approx(10, abs=0.05)

    def test_running_mean_of_resolution_time(self, services, db, worker):
        for hours in (4, 8):
            created = services.requests().create_request(make_draft()).unwrap()
            services.workflow().assign(created.id, worker.id).unwrap()
            move_to(services, created.id, IN_PROGRESS)
            row = db.get(MaintenanceRequest, created.id)
            row.created_at = utcnow() - timedelta(hours=hours)
            db.commit()
            move_to(services, created.id, RESOLVED, resolution_details="Done")

        stats = self.get_worker(services, worker.id)
        assert stats.completed_requests == 2
        assert stats.average_resolution_time == pytest.approx(6, abs=0.05)

    def test_cancelling_releases_counter(self, services, request_snapshot, worker):
        services.workflow().assign(request_snapshot.id, worker.id).unwrap()

        move_to(services, request_snapshot.id, CANCELLED)

        stats = self.get_worker(services, worker.id)
        assert stats.assigned_requests == 0
        assert stats.completed_requests == 0

    def test_counter_matches_active_assignments(self, services, worker):
        store = services.requests()
        ids = [store.create_request(make_draft()).unwrap().id for _ in range(3)]
        for request_id in ids:
            services.workflow().assign(request_id, worker.id).unwrap()
        move_to(services, ids[0], CANCELLED)

        assert self.get_worker(services, worker.id).assigned_requests == 2


class TestPriorityAndSchedule:
    @pytest.mark.parametrize("status", [OPEN, IN_PROGRESS, CANCELLED])
    def test_priority_changes_in_any_status(self, services, request_snapshot, status):
        if status != OPEN:
            move_to(services, request_snapshot.id, IN_PROGRESS)
        if status == CANCELLED:
            move_to(services, request_snapshot.id, CANCELLED)

        updated = services.workflow().update_priority(
            request_snapshot.id, MaintenancePriority.URGENT
        ).unwrap()

        assert updated.priority == MaintenancePriority.URGENT
        assert updated.status == status

    def test_schedule_sets_date(self, services, request_snapshot):
        when = datetime(2030, 5, 1, 9, 30)

        scheduled = services.workflow().schedule(request_snapshot.id, when).unwrap()

        assert scheduled.scheduled_date == when

    def test_schedule_terminal_request_is_rejected(self, services, request_snapshot):
        move_to(services, request_snapshot.id, CANCELLED)

        result = services.workflow().schedule(request_snapshot.id, datetime(2030, 5, 1))

        assert result.error.code == ErrorCode.INVALID_TRANSITION


def test_assigned_counter_equals_active_requests(services, worker, second_worker):
    store = services.requests()
    ids = [store.create_request(make_draft()).unwrap().id for _ in range(4)]
    for request_id in ids:
        services.workflow().assign(request_id, worker.id).unwrap()
    services.workflow().assign(ids[1], second_worker.id).unwrap()
    move_to(services, ids[2], IN_PROGRESS)
    move_to(services, ids[2], RESOLVED, resolution_details="Done")
    move_to(services, ids[3], CANCELLED)

    requests = store.list_requests().unwrap()
    for w in (worker, second_worker):
        active = [r for r in requests if r.assigned_to_id == w.id and r.status in (OPEN, IN_PROGRESS)]
        assert services.workers().get_worker(w.id).unwrap().assigned_requests == len(active)
    assert len([r for r in requests if r.assigned_to_id == worker.id]) == 3
