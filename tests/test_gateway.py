"""Tests for the async maintenance gateway."""

import asyncio
import threading
import time
from decimal import Decimal

import pytest

from komuniteti.core.exceptions import (
    ConcurrencyConflictError,
    InvalidTransitionError,
    RequestNotFoundError,
    TransientServiceError,
    ValidationError,
)
from komuniteti.schemas.common.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    RequestSortOption,
)
from komuniteti.schemas.maintenance import MaintenanceFilterParams
from komuniteti.services.base import OperationStatus
from komuniteti.services.maintenance import MaintenanceGateway
from komuniteti.services.maintenance.maintenance_gateway import building_scope, request_scope
from tests.factories import make_draft, make_worker


class SlowSessionFactory:
    """Delays every session so commands overrun the gateway timeout."""

    def __init__(self, session_factory, delay):
        self.session_factory = session_factory
        self.delay = delay

    def __call__(self):
        time.sleep(self.delay)
        return self.session_factory()


class OverlapCountingSessionFactory:
    """Holds each session open for delay seconds and records how many overlap."""

    def __init__(self, session_factory, delay=0.0):
        self.session_factory = session_factory
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1
        return self.session_factory()


@pytest.fixture
def gateway(session_factory):
    return MaintenanceGateway(session_factory=session_factory, timeout=5)


def test_lifecycle_through_gateway(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft(title="Leaky faucet"))
        worker = await gateway.register_worker(make_worker())
        await gateway.assign_request_to_worker(created.id, worker.id)
        await gateway.update_request_status(created.id, MaintenanceStatus.IN_PROGRESS)
        resolved = await gateway.update_request_status(
            created.id,
            MaintenanceStatus.RESOLVED,
            resolution_details="Fixed washer",
            actual_cost=Decimal("45"),
        )
        workers = await gateway.get_all_workers()
        return resolved, workers

    resolved, workers = asyncio.run(scenario())

    assert resolved.status == MaintenanceStatus.RESOLVED
    assert resolved.actual_cost == Decimal("45")
    assert resolved.started_at is not None
    assert resolved.completed_at is not None
    assert workers[0].completed_requests == 1
    assert workers[0].assigned_requests == 0


def test_mutation_makes_older_reads_stale(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft())
        request_token = gateway.begin_read(request_scope(created.id))
        building_token = gateway.begin_read(building_scope("b1"))
        other_token = gateway.begin_read(building_scope("b2"))
        global_token = gateway.begin_read()

        await gateway.update_request_priority(created.id, MaintenancePriority.HIGH)

        return request_token, building_token, other_token, global_token

    request_token, building_token, other_token, global_token = asyncio.run(scenario())

    assert not gateway.is_current(request_token)
    assert not gateway.is_current(global_token)
    assert gateway.is_current(other_token)
    # priority changes leave the building listing alone
    assert gateway.is_current(building_token)


def test_reads_do_not_advance_generations(gateway):
    async def scenario():
        await gateway.create_request(make_draft())
        token = gateway.begin_read()
        await gateway.get_all_requests()
        await gateway.search_requests(MaintenanceFilterParams(query="leak"), RequestSortOption.PRIORITY)
        await gateway.get_analytics()
        return token

    token = asyncio.run(scenario())

    assert gateway.is_current(token)


def test_rejected_command_does_not_advance_generations(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft())
        token = gateway.begin_read()
        with pytest.raises(InvalidTransitionError):
            await gateway.update_request_status(created.id, MaintenanceStatus.RESOLVED, "Done")
        return token

    token = asyncio.run(scenario())

    assert gateway.is_current(token)


def test_outcomes_are_tracked(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft())
        with pytest.raises(ValidationError):
            await gateway.update_request_status(created.id, MaintenanceStatus.IN_PROGRESS, actual_cost=Decimal("5"))
        return created

    created = asyncio.run(scenario())

    outcomes = list(gateway.tracker._outcomes.values())
    assert [o.operation for o in outcomes] == ["create_request", "update_request_status"]
    assert outcomes[0].status == OperationStatus.SUCCESS
    assert outcomes[0].result.id == created.id
    assert outcomes[1].status == OperationStatus.FAILURE
    assert isinstance(outcomes[1].error, ValidationError)
    assert gateway.tracker.pending() == []
    assert all(o.execution_time is not None for o in outcomes)


def test_errors_keep_their_type(gateway):
    with pytest.raises(RequestNotFoundError):
        asyncio.run(gateway.get_request_by_id("missing"))


def test_timeout_is_transient(session_factory):
    gateway = MaintenanceGateway(
        session_factory=SlowSessionFactory(session_factory, delay=0.2),
        timeout=0.01,
    )

    with pytest.raises(TransientServiceError) as exc_info:
        asyncio.run(gateway.get_all_requests())

    assert exc_info.value.details["operation"] == "get_all_requests"
    (outcome,) = gateway.tracker._outcomes.values()
    assert outcome.status == OperationStatus.FAILURE


def test_timed_out_mutation_still_invalidates_reads(session_factory):
    gateway = MaintenanceGateway(
        session_factory=SlowSessionFactory(session_factory, delay=0.2),
        timeout=0.01,
    )
    token = gateway.begin_read()

    async def scenario():
        with pytest.raises(TransientServiceError):
            await gateway.create_request(make_draft())

    # asyncio.run waits for the abandoned worker thread before returning
    asyncio.run(scenario())

    assert not gateway.is_current(token)


def test_concurrent_updates_of_one_request_are_serialized(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft())
        await asyncio.gather(
            gateway.update_request_priority(created.id, MaintenancePriority.HIGH),
            gateway.update_request_priority(created.id, MaintenancePriority.URGENT),
            gateway.schedule_request(created.id, created.created_at),
        )
        return await gateway.get_request_by_id(created.id)

    final = asyncio.run(scenario())

    assert final.version == 4
    assert len(gateway.locks) == 0


def test_stale_expected_version_is_a_conflict(gateway):
    async def scenario():
        created = await gateway.create_request(make_draft())
        await gateway.update_request_priority(created.id, MaintenancePriority.HIGH)
        await gateway.update_request_priority(
            created.id, MaintenancePriority.LOW, expected_version=created.version
        )

    with pytest.raises(ConcurrencyConflictError):
        asyncio.run(scenario())


def test_timed_out_mutation_keeps_request_locked(session_factory):
    sessions = OverlapCountingSessionFactory(session_factory)
    gateway = MaintenanceGateway(session_factory=sessions, timeout=0.05)

    async def scenario():
        created = await gateway.create_request(make_draft())
        sessions.delay = 0.3
        with pytest.raises(TransientServiceError):
            await gateway.update_request_priority(created.id, MaintenancePriority.HIGH)
        return created, gateway.locks.is_locked(created.id)

    created, locked_after_timeout = asyncio.run(scenario())

    assert locked_after_timeout
    assert len(gateway.locks) == 0


def test_timed_out_mutations_of_one_request_never_overlap(session_factory):
    sessions = OverlapCountingSessionFactory(session_factory)
    gateway = MaintenanceGateway(session_factory=sessions, timeout=0.05)

    async def scenario():
        created = await gateway.create_request(make_draft())
        sessions.delay = 0.3
        sessions.max_active = 0
        return await asyncio.gather(
            gateway.update_request_priority(created.id, MaintenancePriority.HIGH),
            gateway.update_request_priority(created.id, MaintenancePriority.URGENT),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())

    assert all(isinstance(r, TransientServiceError) for r in results)
    assert sessions.max_active == 1


def test_cancelled_call_completes_its_outcome(session_factory):
    gateway = MaintenanceGateway(
        session_factory=SlowSessionFactory(session_factory, delay=0.2),
        timeout=5,
    )

    async def scenario():
        task = asyncio.ensure_future(gateway.get_all_requests())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    (outcome,) = gateway.tracker._outcomes.values()
    assert gateway.tracker.pending() == []
    assert outcome.status == OperationStatus.FAILURE
    assert isinstance(outcome.error, TransientServiceError)
    assert outcome.error.details["cancelled"] is True


def test_unexpected_error_completes_its_outcome(gateway):
    def broken(factory):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(gateway._call("get_all_requests", broken))

    (outcome,) = gateway.tracker._outcomes.values()
    assert outcome.status == OperationStatus.FAILURE
    assert outcome.error.details == {"error_type": "RuntimeError"}
