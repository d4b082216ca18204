"""
Asynchronous boundary of the maintenance engine.

Every coroutine issues exactly one command. The synchronous service
work runs in a worker thread with its own database session and is
bounded by ``MAINTENANCE_CALL_TIMEOUT_SECONDS``. Mutations of the same
request are serialized, each command records an OperationOutcome, and
committed mutations advance the generation counters so callers can
discard reads that a newer mutation overtook.

Usage:
    gateway = MaintenanceGateway()
    token = gateway.begin_read()
    requests = await gateway.search_requests(criteria, RequestSortOption.PRIORITY)
    if gateway.is_current(token):
        render(requests)
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional

import structlog
from sqlalchemy.orm import sessionmaker

from komuniteti.config.settings import settings
from komuniteti.core.concurrency import GenerationToken, GenerationTracker, RequestLockRegistry
from komuniteti.core.exceptions import BaseAppException, TransientServiceError
from komuniteti.core.logging import log_execution_time, operation_id as operation_id_var
from komuniteti.schemas.common.enums import (
    MaintenancePriority,
    MaintenanceStatus,
    MaintenanceType,
    RequestSortOption,
    WorkerAvailability,
)
from komuniteti.schemas.maintenance import (
    CommentCreate,
    CommentResponse,
    DocumentCreate,
    DocumentResponse,
    MaintenanceAnalytics,
    MaintenanceFilterParams,
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceRequestUpdate,
    WorkerCreate,
    WorkerResponse,
)
from komuniteti.services.base import OperationTracker, ServiceResult
from komuniteti.services.maintenance.maintenance_service_factory import MaintenanceServiceFactory

logger = structlog.get_logger(__name__)

ServiceCall = Callable[[MaintenanceServiceFactory], ServiceResult]


def request_scope(request_id: str) -> str:
    return f"request:{request_id}"


def building_scope(building_id: str) -> str:
    return f"building:{building_id}"


WORKERS_SCOPE = "workers"


class MaintenanceGateway:
    """
    Async maintenance service boundary.

    Args:
        session_factory: Factory for per-command sessions; defaults to
            the application's SessionLocal
        timeout: Seconds before a command fails with TransientServiceError
        tracker: Operation outcome registry
        generations: Generation counters shared with readers
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        timeout: Optional[float] = None,
        tracker: Optional[OperationTracker] = None,
        generations: Optional[GenerationTracker] = None,
        locks: Optional[RequestLockRegistry] = None,
    ):
        if session_factory is None:
            from komuniteti.db.session import SessionLocal as session_factory

        self.session_factory = session_factory
        self.timeout = timeout if timeout is not None else settings.MAINTENANCE_CALL_TIMEOUT_SECONDS
        self.tracker = tracker or OperationTracker()
        self.generations = generations or GenerationTracker()
        self.locks = locks or RequestLockRegistry()

    # -------------------------------------------------------------------------
    # Stale-read protection
    # -------------------------------------------------------------------------

    def begin_read(self, scope: str = GenerationTracker.GLOBAL_SCOPE) -> GenerationToken:
        """Token to take before starting a read that may be overtaken."""
        return self.generations.begin_read(scope)

    def is_current(self, token: GenerationToken) -> bool:
        """False once a mutation in the token's scope committed after it was taken."""
        return self.generations.is_current(token)

    # -------------------------------------------------------------------------
    # Command execution
    # -------------------------------------------------------------------------

    async def _call(
        self,
        operation: str,
        call: ServiceCall,
        lock_key: Optional[str] = None,
        mutation_scopes: Optional[Iterable[str]] = None,
        scopes_from_result: Optional[Callable[[Any], Iterable[str]]] = None,
    ) -> Any:
        outcome = self.tracker.start(
            operation,
            metadata={"generation": self.generations.current()},
        )
        context_token = operation_id_var.set(outcome.operation_id)
        log = logger.bind(operation=operation, operation_id=outcome.operation_id)

        def work() -> Any:
            with self.session_factory() as session:
                data = call(MaintenanceServiceFactory(session)).unwrap()
            if mutation_scopes is not None:
                scopes = set(mutation_scopes)
                if scopes_from_result is not None:
                    scopes.update(scopes_from_result(data))
                self.generations.bump(*scopes)
            return data

        try:
            data = await self._run_with_timeout(operation, work, lock_key)
        except BaseAppException as e:
            self.tracker.fail(outcome.operation_id, e)
            log.warning("maintenance command failed", error_code=e.error_code.value, error=e.message)
            raise
        except asyncio.CancelledError:
            self.tracker.fail(
                outcome.operation_id,
                TransientServiceError(f"{operation} was cancelled", operation=operation, details={"cancelled": True}),
            )
            log.info("maintenance command cancelled")
            raise
        except Exception as e:
            self.tracker.fail(
                outcome.operation_id,
                BaseAppException(f"{operation} failed unexpectedly", details={"error_type": type(e).__name__}),
            )
            log.error("maintenance command crashed", exc_info=True)
            raise
        finally:
            operation_id_var.reset(context_token)

        self.tracker.succeed(outcome.operation_id, data)
        log.debug("maintenance command succeeded", execution_time=outcome.execution_time)
        return data

    @log_execution_time(__name__)
    async def _run_with_timeout(
        self,
        operation: str,
        work: Callable[[], Any],
        lock_key: Optional[str] = None,
    ) -> Any:
        """
        Run work in a thread and wait at most ``timeout`` seconds for it.

        The per-request lock is released by the thread's future, so a
        command that timed out or whose caller was cancelled keeps the
        request locked until its thread has actually finished.
        """
        release = await self.locks.acquire(lock_key) if lock_key is not None else None
        worker = asyncio.ensure_future(asyncio.to_thread(work))
        if release is not None:
            worker.add_done_callback(lambda _: release())
        try:
            return await asyncio.wait_for(asyncio.shield(worker), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise TransientServiceError(
                f"{operation} timed out after {self.timeout}s",
                operation=operation,
                details={"timeout_seconds": self.timeout},
            ) from e

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def get_all_requests(self) -> List[MaintenanceRequestResponse]:
        return await self._call("get_all_requests", lambda f: f.requests().list_requests())

    async def get_requests_by_building(self, building_id: str) -> List[MaintenanceRequestResponse]:
        return await self._call(
            "get_requests_by_building",
            lambda f: f.requests().list_by_building(building_id),
        )

    async def get_requests_by_unit(self, unit_id: str) -> List[MaintenanceRequestResponse]:
        return await self._call(
            "get_requests_by_unit",
            lambda f: f.requests().list_by_unit(unit_id),
        )

    async def get_requests_by_status(self, status: MaintenanceStatus) -> List[MaintenanceRequestResponse]:
        return await self._call(
            "get_requests_by_status",
            lambda f: f.requests().list_by_status(status),
        )

    async def get_request_by_id(self, request_id: str) -> MaintenanceRequestResponse:
        return await self._call(
            "get_request_by_id",
            lambda f: f.requests().get_request(request_id),
        )

    async def create_request(self, draft: MaintenanceRequestCreate) -> MaintenanceRequestResponse:
        return await self._call(
            "create_request",
            lambda f: f.requests().create_request(draft),
            mutation_scopes=[building_scope(draft.building_id)],
            scopes_from_result=lambda r: [request_scope(r.id)],
        )

    async def update_request(
        self,
        request_id: str,
        update: MaintenanceRequestUpdate,
    ) -> MaintenanceRequestResponse:
        return await self._call(
            "update_request",
            lambda f: f.requests().update_request(request_id, update),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id)],
            scopes_from_result=lambda r: [building_scope(r.building_id)],
        )

    async def delete_request(self, request_id: str) -> bool:
        return await self._call(
            "delete_request",
            lambda f: f.requests().delete_request(request_id),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id), WORKERS_SCOPE],
        )

    async def attach_document(self, request_id: str, document: DocumentCreate) -> DocumentResponse:
        return await self._call(
            "attach_document",
            lambda f: f.requests().attach_document(request_id, document),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id)],
        )

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def add_comment(self, request_id: str, comment: CommentCreate) -> CommentResponse:
        return await self._call(
            "add_comment",
            lambda f: f.comments().add_comment(request_id, comment),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id)],
        )

    async def list_comments(self, request_id: str, include_private: bool = True) -> List[CommentResponse]:
        return await self._call(
            "list_comments",
            lambda f: f.comments().list_comments(request_id, include_private),
        )

    # -------------------------------------------------------------------------
    # Workers
    # -------------------------------------------------------------------------

    async def get_all_workers(self) -> List[WorkerResponse]:
        return await self._call("get_all_workers", lambda f: f.workers().list_workers())

    async def get_workers_by_specialty(self, specialty: MaintenanceType) -> List[WorkerResponse]:
        return await self._call(
            "get_workers_by_specialty",
            lambda f: f.workers().find_by_specialty(specialty),
        )

    async def get_available_workers(self) -> List[WorkerResponse]:
        return await self._call("get_available_workers", lambda f: f.workers().list_available())

    async def get_worker(self, worker_id: str) -> WorkerResponse:
        return await self._call("get_worker", lambda f: f.workers().get_worker(worker_id))

    async def register_worker(self, worker: WorkerCreate) -> WorkerResponse:
        return await self._call(
            "register_worker",
            lambda f: f.workers().register_worker(worker),
            mutation_scopes=[WORKERS_SCOPE],
        )

    async def set_worker_availability(
        self,
        worker_id: str,
        availability: WorkerAvailability,
    ) -> WorkerResponse:
        return await self._call(
            "set_worker_availability",
            lambda f: f.workers().set_availability(worker_id, availability),
            mutation_scopes=[WORKERS_SCOPE],
        )

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    async def assign_request_to_worker(
        self,
        request_id: str,
        worker_id: str,
        worker_name: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequestResponse:
        return await self._call(
            "assign_request_to_worker",
            lambda f: f.workflow().assign(request_id, worker_id, worker_name, expected_version),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id), WORKERS_SCOPE],
        )

    async def update_request_status(
        self,
        request_id: str,
        status: MaintenanceStatus,
        resolution_details: Optional[str] = None,
        actual_cost: Optional[Decimal] = None,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequestResponse:
        return await self._call(
            "update_request_status",
            lambda f: f.workflow().change_status(
                request_id, status, resolution_details, actual_cost, expected_version
            ),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id), WORKERS_SCOPE],
        )

    async def update_request_priority(
        self,
        request_id: str,
        priority: MaintenancePriority,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequestResponse:
        return await self._call(
            "update_request_priority",
            lambda f: f.workflow().update_priority(request_id, priority, expected_version),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id)],
        )

    async def schedule_request(
        self,
        request_id: str,
        scheduled_date: datetime,
        expected_version: Optional[int] = None,
    ) -> MaintenanceRequestResponse:
        return await self._call(
            "schedule_request",
            lambda f: f.workflow().schedule(request_id, scheduled_date, expected_version),
            lock_key=request_id,
            mutation_scopes=[request_scope(request_id)],
        )

    # -------------------------------------------------------------------------
    # Search & analytics
    # -------------------------------------------------------------------------

    async def search_requests(
        self,
        criteria: Optional[MaintenanceFilterParams] = None,
        sort: RequestSortOption = RequestSortOption.NEWEST,
    ) -> List[MaintenanceRequestResponse]:
        return await self._call(
            "search_requests",
            lambda f: f.search().search(criteria, sort),
        )

    async def get_analytics(self, building_id: Optional[str] = None) -> MaintenanceAnalytics:
        return await self._call(
            "get_analytics",
            lambda f: f.analytics().get_analytics(building_id),
        )
