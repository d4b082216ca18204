"""
Concurrency guards for commands issued against the maintenance store.

RequestLockRegistry serializes mutating commands per request id.
GenerationTracker lets callers detect reads that were overtaken by a
newer mutation and discard them.
"""

import asyncio
import threading
from collections import OrderedDict, defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict

Release = Callable[[], None]


class RequestLockRegistry:
    """Per-id asyncio locks, created lazily and released when idle."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = defaultdict(int)

    async def acquire(self, key: str) -> Release:
        """
        Wait for the lock of key and return the callable that releases it.

        The release callable is idempotent and must be called from the
        event loop, for example from a future's done callback.
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] += 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget(key)
            raise

        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            lock.release()
            self._forget(key)

        return release

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block."""
        release = await self.acquire(key)
        try:
            yield
        finally:
            release()

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return bool(lock and lock.locked())

    def _forget(self, key: str) -> None:
        self._waiters[key] -= 1
        if self._waiters[key] == 0:
            self._waiters.pop(key, None)
            self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


@dataclass(frozen=True)
class GenerationToken:
    """Global generation observed when a read of ``scope`` started."""

    scope: str
    generation: int


class GenerationTracker:
    """
    Mutation stamps, one per scope.

    Every committed mutation advances the global generation and stamps
    its scopes with it. A token taken by ``begin_read`` is stale once
    its scope carries a stamp newer than the token.

    At most ``max_scopes`` scopes keep their own stamp. The least
    recently mutated ones are dropped past that, and their stamp is
    folded into a floor that every untracked scope reports, so a dropped
    scope can read as stale too early but never as current too late.
    """

    GLOBAL_SCOPE = "*"

    def __init__(self, max_scopes: int = 4096):
        self.max_scopes = max_scopes
        self._generation = 0
        self._floor = 0
        self._stamps: "OrderedDict[str, int]" = OrderedDict()
        self._lock = threading.Lock()

    def begin_read(self, scope: str = GLOBAL_SCOPE) -> GenerationToken:
        with self._lock:
            return GenerationToken(scope=scope, generation=self._generation)

    def bump(self, *scopes: str) -> int:
        """Record a committed mutation for the given scopes and the global scope."""
        with self._lock:
            self._generation += 1
            for scope in set(scopes) - {self.GLOBAL_SCOPE}:
                self._stamps[scope] = self._generation
                self._stamps.move_to_end(scope)
            while len(self._stamps) > self.max_scopes:
                _, stamp = self._stamps.popitem(last=False)
                self._floor = max(self._floor, stamp)
            return self._generation

    def current(self, scope: str = GLOBAL_SCOPE) -> int:
        """Generation of the last mutation that touched scope."""
        with self._lock:
            return self._stamp(scope)

    def is_current(self, token: GenerationToken) -> bool:
        return self.current(token.scope) <= token.generation

    def _stamp(self, scope: str) -> int:
        if scope == self.GLOBAL_SCOPE:
            return self._generation
        return self._stamps.get(scope, self._floor)

    def __len__(self) -> int:
        return len(self._stamps)
