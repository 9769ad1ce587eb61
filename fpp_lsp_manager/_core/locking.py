"""
Double-checked locking for the release cache and binary installs.

Both the release-list refresh and per-version installation follow the same
discipline: check, lock, recheck, act, unlock. The pattern lives here once so
both call sites share a single, separately tested implementation.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class DoubleCheckedLock(Generic[T]):
    """
    Runs an action at most once per "miss" across concurrent tasks.

    `check` is a cheap, non-blocking probe returning a result when no work is
    needed, or None when `act` must run. Callers that queued behind a running
    action re-check first; if the action's effect is not visible to `check`
    (it failed, or reported failure as a value) they receive that action's
    outcome instead of repeating it.

    A cancelled action records nothing, so the next waiter runs it again.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = asyncio.Lock()
        self._generation = 0
        self._last_result: Optional[T] = None
        self._last_error: Optional[Exception] = None

    @property
    def locked(self) -> bool:
        """Check if an action is currently running."""
        return self._lock.locked()

    async def run(
        self,
        check: Callable[[], Optional[T]],
        act: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Return `check()` if it hits, otherwise run `act()` under the lock.

        Args:
            check: Probe returning a result, or None on a miss
            act: Coroutine function doing the expensive work

        Returns:
            The probe result, the action result, or the outcome of the action
            that completed while this caller waited

        Raises:
            Exception: Whatever `act` raised, for the caller that ran it and
                every caller that waited on it
        """
        result = check()
        if result is not None:
            return result

        generation = self._generation
        async with self._lock:
            result = check()
            if result is not None:
                logger.debug(f"{self.name}: satisfied after waiting for lock")
                return result

            if self._generation != generation:
                logger.debug(f"{self.name}: sharing outcome of concurrent attempt")
                if self._last_error is not None:
                    raise self._last_error
                return self._last_result  # type: ignore[return-value]

            try:
                result = await act()
            except Exception as e:
                self._record(None, e)
                raise
            self._record(result, None)
            return result

    def _record(self, result: Optional[T], error: Optional[Exception]) -> None:
        self._last_result = result
        self._last_error = error
        self._generation += 1


class KeyedLocks(Generic[K, T]):
    """
    Lazily created DoubleCheckedLock per key.

    Entries are never removed. A coarse threading lock guards insertion only;
    the per-key locks do the actual exclusion, so unrelated keys never
    serialize each other.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._locks: Dict[K, DoubleCheckedLock[T]] = {}
        self._insert_lock = threading.Lock()

    def get(self, key: K) -> DoubleCheckedLock[T]:
        """Get or create the lock for `key`."""
        lock = self._locks.get(key)
        if lock is not None:
            return lock
        with self._insert_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = DoubleCheckedLock(f"{self.name}[{key}]")
                self._locks[key] = lock
            return lock

    def __contains__(self, key: object) -> bool:
        return key in self._locks

    def __len__(self) -> int:
        return len(self._locks)
