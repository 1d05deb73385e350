"""Per-date serialization for operations that rewrite a date's allocations."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class DateLocks:
    """
    Registry of one lock per date.

    ``generate`` and ``reassign`` hold the lock of the date they touch, so
    two regenerations of the same date run one after the other while
    different dates proceed in parallel. This covers one process; across
    processes the allocation unit unique constraint rejects the second
    commit.

    Locks are never evicted: the registry holds one entry per date touched
    in the process, which stays small for an exam calendar.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, date: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(date)
            if lock is None:
                lock = threading.Lock()
                self._locks[date] = lock
            return lock

    @contextmanager
    def hold(self, date: str) -> Iterator[None]:
        lock = self.lock_for(date)
        if not lock.acquire(blocking=False):
            logger.info("Waiting for in-flight operation on %s", date)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()


# Shared by every generator and reassignment service in the process.
DEFAULT_LOCKS = DateLocks()
