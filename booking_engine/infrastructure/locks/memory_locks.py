from __future__ import annotations

import threading

from booking_engine.application.ports.reservation_lock import ReservationLockPort


class MemoryReservationLocks(ReservationLockPort):
    """Per-scope locks for a single process. Multi-process deployments need a store-level constraint instead."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()

    def hold(self, scope: str) -> threading.Lock:
        with self._lock_lock:
            if scope not in self._locks:
                self._locks[scope] = threading.Lock()
            return self._locks[scope]
