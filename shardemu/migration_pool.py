"""Queues of migration messages waiting to be packed into blocks."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from typing import Generic, TypeVar

from shardemu.migration import MigrationRequest

_T = TypeVar("_T")


class QueuePool(Generic[_T]):
    """Thread-safe FIFO queue with a fixed per-block cap."""

    def __init__(self, cap: int) -> None:
        if cap < 0:
            raise ValueError("cap must not be negative")
        self.cap = cap
        self.queue: list[_T] = []
        self._lock = threading.Lock()

    def add(self, item: _T) -> None:
        with self._lock:
            self.queue.append(item)

    def extend(self, items: Iterable[_T]) -> None:
        for item in items:
            self.add(item)

    def _take(self, count: int) -> list[_T]:
        taken = self.queue[:count]
        del self.queue[:count]
        return taken

    def fetch(self, quota: int) -> tuple[list[_T], int]:
        """Take up to ``quota`` items from the front; return them and the unused quota."""
        if quota < 0:
            raise ValueError("quota must not be negative")
        with self._lock:
            items = self._take(min(quota, len(self.queue)))
        return items, quota - len(items)

    def fetch_capped(self) -> list[_T]:
        """Take up to ``cap`` items from the front."""
        with self._lock:
            return self._take(min(self.cap, len(self.queue)))

    def __len__(self) -> int:
        with self._lock:
            return len(self.queue)


class MigrationRequestPool(QueuePool[MigrationRequest]):
    """Queue of requests to move accounts out of this shard."""

    def __init__(self, cap: int, max_mig_size: int, drain_all: bool) -> None:
        super().__init__(cap)
        if max_mig_size < 0:
            raise ValueError("max_mig_size must not be negative")
        self.max_mig_size = max_mig_size
        self.drain_all = drain_all

    def fetch_for_block(self) -> tuple[list[MigrationRequest], int]:
        """Take requests for the next block and return them with the quota left.

        When ``drain_all`` is set every queued request is taken and no quota is
        reported; otherwise at most ``max_mig_size`` are taken.
        """
        if self.drain_all:
            with self._lock:
                return self._take(len(self.queue)), 0
        return self.fetch(self.max_mig_size)

    def inject(self, requests: Iterable[MigrationRequest]) -> None:
        """Stamp each request with the current time in milliseconds and queue it."""
        for request in requests:
            request.request_time = time.time_ns() // 1_000_000
            self.add(request)