"""
levelup.engine.locks — Per-User Lock Registry
==============================================

Serializes ``apply_event`` calls for the same player inside one process.
Two events for one user (a double-submitted solve, a solve racing a
comment) would otherwise both read-modify-write the same progress row.
Different users never share a lock and run fully in parallel.

Multi-instance deployments additionally rely on the ``SELECT … FOR
UPDATE`` row lock taken by the progress service.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class UserLockRegistry:
    """Lazily created ``threading.Lock`` per user id.

    Thread-safe.  Locks idle for longer than ``idle_ttl`` seconds are
    pruned at most once every ``cleanup_interval`` seconds.
    """

    def __init__(self, idle_ttl: float = 3600, cleanup_interval: float = 600) -> None:
        self._registry_lock = threading.Lock()
        # user_id → (lock, last-acquired timestamp)
        self._locks: dict[str, tuple[threading.Lock, float]] = {}
        self._idle_ttl = idle_ttl
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.monotonic()

    def _get(self, user_id: str) -> threading.Lock:
        now = time.monotonic()
        with self._registry_lock:
            self._maybe_cleanup(now)
            entry = self._locks.get(user_id)
            lock = entry[0] if entry else threading.Lock()
            self._locks[user_id] = (lock, now)
            return lock

    def _maybe_cleanup(self, now: float) -> None:
        """Drop idle, unheld locks.  Caller holds the registry lock."""
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        cutoff = now - self._idle_ttl
        to_delete = [
            uid
            for uid, (lock, last_used) in self._locks.items()
            if last_used <= cutoff and not lock.locked()
        ]
        for uid in to_delete:
            del self._locks[uid]
        if to_delete:
            logger.debug("Pruned %d idle user locks", len(to_delete))

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        """Hold *user_id*'s lock for the duration of the ``with`` block."""
        lock = self._get(user_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


# Module-level default instance (tests can inject their own)
_default_registry = UserLockRegistry()


def get_default_registry() -> UserLockRegistry:
    """Return the process-wide registry used in production."""
    return _default_registry
