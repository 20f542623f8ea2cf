"""
lifecycle/engine/locks.py

Per-reservation mutexes.

Transitions on the same reservation are serialized; different reservations
never contend. Locks are reference counted and dropped once nobody holds or
waits on them, so the registry does not grow with the reservation table.
"""
from contextlib import contextmanager
from typing import Dict, Iterator
import threading
import logging

logger = logging.getLogger(__name__)


class LockTimeout(Exception):
    """Lock acquisition timed out"""

    def __init__(self, reservation_id: int, timeout: float):
        self.reservation_id = reservation_id
        self.timeout = timeout
        super().__init__(f"Could not lock reservation {reservation_id} within {timeout}s")


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self):
        self.lock = threading.Lock()
        self.refs = 0


class ReservationLockRegistry:
    """
    Registry of per-reservation locks with acquisition timeout.

    Example:
        >>> locks = ReservationLockRegistry(timeout=5.0)
        >>> with locks.hold(42):
        ...     ...  # read, validate, write
    """

    def __init__(self, timeout: float = 5.0):
        self._timeout = timeout
        self._entries: Dict[int, _Entry] = {}
        self._guard = threading.Lock()

    @property
    def timeout(self) -> float:
        return self._timeout

    def _checkout(self, reservation_id: int) -> _Entry:
        with self._guard:
            entry = self._entries.get(reservation_id)
            if entry is None:
                entry = self._entries[reservation_id] = _Entry()
            entry.refs += 1
            return entry

    def _release_ref(self, reservation_id: int, entry: _Entry) -> None:
        with self._guard:
            entry.refs -= 1
            if entry.refs == 0:
                self._entries.pop(reservation_id, None)

    @contextmanager
    def hold(self, reservation_id: int, timeout: float = None) -> Iterator[None]:
        """
        Hold the reservation's lock for the duration of the block.

        Raises:
            LockTimeout: If the lock is not acquired within the timeout.
        """
        wait = self._timeout if timeout is None else timeout
        entry = self._checkout(reservation_id)
        try:
            if not entry.lock.acquire(timeout=wait):
                logger.warning(f"Lock timeout on reservation {reservation_id} after {wait}s")
                raise LockTimeout(reservation_id, wait)
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._release_ref(reservation_id, entry)

    def active_count(self) -> int:
        """Number of reservations currently held or waited on."""
        with self._guard:
            return len(self._entries)


__all__ = ["LockTimeout", "ReservationLockRegistry"]
