"""Per-account single-writer locks."""

import threading
from contextlib import contextmanager
from typing import Iterator

from ledgerbook.config import DEFAULT_LOCK_TIMEOUT
from ledgerbook.domain.errors import ConcurrentModification
from ledgerbook.logging_config import get_logger

logger = get_logger("domain.locks")


class AccountLockManager:
    """Hands out one exclusive lock per account ID.

    Writers on different accounts never contend; writers on the same account
    are serialized.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.timeout = timeout
        self._registry_lock = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, account_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def hold(self, account_id: int) -> Iterator[None]:
        """Hold the account's writer lock for the duration of the block.

        Raises:
            ConcurrentModification: If the lock is not acquired within the timeout
        """
        lock = self._lock_for(account_id)
        if not lock.acquire(timeout=self.timeout):
            logger.warning(
                "lock_timeout", extra={"account_id": account_id, "timeout": self.timeout}
            )
            raise ConcurrentModification(account_id, self.timeout)
        try:
            yield
        finally:
            lock.release()

    def forget(self, account_id: int) -> None:
        """Drop the lock of a deleted account."""
        with self._registry_lock:
            self._locks.pop(account_id, None)
