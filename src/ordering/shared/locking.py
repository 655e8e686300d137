"""In-process keyed locks guarding carts, orders and payment registration.

``hold`` waits for the lock; ``try_hold`` refuses immediately with a
``Conflict`` when another request already holds it. A key's lock is
dropped from the registry as soon as nobody holds or waits on it.

Lock order: a customer's key is always taken before an order's key.
"""

import threading
from contextlib import contextmanager

from ordering.errors import Conflict


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    @contextmanager
    def _lock_for(self, key: str):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            yield entry.lock
        finally:
            with self._guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[key]

    @contextmanager
    def hold(self, key: str):
        with self._lock_for(key) as lock, lock:
            yield

    @contextmanager
    def try_hold(self, key: str, busy_message: str):
        with self._lock_for(key) as lock:
            if not lock.acquire(blocking=False):
                raise Conflict(busy_message)
            try:
                yield
            finally:
                lock.release()


def customer_key(customer_id) -> str:
    return f"customer:{customer_id}"


def order_key(order_id) -> str:
    return f"order:{order_id}"
