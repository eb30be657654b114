import threading
from contextlib import contextmanager
from typing import Iterator


class LockRegistry:
    """Registry of re-entrant locks keyed by string.

    Ledger operations key by user id, so award and spend calls for one user
    run one at a time while different users never contend. Task transitions
    additionally key by ``task:<id>``. Locks are re-entrant so a composite
    operation can hold a user's lock while calling back into the ledger.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _get(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        # sorted + deduplicated so two multi-key holders can't deadlock
        locks = [self._get(k) for k in sorted(set(keys))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()
