"""Per-key mutual exclusion."""

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """A table of locks, one per key, created on demand.

    Holding ``lock("k")`` excludes other holders of ``"k"`` only; different
    keys proceed in parallel. Entries are dropped once no thread holds or
    waits on them, so the table does not grow with the number of keys seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._guard:
            entry_lock, waiters = self._locks.get(key, (None, 0))
            if entry_lock is None:
                entry_lock = threading.Lock()
            self._locks[key] = (entry_lock, waiters + 1)

        entry_lock.acquire()
        try:
            yield
        finally:
            entry_lock.release()
            with self._guard:
                _, waiters = self._locks[key]
                if waiters == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (entry_lock, waiters - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
