"""
Session-scoped cache of identifiers observed during query execution.
"""

from __future__ import annotations

import threading
from typing import FrozenSet, Hashable, Iterable, Iterator


class SessionIdCache:
    """
    Thread-safe set of identifiers seen by one session/collection binding.

    Every successful read appends the ids of the objects it returns, and
    inserts append the id they wrote. Entries are never removed here: the
    cache answers "has this id been seen", it is not authoritative storage.

    Example:
        >>> cache = SessionIdCache()
        >>> cache.add(some_id)
        >>> some_id in cache
        True
    """

    def __init__(self, ids: Iterable[Hashable] = ()):
        self._ids = set(ids)
        self._lock = threading.Lock()

    def add(self, id: Hashable) -> None:
        """Record a single identifier."""
        with self._lock:
            self._ids.add(id)

    def add_many(self, ids: Iterable[Hashable]) -> None:
        """Record several identifiers under one lock acquisition."""
        ids = list(ids)
        with self._lock:
            self._ids.update(ids)

    def snapshot(self) -> FrozenSet[Hashable]:
        """Immutable copy of the current contents."""
        with self._lock:
            return frozenset(self._ids)

    def __contains__(self, id: Hashable) -> bool:
        with self._lock:
            return id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"SessionIdCache(size={len(self)})"
