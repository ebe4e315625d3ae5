"""Query cache keyed by entity type and filter parameters."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Any, Callable, Mapping, Optional

QueryKey = tuple[str, tuple[tuple[str, str], ...]]

DEFAULT_MAX_ENTRIES = 256


def make_query_key(entity: str, params: Optional[Mapping[str, Any]] = None) -> QueryKey:
    """Build an order-independent key such as ("readings", (("brew_id", "b1"),))."""
    items = tuple(sorted((str(name), str(value)) for name, value in (params or {}).items() if value is not None))
    return entity, items


@dataclass(slots=True)
class CacheEntry:
    data: Any
    etag: Optional[str]
    fetched_at: float


class QueryCache:
    """Holds the last payload per query; entries go stale after `ttl_seconds`.

    Stale entries with an ETag are kept so the client can revalidate them.
    Stale entries without one can never be reused and are dropped on the next
    store. At most `max_entries` are held; the oldest fetch is evicted first.
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._max_entries = max(int(max_entries), 1)
        self._entries: dict[QueryKey, CacheEntry] = {}

    def get(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.fetched_at) < self._ttl_seconds

    def store(self, key: QueryKey, data: Any, etag: Optional[str]) -> None:
        self._entries.pop(key, None)
        self._prune()
        self._entries[key] = CacheEntry(data=data, etag=etag, fetched_at=self._clock())

    def touch(self, key: QueryKey) -> None:
        entry = self._entries.get(key)
        if entry:
            entry.fetched_at = self._clock()

    def invalidate(self, entity: Optional[str] = None) -> int:
        """Drop every entry for `entity` (or everything); returns the count removed."""
        if entity is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed

        stale = [key for key in self._entries if key[0] == entity]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def _prune(self) -> None:
        dead = [key for key, entry in self._entries.items() if entry.etag is None and not self.is_fresh(entry)]
        for key in dead:
            del self._entries[key]

        overflow = len(self._entries) - self._max_entries + 1
        if overflow > 0:
            oldest = sorted(self._entries, key=lambda key: self._entries[key].fetched_at)[:overflow]
            for key in oldest:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
