"""
Transaction-scoped query result cache

QueryCache runs each distinct query text at most once and serves repeats from
memory, in two independent shapes:

1. fetch_objects(): identifier -> record mapping
2. get_list_of_records(): ordered record list

Invalidation is manual only (invalidate_map, invalidate_list, clear_cache).
Returned containers are shallow copies; the records inside are shared and
must be treated as read-only.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional

from recall_utils.config import config
from .query_executor import QueryExecutor
from .records import Record
from .stores import RecordListStore, RecordMapStore, ResultStore

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """
    Cache statistics.

    Attributes:
        hits: Lookups served from a store
        misses: Lookups that had to populate a store
        executions: Calls made to the executor
        invalidations: Entries removed by invalidate_map/invalidate_list
        map_entries: Keys currently in the map store
        list_entries: Keys currently in the list store
    """

    hits: int = 0
    misses: int = 0
    executions: int = 0
    invalidations: int = 0
    map_entries: int = 0
    list_entries: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 2),
            "executions": self.executions,
            "invalidations": self.invalidations,
            "map_entries": self.map_entries,
            "list_entries": self.list_entries,
        }


class QueryCache:
    """
    Fetch-or-populate cache keyed by literal query text.

    Thread-safe: concurrent misses on the same key execute the query once.
    The executor is never called while the cache-wide lock is held.
    """

    def __init__(self, executor: QueryExecutor, id_field: Optional[str] = None):
        """
        Args:
            executor: Data-access collaborator that runs query text
            id_field: Identifier column for map results (config "id_field" by default)
        """
        self.executor = executor
        self.id_field = id_field or config.get("id_field", "Id")
        self._lock = threading.RLock()
        self._maps = RecordMapStore(self.id_field)
        self._lists = RecordListStore()
        self._stats = CacheStats()

    def fetch_objects(self, query_key: str) -> Dict[Hashable, Record]:
        """
        Return the query's records indexed by identifier.

        Executes the query only if this key is not cached yet.

        Raises:
            ValueError: If a returned record has no identifier
            Exception: Whatever the executor raises, unchanged
        """
        return self._fetch(self._maps, query_key)

    def get_list_of_records(self, query_key: str) -> List[Record]:
        """
        Return the query's records in executor order, duplicates included.

        Executes the query only if this key is not cached yet.
        """
        return self._fetch(self._lists, query_key)

    def has_objects(self, query_key: str) -> bool:
        with self._lock:
            return query_key in self._maps

    def has_list(self, query_key: str) -> bool:
        with self._lock:
            return query_key in self._lists

    def invalidate_map(self, query_key: str) -> None:
        """Drop the cached mapping for one key, if any."""
        self._invalidate(self._maps, query_key)

    def invalidate_list(self, query_key: str) -> None:
        """Drop the cached list for one key, if any."""
        self._invalidate(self._lists, query_key)

    def clear_cache(self) -> None:
        """Empty both stores and reset statistics."""
        with self._lock:
            removed = self._maps.clear() + self._lists.clear()
            self._stats = CacheStats()
        logger.debug("Query cache cleared (%d entries)", removed)

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            self._stats.map_entries = len(self._maps)
            self._stats.list_entries = len(self._lists)
            return CacheStats(**vars(self._stats))

    def __len__(self) -> int:
        with self._lock:
            return len(self._maps) + len(self._lists)

    def _fetch(self, store: ResultStore, query_key: str) -> Any:
        with self._lock:
            if query_key in store:
                self._stats.hits += 1
                logger.debug("Cache hit (%s): %s", store.kind, query_key)
                return store.copy_out(store.get(query_key))
            key_lock = store.key_lock(query_key)

        with key_lock:
            with self._lock:
                # Another thread may have populated while we waited
                if query_key in store:
                    self._stats.hits += 1
                    return store.copy_out(store.get(query_key))
                self._stats.misses += 1
                self._stats.executions += 1
                version = store.version(query_key)

            try:
                logger.debug("Cache miss (%s): %s", store.kind, query_key)
                records = self.executor.execute(query_key)

                if records is None:
                    # Never cached: absence is the only miss signal
                    logger.debug("Executor returned no result for: %s", query_key)
                    return store.empty()

                value = store.build(records)

                with self._lock:
                    if store.version(query_key) == version:
                        store.put(query_key, value)
                    else:
                        logger.debug("Invalidated during population, not stored: %s", query_key)

                return store.copy_out(value)
            finally:
                with self._lock:
                    store.settle(query_key)

    def _invalidate(self, store: ResultStore, query_key: str) -> None:
        with self._lock:
            if store.discard(query_key):
                self._stats.invalidations += 1
                logger.debug("Invalidated (%s): %s", store.kind, query_key)

    def tracked_key_count(self) -> int:
        """Number of keys holding per-key population state in either store."""
        with self._lock:
            return len(self._maps.tracked_keys()) + len(self._lists.tracked_keys())
