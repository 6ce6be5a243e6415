"""
Result stores for the query cache

Each store maps query text to one result shape. Stores are plain containers;
QueryCache owns them and provides all locking.
"""

import threading
import weakref
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set, Tuple

from .records import Record


class ResultStore:
    """
    Base store keyed by literal query text.

    Besides the entries it tracks a version token per key so a population that
    started before an invalidation can tell its result is stale. Per-key locks
    and versions only exist while a population for the key is live.
    """

    kind = "result"

    def __init__(self):
        self._entries: Dict[str, Any] = {}
        # Held by populating and waiting callers; dropped once nobody holds it
        self._key_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._key_versions: Dict[str, int] = {}
        self._epoch = 0

    def __contains__(self, query_key: str) -> bool:
        return query_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, query_key: str) -> Any:
        return self._entries[query_key]

    def put(self, query_key: str, value: Any) -> None:
        self._entries[query_key] = value

    def discard(self, query_key: str) -> bool:
        """Remove one entry. Returns True if it was present."""
        if query_key in self._key_locks:
            self._key_versions[query_key] = self._key_versions.get(query_key, 0) + 1
        if query_key not in self._entries:
            return False
        del self._entries[query_key]
        return True

    def clear(self) -> int:
        """Remove every entry. Returns how many were removed."""
        removed = len(self._entries)
        self._entries.clear()
        self._key_versions.clear()
        self._epoch += 1
        return removed

    def key_lock(self, query_key: str) -> threading.Lock:
        lock = self._key_locks.get(query_key)
        if lock is None:
            lock = threading.Lock()
            self._key_locks[query_key] = lock
        return lock

    def version(self, query_key: str) -> Tuple[int, int]:
        return (self._epoch, self._key_versions.get(query_key, 0))

    def settle(self, query_key: str) -> None:
        """Forget the key's version once its population has finished."""
        self._key_versions.pop(query_key, None)

    def tracked_keys(self) -> Set[str]:
        """Keys that currently hold per-key state (locks or versions)."""
        return set(self._key_locks.keys()) | set(self._key_versions)

    def build(self, records: Sequence[Record]) -> Any:
        raise NotImplementedError

    def copy_out(self, value: Any) -> Any:
        raise NotImplementedError

    def empty(self) -> Any:
        raise NotImplementedError


class RecordMapStore(ResultStore):
    """Identifier -> record mappings per query"""

    kind = "map"

    def __init__(self, id_field: str):
        super().__init__()
        self.id_field = id_field

    def build(self, records: Sequence[Record]) -> Dict[Hashable, Record]:
        """
        Index records by identifier; the last record wins for a repeated id.

        Raises:
            ValueError: If a record has no identifier
        """
        mapping: Dict[Hashable, Record] = {}
        for position, record in enumerate(records):
            identifier: Optional[Hashable] = record.get(self.id_field)
            if identifier is None:
                raise ValueError(
                    f"Record at position {position} has no '{self.id_field}' value; "
                    f"select the identifier column to fetch results as a map"
                )
            mapping[identifier] = record
        return mapping

    def copy_out(self, value: Dict[Hashable, Record]) -> Dict[Hashable, Record]:
        return dict(value)

    def empty(self) -> Dict[Hashable, Record]:
        return {}


class RecordListStore(ResultStore):
    """Ordered record lists per query"""

    kind = "list"

    def build(self, records: Sequence[Record]) -> List[Record]:
        return list(records)

    def copy_out(self, value: List[Record]) -> List[Record]:
        return list(value)

    def empty(self) -> List[Record]:
        return []
