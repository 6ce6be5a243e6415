"""
Transaction scope for the query cache

A Transaction owns one QueryCache for one logical unit of work (a request, a
job run). The cache is created on first use and discarded when the scope
ends. Inside a ``with`` block the active transaction is reachable through
current_cache(), resolved per context (thread or asyncio task).
"""

import logging
from contextvars import ContextVar, Token
from typing import Optional

from .cache import QueryCache
from .query_executor import QueryExecutor

logger = logging.getLogger(__name__)

_active: ContextVar[Optional["Transaction"]] = ContextVar("recall_transaction", default=None)


class Transaction:
    """One unit of work and its query cache"""

    def __init__(self, executor: QueryExecutor, id_field: Optional[str] = None):
        self.executor = executor
        self.id_field = id_field
        self.closed = False
        self._cache: Optional[QueryCache] = None
        self._token: Optional[Token] = None

    @property
    def cache(self) -> QueryCache:
        """The transaction's cache, created on first access."""
        if self.closed:
            raise RuntimeError("Transaction is closed")
        if self._cache is None:
            self._cache = QueryCache(self.executor, id_field=self.id_field)
        return self._cache

    def close(self) -> None:
        """Discard the cache. Safe to call more than once."""
        if self._cache is not None:
            logger.debug("Discarding transaction cache: %s", self._cache.stats.to_dict())
            self._cache.clear_cache()
            self._cache = None
        self.closed = True

    def __enter__(self) -> "Transaction":
        self._token = _active.set(self)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _active.reset(self._token)
            self._token = None
        self.close()


def transaction(executor: QueryExecutor, id_field: Optional[str] = None) -> Transaction:
    """Start a transaction scope; use as ``with transaction(executor) as txn:``."""
    return Transaction(executor, id_field=id_field)


def current_transaction() -> Transaction:
    """
    The transaction active in this context.

    Raises:
        RuntimeError: If called outside a transaction block
    """
    txn = _active.get()
    if txn is None:
        raise RuntimeError("No active transaction; wrap the work in `with transaction(...)`")
    return txn


def current_cache() -> QueryCache:
    """The query cache of the active transaction."""
    return current_transaction().cache
