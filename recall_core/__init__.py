"""
Transaction-scoped query result cache on DuckDB
"""

from .cache import QueryCache, CacheStats
from .engine import RecallEngine, get_engine
from .query_executor import QueryExecutor, DuckDBExecutor
from .transaction import Transaction, transaction, current_transaction, current_cache

__all__ = [
    'QueryCache', 'CacheStats', 'RecallEngine', 'get_engine',
    'QueryExecutor', 'DuckDBExecutor',
    'Transaction', 'transaction', 'current_transaction', 'current_cache',
]
