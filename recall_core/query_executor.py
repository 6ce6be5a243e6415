"""
SQL Query Execution

The data-access collaborator used by the query cache. Executors take query
text and return records; failures propagate unchanged.
"""
import logging
import threading
import duckdb
import pandas as pd
from typing import Optional, Protocol, Sequence, runtime_checkable
from recall_utils.config import config
from .records import Record, frame_to_records

logger = logging.getLogger(__name__)


@runtime_checkable
class QueryExecutor(Protocol):
    """Anything that can run query text and return records"""

    def execute(self, query_text: str) -> Optional[Sequence[Record]]:
        ...


class DuckDBExecutor:
    """
    Executes query text on a DuckDB connection.

    No retries and no translation of errors: a duckdb.Error raised by the
    connection is logged and re-raised as is.

    A DuckDB connection holds a single pending result, so execute and fetch
    run under one lock per connection. Tables registered on the connection
    are connection-local and would not be visible from a separate cursor.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        self.conn = conn
        self.executions = 0
        self._lock = threading.Lock()

    def execute(self, query_text: str) -> Sequence[Record]:
        """
        Run a query and return its rows as records.

        Args:
            query_text: SQL query string

        Returns:
            Records in the order DuckDB returned them
        """
        with self._lock:
            start_time = pd.Timestamp.now()
            self.executions += 1

            try:
                df = self.conn.execute(query_text).fetchdf()
            except duckdb.Error as e:
                logger.error(f"Query execution failed: {e}")
                raise

            execution_time = (pd.Timestamp.now() - start_time).total_seconds() * 1000

        if execution_time > float(config.get("slow_query_ms", 500)):
            logger.warning("Slow query (%.1f ms): %s", execution_time, query_text)
        else:
            logger.debug("Query returned %d rows in %.1f ms", len(df), execution_time)

        return frame_to_records(df)
