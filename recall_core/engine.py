"""
Recall Core Engine

Public API facade: one DuckDB connection, an executor bound to it, a table
registry, and transaction scopes whose caches run queries through that
executor.

Heavy lifting is delegated to:
- connection.py: DuckDB connection and configuration
- query_executor.py: query execution
- cache.py / transaction.py: per-transaction memoization
"""

import logging
import pandas as pd
from typing import Any, Dict, Iterable, Mapping, Optional, Union
from pathlib import Path
from recall_utils.config import config, bootstrap_logging

from .connection import create_connection
from .query_executor import DuckDBExecutor
from .transaction import Transaction

logger = logging.getLogger(__name__)


class RecallEngine:
    """
    DuckDB-backed data source for transaction-scoped query caches.
    """

    def __init__(self, memory_limit: Optional[str] = None):
        """Initialize the engine with DuckDB"""
        bootstrap_logging()

        self.conn = create_connection(memory_limit)
        self.executor = DuckDBExecutor(self.conn)

        # Table registry (table_name -> source description)
        self.tables: Dict[str, str] = {}

    def register_records(
        self,
        table_name: str,
        data: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    ) -> int:
        """
        Make in-memory data queryable as a table.

        Args:
            table_name: Name to query the data by
            data: DataFrame or iterable of row mappings

        Returns:
            Number of rows registered
        """
        df = data if isinstance(data, pd.DataFrame) else pd.DataFrame(list(data))
        self.conn.register(table_name, df)
        self.tables[table_name] = "<memory>"
        logger.info(f"Registered table '{table_name}' ({len(df)} rows)")
        return len(df)

    def load_csv(self, file_path: Union[str, Path], table_name: str) -> int:
        """
        Load a CSV file as a table, text-first (every column as VARCHAR).

        Returns:
            Number of rows loaded

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no rows or columns
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        df = pd.read_csv(
            file_path,
            encoding=config.get("csv_encoding", "utf-8"),
            dtype=str,
            keep_default_na=False,
        )
        if df.shape[1] == 0 or df.shape[0] == 0:
            raise ValueError(f"The CSV file appears to be empty (no rows/columns): {file_path}")

        self.conn.register(table_name, df)
        self.tables[table_name] = str(file_path)
        logger.info(f"Loaded '{file_path.name}' as '{table_name}' ({len(df)} rows)")
        return len(df)

    def transaction(self, id_field: Optional[str] = None) -> Transaction:
        """Start a transaction whose cache queries this engine."""
        return Transaction(self.executor, id_field=id_field)

    def close(self):
        """Close the DuckDB connection"""
        self.conn.close()


# Singleton instance for easy access
_engine_instance: Optional[RecallEngine] = None


def get_engine() -> RecallEngine:
    """Get or create the singleton engine instance"""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = RecallEngine()
    return _engine_instance
