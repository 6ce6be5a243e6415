"""
DuckDB Connection Management

Handles DuckDB connection creation and configuration.
"""
import os
import logging
import duckdb
from typing import Optional
from recall_utils.config import config

logger = logging.getLogger(__name__)


def create_connection(memory_limit: Optional[str] = None) -> duckdb.DuckDBPyConnection:
    """
    Create and configure an in-memory DuckDB connection.

    Args:
        memory_limit: Memory limit string (e.g., "1024MB"), or None to use config default

    Returns:
        Configured DuckDB connection
    """
    conn = duckdb.connect(":memory:")

    configure_memory_limit(conn, memory_limit)
    configure_temp_directory(conn)

    logger.info(
        "DuckDB configured • memory=%s temp_dir=%s",
        memory_limit or f"{config.get('memory_limit_mb')}MB",
        _temp_dir() or "default",
    )

    return conn


def _temp_dir() -> Optional[str]:
    return os.getenv("RECALL_TEMP_DIR") or config.get("temp_dir")


def configure_memory_limit(conn: duckdb.DuckDBPyConnection, memory_limit: Optional[str] = None) -> None:
    """
    Configure DuckDB memory limit.

    Args:
        conn: DuckDB connection
        memory_limit: Memory limit string or None for default
    """
    mem = memory_limit
    if not mem:
        mb = int(config.get("memory_limit_mb", 1024))
        mem = f"{mb}MB"
    try:
        conn.execute(f"SET memory_limit='{mem}'")
    except duckdb.Error as e:
        logger.debug(f"Could not set memory limit: {e}")


def configure_temp_directory(conn: duckdb.DuckDBPyConnection) -> None:
    """Point DuckDB spill files at the configured temp directory, if any."""
    tmp = _temp_dir()
    if not tmp:
        return
    try:
        conn.execute(f"SET temp_directory='{tmp}'")
    except duckdb.Error as e:
        logger.debug(f"Could not set temp_directory: {e}")
