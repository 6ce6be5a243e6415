"""
Shared pytest fixtures for Recall tests.

Provides:
- A DuckDB-backed engine seeded with an accounts table
- A mock executor with canned results for counting executions
"""

from typing import Generator
from unittest.mock import Mock

import pandas as pd
import pytest

from recall_core.engine import RecallEngine
from recall_utils.config import config


ACCOUNTS = pd.DataFrame({
    "Id": ["1", "2", "3", "4"],
    "Name": ["Acme", "Globex", "Initech", "Umbrella"],
    "Industry": ["Retail", "Energy", "Software", "Retail"],
})

CANNED_RESULTS = {
    "SELECT Id, Name FROM accounts": [
        {"Id": "1", "Name": "Acme"},
        {"Id": "2", "Name": "Globex"},
    ],
    "SELECT Name FROM accounts ORDER BY Name": [
        {"Name": "Acme"},
        {"Name": "Acme"},
        {"Name": "Globex"},
    ],
    "SELECT Id FROM empty_table": [],
}


@pytest.fixture
def engine() -> Generator[RecallEngine, None, None]:
    """Engine with an `accounts` table registered"""
    eng = RecallEngine()
    eng.register_records("accounts", ACCOUNTS)
    yield eng
    eng.close()


@pytest.fixture
def mock_executor() -> Mock:
    """Executor returning CANNED_RESULTS; unknown queries raise KeyError"""
    executor = Mock()
    executor.execute.side_effect = lambda query_text: [dict(r) for r in CANNED_RESULTS[query_text]]
    return executor


@pytest.fixture
def restore_config():
    """Restore global config values changed by a test"""
    saved = config.to_dict()
    yield config
    config.update(saved)
