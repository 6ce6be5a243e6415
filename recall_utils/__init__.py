"""
Shared utilities: configuration, IN-list building, access checks, errors
"""

from .config import Config, config, bootstrap_logging
from .sql_utils import (
    Identifiers,
    Strings,
    build_in_clause,
    build_id_in_clause,
    build_string_in_clause,
    build_in_clause_for,
    escape_literal,
)

__all__ = [
    'Config', 'config', 'bootstrap_logging',
    'Identifiers', 'Strings', 'build_in_clause', 'build_id_in_clause',
    'build_string_in_clause', 'build_in_clause_for', 'escape_literal',
]
