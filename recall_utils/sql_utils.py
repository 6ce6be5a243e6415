"""
SQL literal helpers for building IN (...) predicate fragments
"""

import logging
from dataclasses import dataclass
from typing import Any, Collection, List, Optional, Union

logger = logging.getLogger(__name__)

EMPTY_IN_CLAUSE = "()"


@dataclass(frozen=True)
class Identifiers:
    """Record identifiers to render as an IN-list"""
    values: Collection[Any]


@dataclass(frozen=True)
class Strings:
    """Plain string values to render as an IN-list"""
    values: Collection[Any]


InClauseValues = Union[Identifiers, Strings]


def escape_literal(value: Any) -> str:
    """Escape a value for use inside a single-quoted SQL literal."""
    return str(value).replace("'", "''")


def _literals(values: Optional[Collection[Any]]) -> List[str]:
    """
    Quote and escape every non-blank element.

    Elements are sorted by their text so a given set always renders to the
    same fragment (and therefore the same cache key).
    """
    if not values:
        return []

    texts = []
    for value in values:
        if value is None:
            continue
        text = str(value)
        if not text.strip():
            continue
        texts.append(text)

    return [f"'{escape_literal(text)}'" for text in sorted(set(texts))]


def build_in_clause(
    identifiers: Optional[Collection[Any]] = None,
    strings: Optional[Collection[Any]] = None,
) -> str:
    """
    Build the literal list for an IN predicate, e.g. ``('A', 'B')``.

    ``identifiers`` takes precedence whenever it holds at least one non-blank
    element; ``strings`` is then ignored. Blank elements are skipped. When there is nothing to render
    the result is ``()``, which callers should read as "matches nothing".

    Never raises for malformed elements; quotes are doubled and no other
    sanitization is done.

    Args:
        identifiers: Record identifiers
        strings: Plain string values

    Returns:
        Parenthesized, comma-separated list of quoted literals
    """
    literals = _literals(identifiers)
    if literals and strings:
        logger.debug("Both identifiers and strings supplied; using identifiers")
    if not literals:
        literals = _literals(strings)
    if not literals:
        return EMPTY_IN_CLAUSE
    return "(" + ", ".join(literals) + ")"


def build_id_in_clause(identifiers: Optional[Collection[Any]]) -> str:
    """IN-list from record identifiers only."""
    return build_in_clause(identifiers=identifiers)


def build_string_in_clause(strings: Optional[Collection[Any]]) -> str:
    """IN-list from plain strings only."""
    return build_in_clause(strings=strings)


def build_in_clause_for(values: InClauseValues) -> str:
    """
    Build an IN-list from an explicitly tagged value set.

    Args:
        values: ``Identifiers(...)`` or ``Strings(...)``

    Returns:
        Parenthesized literal list

    Raises:
        TypeError: If values is not an Identifiers or Strings instance
    """
    if isinstance(values, Identifiers):
        return build_in_clause(identifiers=values.values)
    if isinstance(values, Strings):
        return build_in_clause(strings=values.values)
    raise TypeError(f"Expected Identifiers or Strings, got {type(values).__name__}")
