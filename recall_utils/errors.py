"""
Error classification for query and access failures

Classification is for display and routing only; the original exception is
always the one that propagates.
"""

import logging
from enum import Enum
from typing import Any, Dict

import duckdb

from .access import AccessDeniedError

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    """Standard error types"""
    QUERY_SYNTAX = "query_syntax"
    MISSING_OBJECT = "missing_object"
    TYPE_MISMATCH = "type_mismatch"
    ACCESS_DENIED = "access_denied"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    INTERNAL_ERROR = "internal_error"


TIPS = {
    ErrorType.QUERY_SYNTAX: "Check for missing commas, parentheses, or typos in SQL keywords.",
    ErrorType.MISSING_OBJECT: "Check table and column names. Use double quotes for names with spaces.",
    ErrorType.TYPE_MISMATCH: "Use CAST() to convert between types, e.g., CAST(column AS VARCHAR)",
    ErrorType.ACCESS_DENIED: "Ask an administrator for access to this object or field.",
    ErrorType.BACKEND_UNAVAILABLE: "The database connection is closed or unavailable; retry the transaction.",
    ErrorType.INTERNAL_ERROR: "",
}


class ErrorHandler:
    """Centralized error classification"""

    @staticmethod
    def classify(error: BaseException) -> ErrorType:
        """Map an exception to an ErrorType"""
        if isinstance(error, AccessDeniedError):
            return ErrorType.ACCESS_DENIED
        if isinstance(error, duckdb.ParserException):
            return ErrorType.QUERY_SYNTAX
        if isinstance(error, (duckdb.CatalogException, duckdb.BinderException)):
            return ErrorType.MISSING_OBJECT
        if isinstance(error, duckdb.ConversionException):
            return ErrorType.TYPE_MISMATCH
        if isinstance(error, (duckdb.ConnectionException, duckdb.IOException)):
            return ErrorType.BACKEND_UNAVAILABLE

        # Fall back to message sniffing for wrapped or foreign errors
        error_str = str(error)
        lowered = error_str.lower()
        if "Parser Error" in error_str or "syntax error" in lowered:
            return ErrorType.QUERY_SYNTAX
        if "Catalog Error" in error_str or "Binder Error" in error_str:
            return ErrorType.MISSING_OBJECT
        if "Conversion Error" in error_str or "could not convert" in lowered:
            return ErrorType.TYPE_MISMATCH
        if "connection" in lowered and ("closed" in lowered or "refused" in lowered):
            return ErrorType.BACKEND_UNAVAILABLE
        return ErrorType.INTERNAL_ERROR

    @staticmethod
    def describe(error: BaseException) -> Dict[str, Any]:
        """Summarize an exception for display"""
        error_type = ErrorHandler.classify(error)
        details: Dict[str, Any] = {"exception": type(error).__name__}
        if isinstance(error, AccessDeniedError):
            details.update(
                operation=error.operation.value,
                object_type=error.object_type,
                field=error.field,
            )
        return {
            "error": str(error),
            "type": error_type.value,
            "tip": TIPS[error_type],
            "details": details,
        }
