"""Run-scoped error collection for oaslint."""

from .error_collector import (
    ErrorCollector,
    ErrorContext,
    ErrorSeverity,
    RunError,
)

__all__ = [
    "ErrorCollector",
    "ErrorContext",
    "ErrorSeverity",
    "RunError",
]
