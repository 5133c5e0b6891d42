"""Rule execution: the check registry and the dispatcher running it."""

from oaslint.validation.framework import (
    LintResult,
    RuleDispatcher,
    RunPhase,
    ValidationStatus,
    deduplicate,
)
from oaslint.validation.registry import CheckRegistry, RegisteredCheck, check, get_default_registry

__all__ = [
    "CheckRegistry",
    "LintResult",
    "RegisteredCheck",
    "RuleDispatcher",
    "RunPhase",
    "ValidationStatus",
    "check",
    "deduplicate",
    "get_default_registry",
]
