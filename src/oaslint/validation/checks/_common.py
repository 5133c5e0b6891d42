"""Parameter helpers shared by checks."""

import logging
import re
from typing import Any

from oaslint.models.rule import RuleDefinition

logger = logging.getLogger(__name__)


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def as_lower_strings(value: Any) -> list[str]:
    return [str(item).strip().lower() for item in as_list(value) if str(item).strip()]


def compile_patterns(patterns: Any, rule: RuleDefinition) -> list[re.Pattern]:
    """Compile regex parameters, skipping (and logging) invalid ones."""
    compiled = []
    for pattern in as_list(patterns):
        try:
            compiled.append(re.compile(str(pattern)))
        except re.error as e:
            logger.warning(f"Invalid pattern {pattern!r} in rule {rule.id}: {e}")
    return compiled


def safe_pattern(pattern: Any) -> re.Pattern | None:
    """Compile a single optional pattern; ``None`` when missing or invalid."""
    if not pattern:
        return None
    try:
        return re.compile(str(pattern))
    except re.error:
        return None
