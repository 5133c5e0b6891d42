"""Rule catalog loading.

Automatic rules live in ``<rules_dir>/<ruleset>/**/*.yaml`` files holding a
``rules:`` list; only rules whose ``status`` is ``implemented`` are loaded.
Manual checklist files use the same layout and are loaded unverified.
"""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import ValidationError

from oaslint.errors import CatalogError
from oaslint.models.rule import ManualRule, RuleDefinition

logger = logging.getLogger(__name__)

RULE_FILE_SUFFIXES = (".yaml", ".yml")
IMPLEMENTED_STATUS = "implemented"

T = TypeVar("T", RuleDefinition, ManualRule)


def safe_join(base: str | Path, segment: str) -> Path:
    """Join ``segment`` to ``base``, refusing results outside ``base``.

    Raises:
        CatalogError: If the joined path escapes ``base``
    """
    base_path = Path(base).resolve()
    joined = (base_path / (segment or "")).resolve()
    if joined != base_path and base_path not in joined.parents:
        raise CatalogError("Invalid path segment")
    return joined


def discover_rule_files(root: Path) -> list[Path]:
    """YAML files below ``root``, sorted for a stable catalog order."""
    return sorted(
        path for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() in RULE_FILE_SUFFIXES
    )


def _read_rule_records(path: Path) -> list[dict[str, Any]]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Skipping unreadable rule file {path}: {e}")
        return []

    records = data.get("rules") if isinstance(data, dict) else None
    if not isinstance(records, list):
        logger.debug(f"No rules list in {path}")
        return []
    return [record for record in records if isinstance(record, dict)]


def load_rules(rules_dir: str | Path, ruleset: str = "default") -> list[RuleDefinition]:
    """Load the implemented rules of ``ruleset``.

    Malformed records are skipped with a warning.

    Raises:
        CatalogError: If the ruleset name is unsafe or its folder does not exist
    """
    root = safe_join(rules_dir, ruleset)
    if not root.is_dir():
        raise CatalogError(f"Ruleset folder not found: {ruleset}")

    rules: list[RuleDefinition] = []
    for path in discover_rule_files(root):
        for record in _read_rule_records(path):
            if str(record.get("status") or "").lower() != IMPLEMENTED_STATUS:
                continue
            try:
                rules.append(RuleDefinition.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid rule {record.get('id')!r} in {path}: {e.error_count()} error(s)")

    logger.info(f"Loaded {len(rules)} rules from ruleset {ruleset}")
    return rules


def load_manual_rules(manual_dir: str | Path | None) -> list[ManualRule]:
    """Load manual checklist entries, all marked unverified."""
    if manual_dir is None:
        return []
    root = Path(manual_dir)
    if not root.is_dir():
        logger.debug(f"Manual checklist folder not found: {root}")
        return []

    rules: list[ManualRule] = []
    for path in discover_rule_files(root):
        for record in _read_rule_records(path):
            try:
                rules.append(ManualRule.model_validate({**record, "verified": False}))
            except ValidationError as e:
                logger.warning(f"Skipping invalid manual rule {record.get('id')!r} in {path}: {e.error_count()} error(s)")
    return rules


def filter_by_ids(rules: Sequence[T], ids: Iterable[str] | None) -> list[T]:
    """Rules whose id is in ``ids``, in catalog order; every rule when ``ids`` is empty."""
    wanted = {str(rule_id) for rule_id in ids or []}
    if not wanted:
        return list(rules)
    return [rule for rule in rules if rule.id in wanted]
