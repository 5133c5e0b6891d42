"""Backward compatibility checks against a comparison document."""

import logging
from typing import Any

from oaslint.comparison import ComparisonSource
from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import PositionLocator
from oaslint.parser.traverse import HTTP_METHODS
from oaslint.validation.checks._common import as_lower_strings
from oaslint.validation.registry import check

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"


def _json_schema(holder: Any) -> Any:
    content = holder.get("content") if isinstance(holder, dict) else None
    media = content.get(JSON_MEDIA_TYPE) if isinstance(content, dict) else None
    return media.get("schema") if isinstance(media, dict) else None


def _property_names(document: SpecDocument, schema: Any) -> list[str] | None:
    """Property names reachable from ``schema`` in traversal order, ``None`` without a schema."""
    if schema is None or not isinstance(document.resolve(schema), dict):
        return None
    names: list[str] = []

    def visit(name: str, _schema: Any) -> None:
        if name not in names:
            names.append(name)

    document.resolver.walk_schema(schema, visit)
    return names


def _deleted_api(current: SpecDocument, baseline: SpecDocument, rule: RuleDefinition,
                 locator: PositionLocator) -> list[Finding]:
    methods = as_lower_strings(rule.params.get("methods")) or list(HTTP_METHODS)
    findings: list[Finding] = []
    for path, baseline_item in baseline.paths.items():
        current_item = current.paths.get(path)
        if not isinstance(current_item, dict):
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" was deleted in the new spec.',
            ))
            continue
        if not isinstance(baseline_item, dict):
            continue
        for method in methods:
            if baseline_item.get(method) and not current_item.get(method):
                findings.append(rule.finding(
                    locator.path_key_range(path),
                    f'{method.upper()} method at path "{path}" was deleted in the new spec.',
                ))
    return findings


def _deleted_properties(current: SpecDocument, baseline: SpecDocument, rule: RuleDefinition,
                        locator: PositionLocator) -> list[Finding]:
    elements = rule.elements
    if not elements:
        return []

    findings: list[Finding] = []
    for path, baseline_item in baseline.paths.items():
        current_item = current.paths.get(path)
        if not isinstance(baseline_item, dict) or not isinstance(current_item, dict):
            continue

        for method, baseline_operation in baseline_item.items():
            current_operation = current_item.get(method)
            if method not in HTTP_METHODS or not isinstance(baseline_operation, dict) \
                    or not isinstance(current_operation, dict):
                continue

            if "requestBody" in elements:
                old = _property_names(baseline, _json_schema(baseline.resolve(baseline_operation.get("requestBody"))))
                new = _property_names(current, _json_schema(current.resolve(current_operation.get("requestBody"))))
                if old is not None and new is not None:
                    for name in old:
                        if name not in new:
                            findings.append(rule.finding(
                                locator.path_key_range(path),
                                f'Request body property "{name}" was deleted in method {method.upper()} at path "{path}".',
                            ))

            if "responses" in elements:
                baseline_responses = baseline_operation.get("responses")
                current_responses = current_operation.get("responses")
                if not isinstance(baseline_responses, dict):
                    continue
                if not isinstance(current_responses, dict):
                    current_responses = {}
                for code, baseline_response in baseline_responses.items():
                    old = _property_names(baseline, _json_schema(baseline.resolve(baseline_response)))
                    new = _property_names(current, _json_schema(current.resolve(current_responses.get(code))))
                    if old is None or new is None:
                        continue
                    for name in old:
                        if name not in new:
                            findings.append(rule.finding(
                                locator.path_key_range(path),
                                f'Response property "{name}" in code {code} was deleted in method '
                                f'{method.upper()} at path "{path}".',
                            ))
    return findings


COMPATIBILITY_MODES = {
    "deleted-api": _deleted_api,
    "deleted-properties": _deleted_properties,
}


@check("checkCompatibility", external=True)
async def check_compatibility(document: SpecDocument, raw: str, rule: RuleDefinition,
                              comparison: ComparisonSource | None = None) -> list[Finding]:
    """Report API elements present in the comparison document but removed here.

    ``mode`` selects what is compared: ``deleted-api`` (paths and methods)
    or ``deleted-properties`` (request/response properties, selected by
    ``rule.element``). Without a comparison document the rule does not apply.
    """
    mode = str(rule.params.get("mode", "")).lower()
    compare = COMPATIBILITY_MODES.get(mode)
    if compare is None:
        logger.debug(f"Rule {rule.id}: unsupported compatibility mode {mode!r}")
        return []
    if comparison is None:
        return []

    baseline = await comparison.fetch(document)
    if baseline is None:
        logger.debug(f"Rule {rule.id}: no comparison document available")
        return []
    return compare(document, baseline, rule, PositionLocator(raw))
