"""Checks over the set of operations each path exposes."""

import logging
import re
from typing import Any

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import Fallback, PositionLocator
from oaslint.parser.traverse import PATH_ITEM_FIELDS, iter_operations, iter_path_items
from oaslint.validation.checks._common import as_list, as_lower_strings, compile_patterns
from oaslint.validation.registry import check

logger = logging.getLogger(__name__)

_SUCCESS_CODE = re.compile(r"^2\d{2}$")


@check("checkAllowedMethods")
def check_allowed_methods(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Path item keys must be allowed methods (or non-operation path item fields)."""
    allowed = as_lower_strings(rule.params.get("methods"))
    if not allowed:
        return []

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, path_item in iter_path_items(document):
        for key in path_item:
            if key in PATH_ITEM_FIELDS or key.lower() in allowed:
                continue
            findings.append(rule.finding(locator.method_range(path, key)))
    return findings


@check("checkCRUD")
def check_crud(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Paths with a create method must expose the required companion methods."""
    create_methods = as_lower_strings(rule.params.get("createMethod", ["post"]))
    required = as_lower_strings(rule.params.get("requiredMethods", ["get", "put", "delete"]))
    optional = as_lower_strings(rule.params.get("optionalMethods"))
    exceptions = [str(p) for p in as_list(rule.params.get("exceptionPaths"))]

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, path_item in iter_path_items(document):
        if _is_exception_path(path, exceptions):
            continue

        methods = {key.strip().lower() for key in path_item}
        if not any(method in methods for method in create_methods):
            continue

        missing = [m for m in required if m not in methods and m not in optional]
        if missing:
            findings.append(rule.finding(
                locator.path_key_range(path, fallback=Fallback.WHOLE_DOCUMENT),
                f"{rule.message} Missing: {', '.join(m.upper() for m in missing)}",
            ))
    return findings


def _is_exception_path(path: str, exceptions: list[str]) -> bool:
    for exception in exceptions:
        if exception.endswith("*"):
            if path.startswith(exception[:-1]):
                return True
        elif path == exception:
            return True
    return False


@check("checkSuccessResponse")
def check_success_response(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Selected operations must declare every required status code."""
    methods = as_lower_strings(rule.params.get("method", "get"))
    codes = [str(code) for code in as_list(rule.params.get("requiredStatusCode", "200"))]

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, methods):
        responses = operation.operation.get("responses")
        if not isinstance(responses, dict):
            responses = {}
        missing = [code for code in codes if code not in responses]
        if missing:
            findings.append(rule.finding(
                locator.method_range(operation.path, operation.method),
                f"{rule.message} Missing: {', '.join(missing)}",
            ))
    return findings


@check("checkGetIdempotency")
def check_get_idempotency(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """GET must not target action-like paths or carry a request body."""
    keywords = as_lower_strings(rule.params.get("disallowedPathKeywords"))
    disallow_body = rule.params.get("disallowRequestBody") is True

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, ["get"]):
        path = operation.path.lower()
        has_keyword = any(keyword in path for keyword in keywords)
        has_body = disallow_body and "requestBody" in operation.operation
        if has_keyword or has_body:
            findings.append(rule.finding(locator.method_range(operation.path, operation.method)))
    return findings


@check("checkGetReturnObject")
def check_get_return_object(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """2xx response schemas of matching paths must have ``requiredResponseType``.

    With ``allowObjectWithPluralField``, an object schema passes when one of
    its required fields looks like a collection (ends in ``s``).
    """
    method = str(rule.params.get("method", "get")).lower()
    expected_type = rule.params.get("requiredResponseType")
    required_patterns = compile_patterns(rule.params.get("requiredPathRegexp"), rule)
    exception_patterns = compile_patterns(rule.params.get("exceptionPathRegexp"), rule)
    allow_plural_field = rule.params.get("allowObjectWithPluralField") is True

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, [method]):
        if any(p.search(operation.path) for p in exception_patterns):
            continue
        if not any(p.search(operation.path) for p in required_patterns):
            continue

        responses = operation.operation.get("responses")
        if not isinstance(responses, dict):
            continue

        for status_code, response in responses.items():
            if not _SUCCESS_CODE.match(str(status_code)):
                continue
            response = document.resolve(response)
            content = response.get("content") if isinstance(response, dict) else None
            if not isinstance(content, dict):
                continue
            for media in content.values():
                schema = document.resolve(media.get("schema")) if isinstance(media, dict) else None
                if _has_wrong_type(document, schema, expected_type, allow_plural_field):
                    findings.append(rule.finding(locator.method_range(operation.path, operation.method)))
    return findings


def _has_wrong_type(document: SpecDocument, schema: Any, expected_type: Any, allow_plural_field: bool) -> bool:
    if isinstance(schema, dict):
        variants = schema.get("oneOf") or schema.get("anyOf")
        if isinstance(variants, list):
            for variant in variants:
                resolved = document.resolve(variant)
                if not isinstance(resolved, dict) or resolved.get("type") != expected_type:
                    return True
            return False

    if isinstance(schema, dict) and schema.get("type") == expected_type:
        return False
    if allow_plural_field and isinstance(schema, dict) and schema.get("type") == "object":
        required = schema.get("required")
        if isinstance(required, list) and any(str(field).endswith("s") for field in required):
            return False
    return True


@check("checkQuotaApiPresence")
def check_quota_api_presence(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """At least one quota path must expose ``method``.

    ``pathPattern`` is a path suffix (default ``/quotas``) or, written as
    ``/regex/``, a regular expression searched in each path.
    """
    if "paths" not in document.root:
        return []

    pattern = rule.params.get("pathPattern")
    pattern = pattern.strip() if isinstance(pattern, str) else "/quotas"
    method = str(rule.params.get("method", "get")).lower()
    matches = _quota_matcher(pattern, rule)

    for path, path_item in iter_path_items(document):
        if matches(path) and path_item.get(method):
            return []

    locator = PositionLocator(raw)
    return [rule.finding(locator.paths_keyword_range())]


def _quota_matcher(pattern: str, rule: RuleDefinition):
    if len(pattern) > 2 and pattern.startswith("/") and pattern.endswith("/"):
        try:
            regex = re.compile(pattern[1:-1])
            return lambda path: regex.search(path) is not None
        except re.error as e:
            logger.warning(f"Invalid pathPattern in rule {rule.id}: {e}")

    suffix = pattern[:-1] if pattern.endswith("/") else pattern

    def matches(path: str) -> bool:
        trimmed = path[:-1] if path.endswith("/") else path
        return trimmed == suffix or trimmed.endswith(suffix)
    return matches
