"""HTTP header checks."""

import logging

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import PositionLocator, ScanCursor
from oaslint.parser.traverse import collect_header_locations, iter_operations
from oaslint.validation.checks._common import as_list, safe_pattern
from oaslint.validation.registry import check

logger = logging.getLogger(__name__)

DEFAULT_STANDARD_HEADERS = ("accept", "authorization")


@check("checkCustomHeaders")
def check_custom_headers(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Custom (non-standard) request and response headers must match ``header_format``.

    An invalid or missing ``header_format`` disables the check.
    """
    pattern_text = rule.params.get("header_format")
    pattern = safe_pattern(pattern_text)
    if pattern is None:
        if pattern_text:
            logger.warning(f"Invalid header_format in rule {rule.id}: {pattern_text!r}")
        return []

    standard = set(DEFAULT_STANDARD_HEADERS)
    standard.update(h.lower() for h in as_list(rule.params.get("standard_headers")) if isinstance(h, str))

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    parameter_cursor = ScanCursor()
    response_cursor = ScanCursor()
    for header in collect_header_locations(document):
        if header.name.lower() in standard or pattern.search(header.name):
            continue

        # Request and response headers are scanned with separate cursors,
        # each in traversal order.
        if header.is_response_header:
            text_range, response_cursor = locator.next_key(header.name, response_cursor)
        else:
            text_range, parameter_cursor = locator.next_text(f"name: {header.name}", parameter_cursor)
            if text_range.is_empty:
                text_range, parameter_cursor = locator.next_text(f'"name": "{header.name}"', parameter_cursor)

        findings.append(rule.finding(
            text_range,
            f'{rule.message or "Invalid custom header format."} '
            f'Header "{header.name}" at {header.pointer} does not match {pattern_text}.',
        ))
    return findings


@check("checkResponseHeader")
def check_response_header(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Responses having ``ifPropertyExists`` must declare one of ``headers``."""
    trigger = rule.params.get("ifPropertyExists")
    trigger = trigger.strip() if isinstance(trigger, str) and trigger.strip() else "content"
    required = [str(h) for h in as_list(rule.params.get("headers")) if str(h)]
    if not required:
        return []
    required_lower = {h.lower() for h in required}

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    cursor = ScanCursor()
    for operation in iter_operations(document):
        responses = operation.operation.get("responses")
        if not isinstance(responses, dict):
            continue

        for status_code, response in responses.items():
            if not isinstance(response, dict):
                continue
            value = response.get(trigger)
            if not isinstance(value, dict) or not value:
                continue

            text_range, cursor = locator.next_status_code(str(status_code), cursor)
            headers = response.get("headers")
            names = headers.keys() if isinstance(headers, dict) else []
            if not any(str(name).lower() in required_lower for name in names):
                findings.append(rule.finding(
                    text_range,
                    f'{rule.message or "Missing required response header."} '
                    f"Expected at least one of [{', '.join(required)}] in response headers "
                    f"when '{trigger}' exists.",
                ))
    return findings
