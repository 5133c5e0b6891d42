"""Top-level document structure checks."""

import re

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import Fallback, PositionLocator
from oaslint.validation.checks._common import as_list
from oaslint.validation.registry import check

_MAJOR_MINOR = re.compile(r"^(\d+\.\d+)")


@check("checkOASSpec")
def check_oas_spec(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Required top-level fields must exist; fields outside required/optional are disallowed."""
    findings: list[Finding] = []
    required = [str(key) for key in as_list(rule.params.get("requiredValues"))]
    optional = [str(key) for key in as_list(rule.params.get("optionalValues"))]
    locator = PositionLocator(raw)

    for key in required:
        if key not in document.root:
            findings.append(rule.finding(
                locator.fallback(Fallback.WHOLE_DOCUMENT),
                f"'{rule.message}' Missing required top-level field: '{key}'",
            ))

    for key in document.root:
        if key in required or key in optional:
            continue
        findings.append(rule.finding(
            locator.top_level_key_range(key),
            f"'{rule.message}' Disallowed top-level field: '{key}'",
        ))
    return findings


@check("checkOASVersion")
def check_oas_version(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """The ``openapi`` version, as written in the source, must be an allowed major.minor."""
    allowed = [str(version) for version in as_list(rule.params.get("allowedVersions"))]
    locator = PositionLocator(raw)
    key_range = locator.top_level_key_range("openapi")

    raw_version = document.literal("openapi")
    if raw_version is None and document.root.get("openapi") is not None:
        raw_version = str(document.root["openapi"])

    if raw_version is None:
        return [rule.finding(key_range, f"'{rule.message}' Missing 'openapi' field.")]

    match = _MAJOR_MINOR.match(raw_version)
    if match is not None and match.group(1) in allowed:
        return []

    search_from = 0 if key_range == locator.fallback(Fallback.WHOLE_DOCUMENT) else key_range.end
    return [rule.finding(
        locator.text_range(raw_version, search_from, fallback=Fallback.WHOLE_DOCUMENT),
        f"'{rule.message}' 'openapi' version '{raw_version}' is not allowed.",
    )]
