"""Naming and wording checks: time field names and non-English text."""

import re
from typing import Any

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import Fallback, PositionLocator, TextRange
from oaslint.parser.traverse import iter_operations, media_schemas, operation_parameters
from oaslint.validation.checks._common import as_list, as_lower_strings
from oaslint.validation.registry import check

TIME_FIELD_SUGGESTIONS = {
    "created": "created_at",
    "updated": "updated_at",
    "deleted": "deleted_at",
    "expired": "expired_at",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "create_time": "created_at",
    "update_time": "updated_at",
    "delete_time": "deleted_at",
    "expire_time": "expired_at",
    "begin_time": "start_time",
}

_TIME_CANDIDATE = re.compile(
    r"(?:^|[_-])(time|timestamp)(?:$|[_-])"
    r"|(?:^|[_-])(created|updated|deleted|expired|expire)(?:$|[_-])"
    r"|(?:_at$)",
    re.IGNORECASE,
)
# Case-sensitive so that words like "Format" do not match.
_CAMEL_CASE_AT = re.compile(r"[a-z]At$")
_START_END_TIME = re.compile(
    r"(?:^|[_-])(start|end|read)(?:$|[_-]).*(?:^|[_-])(time|timestamp)(?:$|[_-])", re.IGNORECASE
)


def looks_like_time_field(name: str) -> bool:
    if re.match(r"^x-", name, re.IGNORECASE):
        return bool(
            re.search(r"time|timestamp", name, re.IGNORECASE)
            or re.search(r"_at$", name, re.IGNORECASE)
            or _CAMEL_CASE_AT.search(name)
        )
    return bool(_START_END_TIME.search(name) or _TIME_CANDIDATE.search(name) or _CAMEL_CASE_AT.search(name))


@check("checkTimeFieldNaming")
def check_time_field_naming(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Time-like parameter and property names must be one of ``recommendedNames``.

    Scans operation parameters, request and response schemas, then every
    schema under ``components.schemas``. Each schema node is visited once.
    """
    recommended = {str(n).strip() for n in as_list(rule.params.get("recommendedNames"))}
    not_recommended = {str(n).strip() for n in as_list(rule.params.get("notRecommendedNames"))}

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    seen_schemas: set[int] = set()

    def evaluate(name: str, text_range: TextRange | None, anchor: int | None = None) -> None:
        name = str(name).strip()
        if not name or name in recommended:
            return
        if name not in not_recommended and not looks_like_time_field(name):
            return

        suggestion = TIME_FIELD_SUGGESTIONS.get(name)
        if suggestion:
            message = f'{rule.message} Found "{name}". Recommended: "{suggestion}".'
        else:
            message = f'{rule.message} Found "{name}".'
        findings.append(rule.finding(text_range or locator.key_range(name, anchor), message))

    def walk(schema: Any, anchor: int | None = None) -> None:
        document.resolver.walk_schema(
            schema, lambda name, _schema: evaluate(name, None, anchor), seen_schemas
        )

    for operation in iter_operations(document):
        anchor = locator.operation_anchor(operation.path, operation.method)
        for parameter in operation_parameters(document, operation):
            name = parameter.get("name") if isinstance(parameter, dict) else None
            if isinstance(name, str):
                evaluate(name, locator.parameter_range(operation.path, operation.method, name))

        request_body = operation.operation.get("requestBody")
        if request_body is not None:
            for _media_type, schema in media_schemas(document, request_body):
                walk(schema, anchor)

        responses = operation.operation.get("responses")
        if isinstance(responses, dict):
            for response in responses.values():
                for _media_type, schema in media_schemas(document, response):
                    walk(schema, anchor)

    schemas = document.get("components", "schemas")
    if isinstance(schemas, dict):
        for schema in schemas.values():
            walk(schema)
    return findings


DEFAULT_FORBIDDEN_UNICODE_RANGE = "\u3400-\u4DBF\u4E00-\u9FFF\uF900-\uFAFF"
DEFAULT_TEXT_FIELDS = ("summary", "description", "title", "name")
I18N_LOCATIONS = ("info", "tags", "components")


@check("checkInternationalization")
def check_internationalization(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Text fields under ``rule.location`` sections must not contain Chinese script.

    Only the ``zh`` entry of ``forbiddenLanguages`` is detected; its
    characters come from ``forbiddenUnicodeRange``.
    """
    languages = as_lower_strings(rule.params.get("forbiddenLanguages", ["zh"]))
    if "zh" not in languages:
        return []

    unicode_range = rule.params.get("forbiddenUnicodeRange")
    if not isinstance(unicode_range, str):
        unicode_range = DEFAULT_FORBIDDEN_UNICODE_RANGE
    forbidden = re.compile(f"[{unicode_range}]")
    fields = set(rule.elements or DEFAULT_TEXT_FIELDS)

    findings: list[Finding] = []
    locator = PositionLocator(raw)

    def walk(node: Any, pointer: str, start: int) -> None:
        if isinstance(node, list):
            for index, item in enumerate(node):
                walk(item, f"{pointer}/{index}", start)
            return
        if not isinstance(node, dict):
            return
        for key, value in node.items():
            child = f"{pointer}/{key}"
            if key in fields and isinstance(value, str) and value.strip() and forbidden.search(value):
                findings.append(rule.finding(
                    locator.violation_range(value, forbidden, start),
                    f"Non-English (Chinese) text detected at {child}. Only English is allowed for this field.",
                ))
            if isinstance(value, (dict, list)):
                walk(value, child, start)

    for location in I18N_LOCATIONS:
        if location not in rule.locations:
            continue
        section = document.root.get(location)
        if location == "tags" and not isinstance(section, list):
            continue
        if section:
            start = locator.top_level_key_range(location, fallback=Fallback.DOCUMENT_START).start
            walk(section, f"/{location}", start)
    return findings
