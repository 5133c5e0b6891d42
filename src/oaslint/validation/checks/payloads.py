"""Request and response payload checks."""

import re
from typing import Any

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import PositionLocator
from oaslint.parser.refs import COMPOSITION_KEYWORDS
from oaslint.parser.traverse import iter_operations, preferred_schema
from oaslint.validation.checks._common import as_list, as_lower_strings
from oaslint.validation.registry import check

_PATH_PARAMETER = re.compile(r"\{([^}]+)\}")


def _media_types(holder: Any) -> list[str]:
    content = holder.get("content") if isinstance(holder, dict) else None
    return list(content) if isinstance(content, dict) else []


@check("checkRequestEncapsulation")
def check_request_encapsulation(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Request bodies must offer one of the ``content`` media types."""
    body_key = rule.elements[0] if rule.elements else "requestBody"
    allowed = [str(media_type) for media_type in as_list(rule.params.get("content"))]

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document):
        body = document.resolve(operation.operation.get(body_key))
        if not isinstance(body, dict):
            continue
        media_types = _media_types(body)
        if not any(media_type in media_types for media_type in allowed):
            anchor = locator.operation_anchor(operation.path, operation.method)
            findings.append(rule.finding(locator.key_range(body_key, anchor)))
    return findings


@check("checkResponseEncapsulation")
def check_response_encapsulation(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Response bodies of selected methods must use an allowed media type.

    Responses (or operations whose request body) using an ``excludeContent``
    media type are skipped. When ``headers`` are configured and a response
    declares headers, all of them must be present.
    """
    responses_key = rule.elements[0] if rule.elements else "responses"
    methods = as_lower_strings(rule.params.get("methods"))
    allowed = [str(media_type) for media_type in as_list(rule.params.get("content"))]
    excluded = as_lower_strings(rule.params.get("excludeContent"))
    required_headers = [str(header) for header in as_list(rule.params.get("headers"))]
    if not methods:
        return []

    def is_excluded(media_types: list[str]) -> bool:
        return any(media_type.lower() in excluded for media_type in media_types)

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, methods):
        if excluded and is_excluded(_media_types(document.resolve(operation.operation.get("requestBody")))):
            continue

        responses = operation.operation.get(responses_key)
        if not isinstance(responses, dict):
            continue

        for status_code, response in responses.items():
            response = document.resolve(response)
            media_types = _media_types(response)
            if not media_types or (excluded and is_excluded(media_types)):
                continue

            has_content_type = any(media_type in media_types for media_type in allowed)
            headers = response.get("headers") if isinstance(response.get("headers"), dict) else {}
            missing_header = bool(required_headers) and bool(headers) and not all(
                header in headers for header in required_headers
            )
            if not has_content_type or missing_header:
                findings.append(rule.finding(
                    locator.response_code_range(operation.path, operation.method, str(status_code))
                ))
    return findings


@check("checkResponseIncludesCount")
def check_response_includes_count(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """List responses must expose a typed total-count field (``count`` by default)."""
    params = rule.params
    method = str(params.get("method", "get")).lower()
    skip_path_params = bool(params.get("pathMustNotContainPathParams"))
    response_code = str(params.get("responseCode", "200"))
    contains_array = bool(params.get("responseContainArray"))
    field_name = str(params.get("fieldName", "count"))
    field_type = str(params.get("fieldType", "integer"))
    required = bool(params.get("required", True))
    allowed_names = [str(n).strip() for n in as_list(params.get("allowedNames", [field_name])) if str(n).strip()]
    disallowed_names = [str(n).strip() for n in as_list(params.get("disallowedNames")) if str(n).strip()]

    def has_array_payload(schema: Any) -> bool:
        schema = document.resolve(schema)
        if not isinstance(schema, dict):
            return False
        if schema.get("type") == "array":
            return True
        properties = schema.get("properties")
        if schema.get("type") == "object" and isinstance(properties, dict):
            return any(
                isinstance(document.resolve(p), dict) and document.resolve(p).get("type") == "array"
                for p in properties.values()
            )
        return False

    def count_field_problem(schema: dict) -> str | None:
        properties = schema.get("properties")
        if schema.get("type") != "object" or not isinstance(properties, dict):
            return "not-object"
        for name in disallowed_names:
            if name in properties:
                return "disallowed"
        for name in allowed_names:
            if name in properties:
                field = document.resolve(properties[name])
                if isinstance(field, dict) and field.get("type") == field_type:
                    return None
                return "wrong-type"
        return "missing"

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, [method]):
        if skip_path_params and _PATH_PARAMETER.search(operation.path):
            continue
        responses = operation.operation.get("responses")
        response = responses.get(response_code) if isinstance(responses, dict) else None
        schema = preferred_schema(document, response) if response is not None else None
        if not isinstance(schema, dict):
            continue

        variants = schema.get("oneOf") or schema.get("anyOf")
        candidates = [document.resolve(v) for v in variants] if isinstance(variants, list) else [schema]

        if contains_array and not any(has_array_payload(c) for c in candidates):
            continue

        violated = required and any(isinstance(c, dict) and c.get("type") == "array" for c in candidates)
        if not violated:
            for candidate in candidates:
                if not isinstance(candidate, dict):
                    continue
                if contains_array and not has_array_payload(candidate):
                    continue
                problem = count_field_problem(candidate)
                if (required and problem is not None) or problem == "disallowed":
                    violated = True
                    break

        if violated:
            findings.append(rule.finding(locator.method_range(operation.path, operation.method)))
    return findings


def _schema_has_any_property(document: SpecDocument, schema: Any, names: set[str], seen: set[int] | None = None) -> bool:
    if seen is None:
        seen = set()
    schema = document.resolve(schema)
    if not isinstance(schema, dict) or id(schema) in seen:
        return False
    seen.add(id(schema))

    properties = schema.get("properties")
    if isinstance(properties, dict):
        for name, property_schema in properties.items():
            if name in names or _schema_has_any_property(document, property_schema, names, seen):
                return True

    children: list[Any] = []
    for keyword in COMPOSITION_KEYWORDS:
        if isinstance(schema.get(keyword), list):
            children.extend(schema[keyword])
    if schema.get("items") is not None:
        children.append(schema["items"])
    if isinstance(schema.get("additionalProperties"), dict):
        children.append(schema["additionalProperties"])
    return any(_schema_has_any_property(document, child, names, seen) for child in children)


def _is_detail_path(path: str, parameter: str | None) -> bool:
    names = [name.strip() for name in _PATH_PARAMETER.findall(path) if name.strip()]
    if names and all(name.lower() == "project_id" for name in names):
        return False
    if parameter is None:
        return True
    if not names:
        return False
    if parameter in names:
        return True
    if parameter.lower() == "id":
        return any(
            name.lower() != "project_id" and name.lower().endswith("id")
            for name in names
        )
    return any(name.lower().endswith(f"_{parameter.lower()}") for name in names)


@check("checkTimeFieldsInDetailQuery")
def check_time_fields_in_detail_query(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Detail GET responses must return both a creation and an update time field."""
    params = rule.params
    method = str(params.get("method", "get")).lower()
    response_code = str(params.get("responseCode", "200"))
    parameter = params.get("pathMustContainPathParameter")
    parameter = parameter.strip() if isinstance(parameter, str) and parameter.strip() else None

    fields = [str(f).strip() for f in as_list(params.get("requiredFields")) if str(f).strip()]
    create_fields = {f for f in fields if re.search(r"create", f, re.IGNORECASE)} or {"create_time", "created_at"}
    update_fields = {f for f in fields if re.search(r"update", f, re.IGNORECASE)} or {"update_time", "updated_at"}

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, [method]):
        path = operation.path
        if not path.startswith("/") or "tags" in [s for s in path.split("/") if s]:
            continue
        if not _is_detail_path(path, parameter):
            continue

        responses = operation.operation.get("responses")
        response = responses.get(response_code) if isinstance(responses, dict) else None
        schema = preferred_schema(document, response) if isinstance(response, dict) else None
        if schema is None:
            continue

        if not (_schema_has_any_property(document, schema, create_fields)
                and _schema_has_any_property(document, schema, update_fields)):
            findings.append(rule.finding(locator.method_range(path, operation.method)))
    return findings
