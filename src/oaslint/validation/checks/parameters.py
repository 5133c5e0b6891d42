"""Parameter and property name checks."""

from typing import Any

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import PositionLocator, TextRange
from oaslint.parser.refs import is_reference
from oaslint.parser.traverse import Operation, iter_operations, operation_parameters
from oaslint.validation.checks._common import as_list, as_lower_strings
from oaslint.validation.checks._words import (
    bundled_abbreviations,
    looks_like_abbreviation,
    looks_like_unknown_word,
    read_word_file,
    split_identifier,
)
from oaslint.validation.registry import check


def _parameter_matches(parameter: Any, name: str, location: str | None, value_type: str | None) -> bool:
    if not isinstance(parameter, dict):
        return False
    schema = parameter.get("schema")
    schema_type = schema.get("type") if isinstance(schema, dict) else None
    return (
        parameter.get("name") == name
        and parameter.get("in") == location
        and schema_type == value_type
    )


@check("checkParamElementPresence")
def check_param_element_presence(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Every operation must declare the configured parameter (name, location, type)."""
    name = rule.params.get("name")
    value_type = rule.params.get("valueType")
    location = rule.params.get("in")

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document):
        parameters = operation_parameters(document, operation)
        if not any(_parameter_matches(p, name, location, value_type) for p in parameters):
            findings.append(rule.finding(locator.method_range(operation.path, operation.method)))
    return findings


@check("checkElementSensitiveData")
def check_element_sensitive_data(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Sensitive names must not appear as parameters in ``rule.element`` (e.g. ``query``).

    Reports at most one parameter per operation.
    """
    forbidden = [str(name) for name in as_list(rule.params.get("queryNotAllowed"))]
    value_type = rule.params.get("valueType", "string")
    location = rule.elements[0] if rule.elements else None
    methods = as_lower_strings(rule.params.get("methods")) or None

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, methods):
        parameters = [document.resolve(p) for p in as_list(operation.operation.get("parameters"))]
        for name in forbidden:
            if any(_parameter_matches(p, name, location, value_type) for p in parameters):
                findings.append(rule.finding(
                    locator.parameter_range(operation.path, operation.method, name)
                ))
                break
    return findings


@check("checkDefaultLimitValue")
def check_default_limit_value(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """A declared ``limit`` query parameter must default to ``defaultValue``."""
    expected = rule.params.get("defaultValue")
    if expected is None:
        return []
    methods = as_lower_strings(rule.params.get("methods")) or None

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for operation in iter_operations(document, methods):
        has_limit = False
        has_invalid_default = False
        for parameter in as_list(operation.operation.get("parameters")):
            parameter = document.resolve(parameter)
            if not isinstance(parameter, dict):
                continue
            if str(parameter.get("in", "")).lower() != "query" or str(parameter.get("name", "")).lower() != "limit":
                continue
            has_limit = True
            schema = parameter.get("schema")
            actual = schema.get("default") if isinstance(schema, dict) else None
            if actual is None:
                actual = parameter.get("default")
            if actual is None or str(actual) != str(expected):
                has_invalid_default = True

        if has_limit and has_invalid_default:
            findings.append(rule.finding(
                locator.parameters_block_range(operation.path, operation.method),
                f'Issue in path: "{operation.path}", "{rule.message}"',
            ))
    return findings


class _NameReviewer:
    """Evaluates parameter and property names for one rule invocation.

    Reports each (kind, operation, name) once.
    """

    def __init__(self, document: SpecDocument, raw: str, rule: RuleDefinition):
        self.document = document
        self.rule = rule
        self.locator = PositionLocator(raw)
        self.allowed_names = set(as_lower_strings(rule.params.get("allowedName")))
        self.not_allowed_names = set(as_lower_strings(rule.params.get("notAllowedNames")))
        self.abbreviations = bundled_abbreviations() | set(as_lower_strings(rule.params.get("allowedAbbreviations")))
        self.dictionary = read_word_file(rule.params.get("dictionaryFile"))
        self.findings: list[Finding] = []
        self._reported: set[tuple[str, ...]] = set()

    def review_operation(self, operation: Operation) -> None:
        context = f"{operation.path}#{operation.method}"
        anchor = self.locator.operation_anchor(operation.path, operation.method)
        self._review_parameters(operation, context, anchor)

        request_body = operation.operation.get("requestBody")
        if request_body is not None:
            self._review_content(operation, request_body, context, anchor)

        responses = operation.operation.get("responses")
        if isinstance(responses, dict):
            for response in responses.values():
                self._review_content(operation, response, context, anchor)

    def _review_parameters(self, operation: Operation, context: str, anchor: int) -> None:
        raw_parameters = as_list(operation.path_item.get("parameters")) + as_list(operation.operation.get("parameters"))
        for parameter in raw_parameters:
            resolved = self.document.resolve(parameter)
            name = resolved.get("name") if isinstance(resolved, dict) else None
            if not isinstance(name, str):
                continue
            if is_reference(parameter):
                text_range = self.locator.ref_usage_range(operation.path, operation.method, parameter["$ref"])
                self.evaluate(name, None if text_range.is_empty else text_range, anchor, context)
            else:
                text_range = self.locator.parameter_range(operation.path, operation.method, name)
                self.evaluate(name, text_range, anchor, context)

    def _review_content(self, operation: Operation, holder: Any, context: str, anchor: int) -> None:
        resolved = self.document.resolve(holder)
        content = resolved.get("content") if isinstance(resolved, dict) else None
        if not isinstance(content, dict):
            return

        for media in content.values():
            if not isinstance(media, dict):
                continue
            schema = media.get("schema")
            if schema is not None:
                usage = self.locator.schema_usage_range(operation.path, operation.method, schema)
                self.document.resolver.walk_schema(
                    schema, lambda name, _schema: self.evaluate(name, usage, anchor, context)
                )

            if media.get("example") is not None:
                self._review_example(media["example"], anchor, context)
            examples = media.get("examples")
            if isinstance(examples, dict):
                for example in examples.values():
                    value = example.get("value", example) if isinstance(example, dict) else example
                    self._review_example(value, anchor, context)

    def _review_example(self, example: Any, anchor: int, context: str, seen: set[int] | None = None) -> None:
        if seen is None:
            seen = set()
        if not isinstance(example, (dict, list)) or id(example) in seen:
            return
        seen.add(id(example))

        if isinstance(example, list):
            for item in example:
                self._review_example(item, anchor, context, seen)
            return
        for key, value in example.items():
            self.evaluate(str(key), None, anchor, context)
            self._review_example(value, anchor, context, seen)

    def evaluate(self, name: str, text_range: TextRange | None, anchor: int, context: str) -> None:
        lowered = name.lower()
        if not lowered or lowered in self.allowed_names:
            return

        if lowered in self.not_allowed_names:
            self._report(
                name, text_range, anchor,
                f'Parameter/property name "{name}" is not allowed. {self.rule.message}',
                ("not-allowed", context, lowered),
            )
            return

        bad_tokens, reasons = self._suspicious_tokens(name)
        if bad_tokens:
            self._report(
                name, text_range, anchor,
                f'Parameter/property name "{name}" may not follow common standard words '
                f'({", ".join(reasons)}: {", ".join(bad_tokens)}). {self.rule.message}',
                ("suspicious", context, lowered, "_".join(bad_tokens)),
            )

    def _suspicious_tokens(self, name: str) -> tuple[list[str], list[str]]:
        bad_tokens: list[str] = []
        reasons: list[str] = []
        for token in split_identifier(name):
            if looks_like_abbreviation(token, self.abbreviations):
                reason = "uncommon abbreviation"
            elif self.dictionary is not None and looks_like_unknown_word(token, self.dictionary, self.abbreviations):
                reason = "non-dictionary term"
            else:
                continue
            if token not in bad_tokens:
                bad_tokens.append(token)
            if reason not in reasons:
                reasons.append(reason)
        return bad_tokens, reasons

    def _report(self, name: str, text_range: TextRange | None, anchor: int, message: str, key: tuple[str, ...]) -> None:
        if key in self._reported:
            return
        self._reported.add(key)
        if text_range is None:
            text_range = self.locator.key_range(name, anchor)
        self.findings.append(self.rule.finding(text_range, message))


@check("checkCommonParameters")
def check_common_parameters(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Parameter, body and response property names must use common words.

    Names in ``notAllowedNames`` are always reported; other names are split
    into tokens and reported when a token looks like an uncommon
    abbreviation, or (with a ``dictionaryFile``) an unknown word.
    """
    reviewer = _NameReviewer(document, raw, rule)
    methods = as_lower_strings(rule.params.get("methods")) or None
    for operation in iter_operations(document, methods):
        reviewer.review_operation(operation)
    return reviewer.findings
