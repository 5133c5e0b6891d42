"""Checks over path strings (URI format, length, syntax and wording).

Findings point at the path key inside the ``paths`` block, or at the
offending characters within it.
"""

import re
from urllib.parse import quote

from oaslint.models.finding import Finding, RuleSeverity
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import PositionLocator, TextRange
from oaslint.parser.traverse import iter_path_items
from oaslint.validation.checks._common import as_list, as_lower_strings, compile_patterns
from oaslint.validation.checks._words import (
    VERSION_SEGMENT,
    bundled_abbreviations,
    looks_like_abbreviation,
    looks_like_unknown_word,
    read_word_file,
    split_path,
)
from oaslint.validation.registry import check

PATH_PARAMETER_SEGMENT = re.compile(r"^\{[a-z0-9_]+\}$")
DOMAIN_SCOPE_SEGMENT = re.compile(r"^\{(project_id|tenant_id)\}$")
INVALID_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
CRUD_METHODS = ("get", "post", "put", "patch", "delete")

# Characters encodeURI leaves alone.
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _char_range(path_range: TextRange, index: int, length: int = 1) -> TextRange:
    if path_range.is_empty:
        return path_range
    return TextRange(path_range.start + index, path_range.start + index + length)


@check("checkURIFormat")
def check_uri_format(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Paths must be ``/{version}/{resources}`` or ``/{version}/{project_id|tenant_id}/{resources}``."""
    project_pattern = ""
    domain_pattern = ""
    allowed_formats = rule.params.get("allowedFormats")
    scopes = allowed_formats.get("scope") if isinstance(allowed_formats, dict) else None
    for entry in as_list(scopes):
        if isinstance(entry, dict):
            project_pattern = entry.get("project", project_pattern)
            domain_pattern = entry.get("domain", domain_pattern)
    project_pattern = project_pattern or "/{version}/{resources}"
    domain_pattern = domain_pattern or "/{version}/[project_id/tenant_id]/{resources}"

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        segments = _segments(path)
        if not path.startswith("/") or not segments:
            continue

        if not VERSION_SEGMENT.match(segments[0]):
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" must start with a version segment like /v1 '
                f"according to URI format {project_pattern}.",
            ))
            continue

        domain_scope = len(segments) >= 3 and DOMAIN_SCOPE_SEGMENT.match(segments[1]) is not None
        minimum = 3 if domain_scope else 2
        if len(segments) < minimum:
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" does not follow allowed URI formats: {project_pattern} or {domain_pattern}.',
            ))
    return findings


@check("checkURILength")
def check_uri_length(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """The URI-encoded UTF-8 length of a path must not exceed ``maxLength`` bytes."""
    max_length = int(rule.params.get("maxLength", 2048))

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        length = len(quote(path, safe=_URI_SAFE).encode("utf-8"))
        if length > max_length:
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" exceeds the maximum allowed URI length of {max_length} bytes '
                f"after encoding (actual: {length}).",
            ))
    return findings


@check("checkURIContentSyntax")
def check_uri_content_syntax(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Paths must match at least one ``requiredPathRegexp``."""
    patterns = compile_patterns(rule.params.get("requiredPathRegexp"), rule)
    if not patterns:
        return []

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        if not any(pattern.search(path) for pattern in patterns):
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" does not conform to the required URI syntax: resource names must be '
                f"lowercase and separated by hyphens, and path parameters must be in {{snake_case}}.",
            ))
    return findings


def _prefixed_message(rule: RuleDefinition, default: str, detail: str) -> str:
    base = rule.message or rule.title or default
    return f"{rule.id}: {base}\n{detail}"


@check("checkURIContentSpecial")
def check_uri_content_special(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Paths must not contain ``forbiddenChars`` or bare ``.``/``..`` segments.

    Percent-encoded sequences are skipped.
    """
    forbidden: set[str] = set()
    for value in as_list(rule.params.get("forbiddenChars")):
        if isinstance(value, str):
            forbidden.update(value)
    if not forbidden:
        return []

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        path_range = locator.path_key_range(path)

        def message(character: str) -> str:
            return _prefixed_message(
                rule, "URI contains forbidden special characters.",
                f'Found forbidden character "{character}" in path: {path}',
            )

        for segment in _segments(path):
            if segment in (".", ".."):
                findings.append(rule.finding(path_range, message(segment)))

        index = 0
        while index < len(path):
            character = path[index]
            if character == "%" and index + 2 < len(path):
                index += 3
                continue
            if character in forbidden:
                findings.append(rule.finding(_char_range(path_range, index), message(character)))
            index += 1
    return findings


@check("checkURIContentUnicode")
def check_uri_content_unicode(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Paths must be ASCII; with ``checkInvalidPercentEscape``, escapes must be ``%XX``."""
    check_escapes = bool(rule.params.get("checkInvalidPercentEscape"))
    default = "URI contains invalid characters."

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        path_range = locator.path_key_range(path)

        if check_escapes:
            invalid = INVALID_PERCENT_ESCAPE.search(path)
            if invalid is not None:
                findings.append(rule.finding(
                    _char_range(path_range, invalid.start()),
                    _prefixed_message(
                        rule, default,
                        f"Invalid percent-escape token. Use % followed by two hex digits.\nPath: {path}",
                    ),
                ))

        for index, character in enumerate(path):
            if ord(character) > 0x7F:
                findings.append(rule.finding(
                    _char_range(path_range, index),
                    _prefixed_message(
                        rule, default,
                        f'Unicode character detected: "{character}". Use percent-encoding instead.\nPath: {path}',
                    ),
                ))
                break
    return findings


def _resource_depth(path: str) -> int:
    segments = _segments(path)
    if segments and VERSION_SEGMENT.match(segments[0]):
        segments = segments[1:]
    return sum(1 for segment in segments if not PATH_PARAMETER_SEGMENT.match(segment))


@check("checkURIContentComplexity")
def check_uri_content_complexity(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Resource depth (non-parameter segments after the version) is graded against thresholds.

    ``severity`` is a list such as ``[{medium: 4}, {high: 5}, {critical: 6}]``;
    the finding takes the severity of the highest threshold reached.
    """
    thresholds: dict[str, int] = {}
    for entry in as_list(rule.params.get("severity")):
        if isinstance(entry, dict) and entry:
            level, value = next(iter(entry.items()))
            thresholds[str(level).lower()] = int(value or 0)

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        depth = _resource_depth(path)
        severity = None
        for level in (RuleSeverity.CRITICAL, RuleSeverity.HIGH, RuleSeverity.MEDIUM):
            threshold = thresholds.get(level.value, 0)
            if threshold > 0 and depth >= threshold:
                severity = level
                break
        if severity is None:
            continue
        findings.append(rule.finding(
            locator.path_key_range(path),
            f'Path "{path}" is overly complex (resource depth: {depth}). '
            f"Consider simplifying the URI by removing redundant nested segments.",
            severity=severity,
        ))
    return findings


class _ResourceNaming:
    def __init__(self, verb_like_tail: set[str], singular_with_s: set[str]):
        self.verb_like_tail = verb_like_tail
        self.singular_with_s = singular_with_s

    def is_plural(self, segment: str) -> bool:
        segment = segment.lower()
        return segment not in self.singular_with_s and segment.endswith("s")

    def is_verb_tail(self, segment: str, method: str) -> bool:
        if segment.lower() in self.verb_like_tail:
            return True
        return method in ("post", "put", "patch") and not self.is_plural(segment)

    def leaf_resource(self, path: str, method: str) -> str | None:
        """The last resource segment, skipping parameters and a trailing action."""
        segments = _segments(path)
        if segments and VERSION_SEGMENT.match(segments[0]):
            segments = segments[1:]
        if not segments:
            return None

        index = len(segments) - 1
        if PATH_PARAMETER_SEGMENT.match(segments[index]):
            index -= 1
        if index < 0:
            return None

        if not PATH_PARAMETER_SEGMENT.match(segments[index]) and self.is_verb_tail(segments[index], method):
            index -= 1
        while index >= 0 and PATH_PARAMETER_SEGMENT.match(segments[index]):
            index -= 1
        return segments[index] if index >= 0 else None


@check("checkURIResourceFormat")
def check_uri_resource_format(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """The leaf resource segment of CRUD operations must be plural."""
    naming = _ResourceNaming(
        set(as_lower_strings(rule.params.get("verbLikeTail"))),
        set(as_lower_strings(rule.params.get("endsWithSButSingular"))),
    )
    exception = rule.params.get("exception") or ""
    extra = f" Exception: {exception}" if exception else ""

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, path_item in iter_path_items(document):
        for key in path_item:
            method = key.lower()
            if method not in CRUD_METHODS:
                continue
            segment = naming.leaf_resource(path, method)
            if segment is None or naming.is_plural(segment):
                continue
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Resource segment "{segment}" in path "{path}" should be plural for CRUD operations.{extra}',
            ))
    return findings


@check("checkURIContentDictionary")
def check_uri_content_dictionary(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Path words must not be uncommon abbreviations or (given a ``dictionaryFile``) unknown words."""
    params = rule.params
    check_abbreviations = params.get("checkAbbreviations", params.get("checkAbreviations", True))
    dictionary = read_word_file(params.get("dictionaryFile")) if params.get("checkDictionary", True) else None
    allowed = bundled_abbreviations() | set(as_lower_strings(params.get("allowedAbbreviations")))

    findings: list[Finding] = []
    locator = PositionLocator(raw)
    for path, _path_item in iter_path_items(document):
        abbreviations: list[str] = []
        unknown_words: list[str] = []
        for token in split_path(path):
            if check_abbreviations and looks_like_abbreviation(token, allowed) and token not in abbreviations:
                abbreviations.append(token)
            if dictionary is not None and looks_like_unknown_word(token, dictionary, allowed) \
                    and token not in unknown_words:
                unknown_words.append(token)

        parts = []
        if abbreviations:
            parts.append(f"suspicious abbreviations: {', '.join(abbreviations)}")
        if unknown_words:
            parts.append(f"unknown or non-dictionary-like words: {', '.join(unknown_words)}")
        if parts:
            findings.append(rule.finding(
                locator.path_key_range(path),
                f'Path "{path}" may use uncommon abbreviations or non-dictionary terms ({"; ".join(parts)}). '
                f"Please avoid unusual abbreviations and use clear, consistent nouns in URIs.",
            ))
    return findings
