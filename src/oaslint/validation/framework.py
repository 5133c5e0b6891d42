"""Rule dispatcher: filters, executes and aggregates rules for one document.

A run moves through ``LOADED -> FILTERED -> EXECUTING -> AGGREGATED``. Checks
run concurrently on one event loop; results are reassembled in catalog order.
A failing check becomes one synthetic finding, a timed out check contributes
nothing, and only an unparsable document short-circuits the run.
"""

import asyncio
import inspect
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from oaslint.comparison import ComparisonSource
from oaslint.config import OaslintConfig, create_default_config
from oaslint.diagnostics.error_collector import ErrorCollector, ErrorContext
from oaslint.errors import ParseError, RuleExecutionError, describe_exception
from oaslint.models.finding import DiagnosticSeverity, Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument, parse
from oaslint.validation.registry import CheckRegistry, RegisteredCheck, get_default_registry

logger = logging.getLogger(__name__)

PARSER_SOURCE = "parser"


class RunPhase(str, Enum):
    """Phases of a validation run."""
    LOADED = "loaded"
    FILTERED = "filtered"
    EXECUTING = "executing"
    AGGREGATED = "aggregated"
    PARSE_FAILED = "parse_failed"


class ValidationStatus(str, Enum):
    """Overall run status for CI."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class LintResult:
    """Result of one validation run."""
    findings: list[Finding] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)
    phase: RunPhase = RunPhase.LOADED
    fail_on: DiagnosticSeverity = DiagnosticSeverity.WARNING
    raw: str | None = field(default=None, repr=False)

    @property
    def status(self) -> ValidationStatus:
        if any(f.severity.rank >= self.fail_on.rank for f in self.findings):
            return ValidationStatus.FAIL
        if self.findings:
            return ValidationStatus.WARN
        return ValidationStatus.PASS

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = pass/warn, 1 = fail."""
        return 0 if self.status != ValidationStatus.FAIL else 1

    def increment_counter(self, name: str, value: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "status": self.status.value,
            "exit_code": self.exit_code,
            "counters": self.counters,
            "metadata": self.metadata,
            "findings": [finding.to_dict(self.raw) for finding in self.findings],
        }


def deduplicate(findings: Iterable[Finding]) -> list[Finding]:
    """Drop repeated ``(start, end, message)`` findings, keeping first occurrences in order."""
    seen: set[tuple[int, int, str]] = set()
    unique: list[Finding] = []
    for finding in findings:
        key = (finding.start, finding.end, finding.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


class RuleDispatcher:
    """Binds rule definitions to checks and executes validation runs.

    A dispatcher holds no per-run state and may serve concurrent runs.
    """

    def __init__(self, registry: CheckRegistry | None = None,
                 config: OaslintConfig | None = None,
                 comparison: ComparisonSource | None = None,
                 error_collector: ErrorCollector | None = None):
        self.registry = registry if registry is not None else get_default_registry()
        self.config = config if config is not None else create_default_config()
        self.comparison = comparison
        self.error_collector = error_collector

    def filter(self, rules: Sequence[RuleDefinition]) -> list[tuple[RuleDefinition, RegisteredCheck]]:
        """Keep rules whose check is registered, in catalog order."""
        runnable, _skipped = self.registry.partition(rules)
        return runnable

    def run(self, raw: str, rules: Sequence[RuleDefinition]) -> LintResult:
        """Validate ``raw`` against ``rules``.

        Must not be called from a running event loop; use :meth:`run_async` there.
        """
        return asyncio.run(self.run_async(raw, rules))

    async def run_async(self, raw: str, rules: Sequence[RuleDefinition]) -> LintResult:
        result = LintResult(fail_on=self.config.output.fail_on.diagnostic, raw=raw)
        result.increment_counter("rules_loaded", len(rules))

        try:
            document = parse(raw)
        except ParseError as e:
            logger.warning(f"Specification parsing failed: {e}")
            result.findings.append(Finding(
                0, len(raw), DiagnosticSeverity.ERROR,
                f"Specification parsing error: {e}", PARSER_SOURCE,
            ))
            result.phase = RunPhase.PARSE_FAILED
            return result

        result.metadata = document.metadata()

        runnable, skipped = self.registry.partition(rules)
        result.phase = RunPhase.FILTERED
        result.increment_counter("rules_run", len(runnable))
        result.increment_counter("rules_skipped", len(skipped))
        logger.debug(f"Filtered {len(rules)} rules: {len(runnable)} runnable, {len(skipped)} skipped")

        result.phase = RunPhase.EXECUTING
        logger.info(f"Running {len(runnable)} rules")
        outputs = await asyncio.gather(
            *(self._execute(document, raw, rule, entry) for rule, entry in runnable)
        )

        for findings in outputs:
            result.findings.extend(findings)
        result.phase = RunPhase.AGGREGATED
        result.increment_counter("findings", len(result.findings))

        logger.info(f"Validation completed with status: {result.status.value}")
        logger.info(f"Found {len(result.findings)} findings")
        return result

    async def _execute(self, document: SpecDocument, raw: str,
                       rule: RuleDefinition, entry: RegisteredCheck) -> list[Finding]:
        logger.debug(f"Executing rule {rule.id} with check {entry.name}")
        timeout = self.config.engine.check_timeout
        try:
            if entry.external or entry.is_async:
                if entry.external:
                    pending = entry.func(document, raw, rule, comparison=self.comparison)
                else:
                    pending = entry.func(document, raw, rule)
                try:
                    output = await asyncio.wait_for(pending, timeout)
                except asyncio.TimeoutError:
                    return self._timed_out(document, rule, entry, timeout)
            else:
                output = entry.func(document, raw, rule)
            findings = _collect(output)
        except Exception as e:
            error = RuleExecutionError(rule.id, entry.name, e)
            logger.error(f"Rule {rule.id} failed with error: {describe_exception(e)}")
            if self.error_collector is not None:
                self.error_collector.collect_error(error, ErrorContext(rule.id, entry.name, document.title))
            return [Finding(0, len(raw), DiagnosticSeverity.ERROR, str(error), entry.name)]

        if self.config.engine.dedupe:
            findings = deduplicate(findings)
        return findings

    def _timed_out(self, document: SpecDocument, rule: RuleDefinition,
                   entry: RegisteredCheck, timeout: float) -> list[Finding]:
        logger.warning(f"Rule {rule.id} ({entry.name}) timed out after {timeout}s, treated as not applicable")
        if self.error_collector is not None:
            self.error_collector.collect_warning(
                f"Check {entry.name} timed out after {timeout}s",
                ErrorContext(rule.id, entry.name, document.title),
            )
        return []


def _collect(output: Any) -> list[Finding]:
    """Materialize a check's output; anything but a sequence or generator counts as no findings."""
    if isinstance(output, (list, tuple)) or inspect.isgenerator(output):
        return list(output)
    if output is not None:
        logger.debug(f"Ignoring check output of type {type(output).__name__}")
    return []
