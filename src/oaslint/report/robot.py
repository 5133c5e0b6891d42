"""Robot Framework output XML (schema version 4) for compliance reports.

The report has one root suite with an automated part (failed rules with
their findings, then passed rules) and a manual checklist part.
"""

import re
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from datetime import datetime, timedelta

from oaslint.models.finding import Finding
from oaslint.models.rule import ManualRule, RuleDefinition
from oaslint.parser.locator import PositionLocator

GENERATOR = "oaslint"
SCHEMA_VERSION = "4"
VIRTUAL_ROOT = "virtual:///Compliance_Validation"
ROOT_SUITE = "Compliance Validation"
AUTOMATED_SUITE = "Automated Compliance Validation Report"
MANUAL_SUITE = "Manual Checklist"

CASE_DURATION = timedelta(milliseconds=200)
SUITE_GAP = timedelta(milliseconds=500)


def format_timestamp(moment: datetime) -> str:
    """``20250101 12:00:00.000``"""
    return moment.strftime("%Y%m%d %H:%M:%S.%f")[:-3]


def markdown_to_text(text: str) -> str:
    """Strip common Markdown markup from checklist messages."""
    text = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"^\s{0,3}#{1,6}\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"(\*\*|__|\*|_|`)(.+?)\1", r"\2", text)
    return text.strip()


class _Clock:
    """Synthetic timeline: each test case takes a fixed duration."""

    def __init__(self, start: datetime):
        self.now = start

    def case(self) -> tuple[datetime, datetime]:
        start = self.now
        self.now = start + CASE_DURATION
        return start, self.now

    def gap(self) -> None:
        self.now += SUITE_GAP


def _status(parent: ET.Element, status: str, start: datetime, end: datetime) -> ET.Element:
    return ET.SubElement(parent, "status", {
        "status": status,
        "starttime": format_timestamp(start),
        "endtime": format_timestamp(end),
    })


def _test(parent: ET.Element, test_id: str, name: str, level: str, message: str,
          status: str, start: datetime, end: datetime) -> None:
    test = ET.SubElement(parent, "test", {"id": test_id, "name": name})
    msg = ET.SubElement(test, "msg", {"timestamp": format_timestamp(start), "level": level})
    msg.text = message
    _status(test, status, start, end)


def _group_by_source(findings: Sequence[Finding]) -> dict[str, list[Finding]]:
    grouped: dict[str, list[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.source, []).append(finding)
    return grouped


def build_robot_xml(findings: Sequence[Finding], rules: Sequence[RuleDefinition],
                    manual_rules: Sequence[ManualRule] = (), raw: str | None = None,
                    skip_manual: bool = False, generated_at: datetime | None = None) -> str:
    """Build a Robot Framework output document.

    Args:
        findings: Findings of the run, in catalog order
        rules: Every rule that was run; rules without findings are reported as passed
        manual_rules: Manual checklist entries (verified -> PASS, otherwise FAIL)
        raw: Document text used to turn offsets into line numbers
        skip_manual: Report manual entries as SKIP
        generated_at: Report timestamp (default: now)

    Returns:
        The XML document as a string
    """
    started = generated_at or datetime.now()
    clock = _Clock(started)
    locator = PositionLocator(raw) if raw else None
    rules_by_id = {rule.id: rule for rule in rules}
    grouped = _group_by_source(findings)

    robot = ET.Element("robot", {
        "generator": GENERATOR,
        "generated": format_timestamp(started),
        "rpa": "false",
        "schemaversion": SCHEMA_VERSION,
    })
    root = ET.SubElement(robot, "suite", {"id": "s1", "name": ROOT_SUITE, "source": VIRTUAL_ROOT})
    root_status = _status(root, "PASS", started, started)

    automated = ET.SubElement(root, "suite", {
        "id": "s1-s1", "name": AUTOMATED_SUITE,
        "source": f"{VIRTUAL_ROOT}/Automated_Compliance_Validation_Report",
    })
    automated_status = _status(automated, "PASS", started, started)

    # Failed rules
    failed = ET.SubElement(automated, "suite", {
        "id": "s1-s1-s1", "name": "Failed Rules",
        "source": f"{VIRTUAL_ROOT}/Automated_Compliance_Validation_Report/Failed_Rules.robot",
    })
    failed_start = clock.now
    failed_status = _status(failed, "PASS", failed_start, failed_start)
    for index, (source, source_findings) in enumerate(grouped.items(), start=1):
        rule = rules_by_id.get(source)
        title = (rule.title or rule.name or "") if rule else ""
        header = (rule.message or title) if rule else ""
        breaches = "\n".join(
            f"- {finding.label} | Line {_line_number(locator, finding)}: {finding.message}"
            for finding in source_findings
        )
        message = "\n".join(part for part in (header, breaches) if part)
        start, end = clock.case()
        _test(failed, f"s1-s1-s1-t{index}", f"Rule {source}" + (f" - {title}" if title else ""),
              "FAIL", message, "FAIL", start, end)
    _set_status(failed_status, "FAIL" if grouped else "PASS", failed_start, clock.now)
    clock.gap()

    # Passed rules
    passed = ET.SubElement(automated, "suite", {
        "id": "s1-s1-s2", "name": "Passed Rules",
        "source": f"{VIRTUAL_ROOT}/Automated_Compliance_Validation_Report/Passed_Rules.robot",
    })
    passed_start = clock.now
    passed_status = _status(passed, "PASS", passed_start, passed_start)
    passed_rules = [rule for rule in rules if rule.id not in grouped]
    for index, rule in enumerate(passed_rules, start=1):
        start, end = clock.case()
        _test(passed, f"s1-s1-s2-t{index}", f"Rule {rule.id} - {rule.title or rule.message}",
              "INFO", "Passed", "PASS", start, end)
    _set_status(passed_status, "PASS", passed_start, clock.now)
    clock.gap()
    _set_status(automated_status, "FAIL" if grouped else "PASS", started, clock.now)

    # Manual checklist
    manual = ET.SubElement(root, "suite", {
        "id": "s1-s2", "name": MANUAL_SUITE, "source": f"{VIRTUAL_ROOT}/Manual_Checklist",
    })
    manual_start = clock.now
    manual_status = _status(manual, "PASS", manual_start, manual_start)
    manual_failures = 0
    for index, entry in enumerate(manual_rules, start=1):
        detail = f"\n {entry.option or ''} - {markdown_to_text(entry.message or '')}"
        start, end = clock.case()
        if skip_manual:
            level, status, message = "INFO", "SKIP", f"Skipped in export:{detail}"
        elif entry.verified:
            level, status, message = "INFO", "PASS", f"Verified:{detail}"
        else:
            level, status, message = "FAIL", "FAIL", f"Manual rule not verified:{detail}"
            manual_failures += 1
        _test(manual, f"s1-s2-t{index}", f"{entry.id} - {entry.title}", level, message, status, start, end)

    if skip_manual:
        manual_result = "SKIP"
    else:
        manual_result = "FAIL" if manual_failures else "PASS"
    _set_status(manual_status, manual_result, manual_start, clock.now)

    failures = len(grouped) + (0 if skip_manual else manual_failures)
    _set_status(root_status, "FAIL" if failures else "PASS", started, clock.now)

    ET.indent(robot, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(robot, encoding="unicode")


def _set_status(element: ET.Element, status: str, start: datetime, end: datetime) -> None:
    element.set("status", status)
    element.set("starttime", format_timestamp(start))
    element.set("endtime", format_timestamp(end))


def _line_number(locator: PositionLocator | None, finding: Finding) -> int:
    if locator is None:
        return finding.start
    return locator.line_number(finding.start)
