"""Tests for rule catalog models."""

import pytest
from pydantic import ValidationError

from oaslint.models.finding import DiagnosticSeverity, RuleSeverity
from oaslint.models.rule import ManualRule, RuleDefinition
from oaslint.parser.locator import TextRange


class TestRuleDefinition:
    """Tests for RuleDefinition validation."""

    def test_catalog_record(self):
        """Test a record with camelCase call parameters."""
        rule = RuleDefinition.model_validate({
            "id": 12,
            "message": "Use HTTPS.",
            "severity": "high",
            "call": {"function": "checkHttpsServers", "functionParams": {"strict": True}},
            "element": "query",
        })

        assert rule.id == "12"
        assert rule.check_name == "checkHttpsServers"
        assert rule.params == {"strict": True}
        assert rule.severity == RuleSeverity.HIGH
        assert rule.diagnostic_severity == DiagnosticSeverity.WARNING
        assert rule.elements == ["query"]
        assert rule.locations == []

    def test_missing_params_default_to_empty(self):
        """Test null and absent parameters."""
        rule = RuleDefinition.model_validate({"id": "r", "call": {"function": "f", "functionParams": None}})

        assert rule.params == {}
        assert rule.message == ""
        assert rule.severity == RuleSeverity.MEDIUM

    def test_unknown_severity_is_medium(self):
        """Test unknown declared severities are accepted as medium."""
        rule = RuleDefinition.model_validate({"id": "r", "severity": "blocker", "call": {"function": "f"}})

        assert rule.severity == RuleSeverity.MEDIUM

    def test_missing_call_is_invalid(self):
        """Test records without a check binding are rejected."""
        with pytest.raises(ValidationError):
            RuleDefinition.model_validate({"id": "r"})

    def test_rule_is_immutable(self):
        """Test rule definitions are frozen."""
        rule = RuleDefinition.model_validate({"id": "r", "call": {"function": "f"}})

        with pytest.raises(ValidationError):
            rule.message = "changed"

    def test_extra_fields_are_kept(self):
        """Test catalog-specific extra fields survive validation."""
        rule = RuleDefinition.model_validate({"id": "r", "call": {"function": "f"}, "category": "uri"})

        assert rule.model_extra == {"category": "uri"}

    def test_finding_uses_rule_defaults(self):
        """Test findings take the rule's id, message and severity."""
        rule = RuleDefinition.model_validate({
            "id": "2.1", "message": "Bad.", "severity": "critical", "call": {"function": "f"},
        })

        finding = rule.finding(TextRange(1, 4))

        assert (finding.start, finding.end) == (1, 4)
        assert finding.message == "Bad."
        assert finding.source == "2.1"
        assert finding.severity == DiagnosticSeverity.ERROR

    def test_finding_overrides(self):
        """Test message and severity overrides."""
        rule = RuleDefinition.model_validate({"id": "r", "call": {"function": "f"}})

        finding = rule.finding(TextRange(0, 0), "Custom", severity="low")

        assert finding.message == "Custom"
        assert finding.severity == DiagnosticSeverity.HINT


class TestManualRule:
    """Tests for manual checklist entries."""

    def test_manual_rule_defaults(self):
        """Test manual entries default to unverified."""
        entry = ManualRule.model_validate({"id": 7, "title": "Review docs", "option": "Doc"})

        assert entry.id == "7"
        assert entry.verified is False
        assert entry.message == ""
