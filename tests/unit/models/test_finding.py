"""Tests for severities and findings."""

import pytest

from oaslint.models.finding import (
    DiagnosticSeverity,
    Finding,
    RuleSeverity,
    map_severity,
    severity_label,
)


class TestSeverityMapping:
    """Tests for the fixed rule severity table."""

    @pytest.mark.parametrize("declared,expected,label", [
        ("low", DiagnosticSeverity.HINT, "Low"),
        ("medium", DiagnosticSeverity.INFO, "Medium"),
        ("high", DiagnosticSeverity.WARNING, "High"),
        ("critical", DiagnosticSeverity.ERROR, "Critical"),
    ])
    def test_known_severities(self, declared, expected, label):
        """Test each declared severity maps to its display severity and label."""
        assert map_severity(declared) == expected
        assert map_severity(declared).label == label

    @pytest.mark.parametrize("declared", ["blocker", "", None, 3])
    def test_unknown_severity_maps_to_medium(self, declared):
        """Test unknown values fall back to medium/info."""
        assert RuleSeverity.parse(declared) == RuleSeverity.MEDIUM
        assert map_severity(declared) == DiagnosticSeverity.INFO

    def test_parse_is_case_insensitive(self):
        """Test declared severities ignore case and whitespace."""
        assert RuleSeverity.parse(" HIGH ") == RuleSeverity.HIGH

    def test_severity_label(self):
        """Test labels for display severity values."""
        assert severity_label("error") == "Critical"
        assert severity_label("bogus") == "Medium"

    def test_rank_orders_severities(self):
        """Test ranks increase with severity."""
        ranks = [s.rank for s in (DiagnosticSeverity.HINT, DiagnosticSeverity.INFO,
                                  DiagnosticSeverity.WARNING, DiagnosticSeverity.ERROR)]
        assert ranks == sorted(ranks)


class TestFinding:
    """Tests for the Finding record."""

    def test_to_dict(self):
        """Test the wire form of a finding."""
        finding = Finding(3, 8, DiagnosticSeverity.WARNING, "Bad path", "2.1")

        assert finding.to_dict() == {
            "from": 3,
            "to": 8,
            "severity": "warning",
            "message": "Bad path",
            "source": "2.1",
        }

    def test_to_dict_with_source_text(self):
        """Test the wire form counts bytes when the source text is given."""
        raw = "title: été\npaths: {}\n"
        start = raw.index("paths")
        finding = Finding(start, start + 5, DiagnosticSeverity.INFO, "m", "r")

        serialized = finding.to_dict(raw)

        assert (serialized["from"], serialized["to"]) == (start + 2, start + 7)

    def test_is_immutable(self):
        """Test findings cannot be modified."""
        finding = Finding(0, 1, DiagnosticSeverity.INFO, "m", "r")

        with pytest.raises(AttributeError):
            finding.message = "changed"

    def test_byte_range_counts_utf8(self):
        """Test byte offsets for text after multi-byte characters."""
        raw = "title: été\npaths: {}\n"
        start = raw.index("paths")
        finding = Finding(start, start + 5, DiagnosticSeverity.INFO, "m", "r")

        assert finding.byte_range(raw) == (start + 2, start + 7)

    def test_label_and_str(self):
        """Test the display label."""
        finding = Finding(0, 4, DiagnosticSeverity.ERROR, "Broken", "parser")

        assert finding.label == "Critical"
        assert str(finding) == "[CRITICAL] parser: Broken (0-4)"
