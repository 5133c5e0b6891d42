"""Result vocabulary and rule catalog models."""

from oaslint.models.finding import (
    DiagnosticSeverity,
    Finding,
    RuleSeverity,
    map_severity,
    severity_label,
)
from oaslint.models.rule import ManualRule, RuleCall, RuleDefinition

__all__ = [
    "DiagnosticSeverity",
    "Finding",
    "RuleSeverity",
    "map_severity",
    "severity_label",
    "RuleCall",
    "RuleDefinition",
    "ManualRule",
]
