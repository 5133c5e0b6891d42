"""Severity vocabulary and the Finding record shared by the engine and exporters."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from oaslint.parser.locator import TextRange


class DiagnosticSeverity(str, Enum):
    """Display severity attached to findings."""
    HINT = "hint"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def rank(self) -> int:
        return _RANKS[self]


class RuleSeverity(str, Enum):
    """Severity declared by a rule definition."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: Any) -> "RuleSeverity":
        """Parse a declared severity; unknown values map to ``medium``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MEDIUM

    @property
    def diagnostic(self) -> DiagnosticSeverity:
        return _DIAGNOSTIC[self]

    @property
    def label(self) -> str:
        return self.diagnostic.label


_DIAGNOSTIC = {
    RuleSeverity.LOW: DiagnosticSeverity.HINT,
    RuleSeverity.MEDIUM: DiagnosticSeverity.INFO,
    RuleSeverity.HIGH: DiagnosticSeverity.WARNING,
    RuleSeverity.CRITICAL: DiagnosticSeverity.ERROR,
}

_LABELS = {
    DiagnosticSeverity.HINT: "Low",
    DiagnosticSeverity.INFO: "Medium",
    DiagnosticSeverity.WARNING: "High",
    DiagnosticSeverity.ERROR: "Critical",
}

_RANKS = {
    DiagnosticSeverity.HINT: 0,
    DiagnosticSeverity.INFO: 1,
    DiagnosticSeverity.WARNING: 2,
    DiagnosticSeverity.ERROR: 3,
}


def map_severity(value: Any) -> DiagnosticSeverity:
    """Map a rule severity (``low|medium|high|critical``) to a display severity."""
    return RuleSeverity.parse(value).diagnostic


def severity_label(value: Any) -> str:
    """Human readable label for a display severity value."""
    try:
        return DiagnosticSeverity(value).label
    except ValueError:
        return DiagnosticSeverity.INFO.label


@dataclass(frozen=True)
class Finding:
    """One reported issue: a ``[start, end)`` text range, severity, message and source.

    Offsets index the decoded raw text (one unit per code point).
    """
    start: int
    end: int
    severity: DiagnosticSeverity
    message: str
    source: str

    @property
    def text_range(self) -> TextRange:
        return TextRange(self.start, self.end)

    @property
    def label(self) -> str:
        return self.severity.label

    def byte_range(self, raw: str) -> tuple[int, int]:
        """The range as UTF-8 byte offsets into ``raw``."""
        start = len(raw[:self.start].encode("utf-8", "surrogatepass"))
        return start, start + len(raw[self.start:self.end].encode("utf-8", "surrogatepass"))

    def to_dict(self, raw: str | None = None) -> dict[str, Any]:
        """Convert to dictionary for JSON output.

        With ``raw``, ``from``/``to`` are UTF-8 byte offsets into it; otherwise
        they are the code point offsets held by the finding.
        """
        start, end = self.byte_range(raw) if raw is not None else (self.start, self.end)
        return {
            "from": start,
            "to": end,
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
        }

    def __str__(self) -> str:
        return f"[{self.label.upper()}] {self.source}: {self.message} ({self.start}-{self.end})"
