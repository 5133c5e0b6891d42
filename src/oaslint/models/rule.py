"""Pydantic models for rule catalog records."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from oaslint.models.finding import DiagnosticSeverity, Finding, RuleSeverity
from oaslint.parser.locator import TextRange


class RuleCall(BaseModel):
    """Check binding of a rule: the check name and its opaque parameters."""
    function: str
    function_params: dict[str, Any] = Field(alias="functionParams", default_factory=dict)

    @field_validator("function_params", mode="before")
    @classmethod
    def validate_function_params(cls, v):
        return v if v is not None else {}

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RuleDefinition(BaseModel):
    """A declarative rule from the catalog. Immutable for a run."""
    id: str
    message: str = ""
    severity: RuleSeverity = RuleSeverity.MEDIUM
    call: RuleCall
    element: str | list[str] | None = None
    location: str | list[str] | None = None
    title: str | None = None
    name: str | None = None
    status: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        if v is None:
            raise ValueError("rule id is required")
        return str(v)

    @field_validator("message", mode="before")
    @classmethod
    def validate_message(cls, v):
        return "" if v is None else str(v)

    @field_validator("severity", mode="before")
    @classmethod
    def validate_severity(cls, v):
        return RuleSeverity.parse(v)

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    @property
    def check_name(self) -> str:
        return self.call.function

    @property
    def params(self) -> dict[str, Any]:
        return self.call.function_params

    @property
    def elements(self) -> list[str]:
        return _as_list(self.element)

    @property
    def locations(self) -> list[str]:
        return _as_list(self.location)

    @property
    def diagnostic_severity(self) -> DiagnosticSeverity:
        return self.severity.diagnostic

    def finding(self, text_range: TextRange, message: str | None = None,
                severity: RuleSeverity | str | None = None) -> Finding:
        """Build a finding attributed to this rule."""
        start, end = text_range
        diagnostic = (RuleSeverity.parse(severity) if severity is not None else self.severity).diagnostic
        return Finding(start, end, diagnostic, self.message if message is None else message, self.id)


class ManualRule(BaseModel):
    """A manual checklist entry; reported but never executed."""
    id: str
    title: str | None = None
    message: str = ""
    option: str | None = None
    verified: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        return str(v)

    model_config = ConfigDict(extra="allow")


def _as_list(value: str | list[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]
