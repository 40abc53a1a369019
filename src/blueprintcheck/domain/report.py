"""
Validation report models.

These models represent the output of one validation run: the findings in
check order, the derived ``errors`` / ``warnings`` message lists, and the
bookkeeping needed for rendering.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from blueprintcheck.domain.models import DomainDeclaration, Finding, Severity


class ReportSummary(BaseModel):
    """Summary statistics for a validation run."""

    model_config = ConfigDict(frozen=True)

    errors: int = Field(default=0, ge=0, description="Number of errors")
    warnings: int = Field(default=0, ge=0, description="Number of warnings")

    @property
    def total(self) -> int:
        """Total number of findings."""
        return self.errors + self.warnings

    @classmethod
    def from_findings(cls, findings: list[Finding], failures: int = 0) -> ReportSummary:
        """Create a summary from a list of findings plus crashed rules."""
        errors = sum(1 for f in findings if f.severity == Severity.ERROR)
        return cls(errors=errors + failures, warnings=len(findings) - errors)


class ValidationReport(BaseModel):
    """
    Complete validation report.

    Created fresh for every run and returned once, fully populated.
    ``valid`` is true iff ``errors`` is empty; warnings never affect it.
    """

    model_config = ConfigDict(frozen=True)

    report_id: str = Field(
        default_factory=lambda: f"vr_{uuid4().hex[:12]}",
        description="Unique report identifier",
    )
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the validation was performed",
    )
    target: str = Field(default="<dict>", description="Blueprint that was validated")
    duration_ms: float = Field(default=0.0, ge=0, description="Validation duration in milliseconds")
    findings: list[Finding] = Field(
        default_factory=list,
        description="All findings, in check order",
    )
    failures: list[str] = Field(
        default_factory=list,
        description="Rules that crashed; each counts as an error",
    )
    rules_executed: list[str] = Field(
        default_factory=list,
        description="List of rule IDs that were executed",
    )
    rules_skipped: list[str] = Field(
        default_factory=list,
        description="List of rule IDs skipped because an earlier structural check failed",
    )
    resolved_variables: dict[str, str] = Field(
        default_factory=dict,
        description="Variables after resolution, for preview",
    )
    domains: list[DomainDeclaration] = Field(
        default_factory=list,
        description="Well-formed domain declarations",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional run metadata",
    )

    @property
    def errors(self) -> list[str]:
        """Error messages in check order."""
        messages = [f.message for f in self.findings if f.severity == Severity.ERROR]
        return messages + list(self.failures)

    @property
    def warnings(self) -> list[str]:
        """Warning messages in check order."""
        return [f.message for f in self.findings if f.severity == Severity.WARNING]

    @property
    def valid(self) -> bool:
        """Whether the blueprint has no errors."""
        return not self.errors

    @property
    def summary(self) -> ReportSummary:
        """Counts of errors and warnings."""
        return ReportSummary.from_findings(self.findings, failures=len(self.failures))

    def exit_code(self, fail_on_warnings: bool = False) -> int:
        """Exit code for CLI (0 = passed, 1 = failed)."""
        if not self.valid:
            return 1
        if fail_on_warnings and self.warnings:
            return 1
        return 0

    def findings_by_severity(self, severity: Severity) -> list[Finding]:
        """Get findings filtered by severity."""
        return [f for f in self.findings if f.severity == severity]

    def findings_by_rule(self, rule_id: str) -> list[Finding]:
        """Get findings filtered by rule ID."""
        return [f for f in self.findings if f.rule_id == rule_id]

    def to_json(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data = self.model_dump(mode="json", by_alias=True)
        data["valid"] = self.valid
        data["errors"] = self.errors
        data["warnings"] = self.warnings
        return data
