"""
Domain models for blueprintcheck.

This module contains the core data structures shared by the resolver,
the rules and the renderers. All models are Pydantic v2 for validation,
serialization, and JSON output.

Raw manifests and descriptors stay plain dicts: validation has to report on
malformed input rather than reject it at the door, so typed views are only
built for entries that already passed the structural checks.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blueprintcheck.core.constants import LENGTH_ARG_RE


class Severity(str, Enum):
    """Report tier of a finding. Errors block validity, warnings are advisory."""

    ERROR = "ERROR"
    WARNING = "WARNING"


class Finding(BaseModel):
    """
    A single error or warning produced by a rule.

    Findings are immutable and hashable; the message is what ends up in
    the report's ``errors`` / ``warnings`` lists.
    """

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(
        ...,
        description="Unique rule identifier, e.g., TEMPLATE-002",
        pattern=r"^[A-Z]+-[A-Z]+-\d{3}$|^[A-Z]+-\d{3}$",
    )
    severity: Severity = Field(..., description="Report tier of the finding")
    message: str = Field(..., description="Human-readable message", min_length=1)
    location: str | None = Field(
        default=None, description="Field path where the issue was found, e.g., domain[0].host"
    )
    remediation: str | None = Field(default=None, description="How to fix the issue")
    evidence: dict[str, Any] = Field(
        default_factory=dict, description="Evidence data for the finding"
    )

    def __hash__(self) -> int:
        return hash((self.rule_id, self.message, self.location))


class RuleMetadata(BaseModel):
    """Metadata about a validation rule."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., description="Unique rule identifier")
    name: str = Field(..., description="Human-readable rule name")
    description: str = Field(..., description="What the rule checks")
    severity: Severity = Field(..., description="Default severity")
    group: str = Field(..., description="Check group the rule belongs to")


class DomainSchema(BaseModel):
    """Schema consulted by the ``domain`` helper."""

    model_config = ConfigDict(frozen=True)

    domain: str | None = Field(default=None, description="Override for ${domain}")


class Resolution(BaseModel):
    """
    Result of resolving one template string.

    ``unresolved`` holds the bodies of expressions that were left as literal
    ``${...}`` text because no helper or variable matched them.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    unresolved: frozenset[str] = Field(default_factory=frozenset)

    @property
    def resolved(self) -> bool:
        """Whether every expression in the template was substituted."""
        return not self.unresolved


class DomainDeclaration(BaseModel):
    """Request to expose one manifest service's port under a host template."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service_name: str = Field(..., alias="serviceName", min_length=1)
    port: int = Field(..., ge=1, le=65535)
    host: str | None = Field(default=None)
    path: str | None = Field(default=None)

    @field_validator("port", mode="before")
    @classmethod
    def parse_port(cls, v: Any) -> Any:
        if isinstance(v, str):
            match = LENGTH_ARG_RE.match(v.replace("_", ""))
            return int(match.group(1)) if match else v
        return v


class MountDeclaration(BaseModel):
    """An inline file materialized at deploy time."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_path: str = Field(..., alias="filePath", min_length=1)
    content: str = Field(...)


class EnvEntry(BaseModel):
    """One normalized ``KEY=VALUE`` pair from either env declaration form."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class Blueprint(BaseModel):
    """
    A manifest and descriptor pair as handed to the validator.

    ``manifest`` and ``descriptor`` are the raw parsed documents. When a file
    could not be parsed the document is None and the parse message is kept
    so the check group depending on it can report a single error.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(default="<dict>", description="Directory or label of the blueprint")
    manifest: Any = Field(default=None, description="Parsed compose manifest")
    descriptor: Any = Field(default=None, description="Parsed template descriptor")
    manifest_error: str | None = Field(default=None)
    descriptor_error: str | None = Field(default=None)

    @property
    def name(self) -> str:
        """Short display name for the blueprint."""
        return self.source.rstrip("/").rsplit("/", 1)[-1] or self.source


class BlueprintPreview(BaseModel):
    """Descriptor with every resolvable expression substituted."""

    model_config = ConfigDict(frozen=True)

    variables: dict[str, str] = Field(default_factory=dict)
    domains: list[DomainDeclaration] = Field(default_factory=list)
    env: list[EnvEntry] = Field(default_factory=list)
    mounts: list[MountDeclaration] = Field(default_factory=list)
    unresolved: dict[str, frozenset[str]] = Field(
        default_factory=dict, description="Field path to unresolved expression bodies"
    )
