"""
Domain layer for blueprintcheck.

Contains all core data structures with zero external dependencies
beyond Pydantic.
"""

from blueprintcheck.domain.models import (
    Blueprint,
    BlueprintPreview,
    DomainDeclaration,
    DomainSchema,
    EnvEntry,
    Finding,
    MountDeclaration,
    Resolution,
    RuleMetadata,
    Severity,
)
from blueprintcheck.domain.report import ReportSummary, ValidationReport
from blueprintcheck.domain.exceptions import (
    BlueprintCheckError,
    BlueprintParseError,
    RuleError,
    ConfigError,
)

__all__ = [
    # Models
    "Blueprint",
    "BlueprintPreview",
    "DomainDeclaration",
    "DomainSchema",
    "EnvEntry",
    "Finding",
    "MountDeclaration",
    "Resolution",
    "RuleMetadata",
    "Severity",
    # Reports
    "ReportSummary",
    "ValidationReport",
    # Exceptions
    "BlueprintCheckError",
    "BlueprintParseError",
    "RuleError",
    "ConfigError",
]
