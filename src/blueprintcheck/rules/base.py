"""
Base rule infrastructure.

Defines the Rule protocol, the shared ValidationContext and the base class
for all validation rules. Rules are pure functions of the context with no
I/O; they append nothing and raise nothing, they return findings.
"""

from __future__ import annotations

from abc import abstractmethod
from functools import cached_property
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from blueprintcheck.core.constants import RESERVED_NETWORK
from blueprintcheck.domain.models import Finding, RuleMetadata, Severity

if TYPE_CHECKING:
    from blueprintcheck.domain.models import Blueprint
    from blueprintcheck.engine.resolver import VariableResolver

# Check groups; a group only runs when the structure it depends on is sound
MANIFEST_STRUCTURE = "manifest-structure"
MANIFEST = "manifest"
DESCRIPTOR_STRUCTURE = "descriptor-structure"
DESCRIPTOR = "descriptor"


class ValidationContext:
    """
    Read-only view of one blueprint shared by every rule in a run.

    Derived facts (service map, config section, gates) are computed once
    here so rules do not repeat the structural checks.
    """

    def __init__(
        self,
        blueprint: Blueprint,
        resolver: VariableResolver,
        service_names: list[str] | None = None,
        reserved_network: str = RESERVED_NETWORK,
    ) -> None:
        self.blueprint = blueprint
        self.resolver = resolver
        self.reserved_network = reserved_network

        manifest = blueprint.manifest
        self.manifest: dict[str, Any] | None = manifest if isinstance(manifest, dict) else None
        services = self.manifest.get("services") if self.manifest is not None else None
        self.services: dict[str, Any] = services if isinstance(services, dict) else {}

        if service_names is not None:
            self.service_names = list(service_names)
        else:
            self.service_names = [str(name) for name in self.services]

        descriptor = blueprint.descriptor
        self.descriptor: dict[str, Any] | None = descriptor if isinstance(descriptor, dict) else None
        config = self.descriptor.get("config") if self.descriptor is not None else None
        self.config: dict[str, Any] | None = config if isinstance(config, dict) else None

    @property
    def manifest_provided(self) -> bool:
        """Whether a manifest (or a manifest parse failure) was handed in."""
        return self.blueprint.manifest is not None or self.blueprint.manifest_error is not None

    @property
    def manifest_ok(self) -> bool:
        """Whether the manifest parsed to a mapping with a non-empty service map."""
        return self.blueprint.manifest_error is None and bool(self.services)

    @property
    def variables(self) -> Any:
        """Raw ``variables`` section, or None."""
        if self.descriptor is None:
            return None
        return self.descriptor.get("variables")

    @property
    def string_variables(self) -> dict[str, str]:
        """Declared variables with string values only."""
        variables = self.variables
        if not isinstance(variables, dict):
            return {}
        return {str(k): v for k, v in variables.items() if isinstance(v, str)}

    @cached_property
    def variable_resolution(self) -> tuple[dict[str, str], dict[str, frozenset[str]]]:
        """Resolved string variables and their leftovers, computed once per run."""
        return self.resolver.resolve_variable_map_detailed(self.string_variables)

    def applies(self, group: str) -> bool:
        """Whether rules of ``group`` are meaningful for this blueprint."""
        if group == MANIFEST_STRUCTURE:
            return self.manifest_provided
        if group == MANIFEST:
            return self.manifest_ok
        if group == DESCRIPTOR:
            return self.blueprint.descriptor_error is None and self.config is not None
        return True


@runtime_checkable
class Rule(Protocol):
    """
    Protocol for all validation rules.

    Rules must be stateless and side-effect free. They receive the context
    and return a list of findings. No I/O, no network calls, no filesystem access.
    """

    @property
    def rule_id(self) -> str:
        """Unique rule identifier, e.g., TEMPLATE-002."""
        ...

    @property
    def group(self) -> str:
        """Check group gating the rule."""
        ...

    @property
    def metadata(self) -> RuleMetadata:
        """Rule metadata."""
        ...

    def check(self, context: ValidationContext) -> list[Finding]:
        """
        Check a blueprint.

        Args:
            context: The shared view of the blueprint.

        Returns:
            List of findings. Empty list if no issues found.
        """
        ...


class BaseRule:
    """
    Base class for validation rules.

    Provides common functionality for rule implementation.
    Subclasses must implement `check()` and define class attributes.
    """

    # Subclasses must override these
    rule_id: str = ""
    name: str = ""
    description: str = ""
    severity: Severity = Severity.ERROR
    group: str = DESCRIPTOR

    @property
    def metadata(self) -> RuleMetadata:
        """Generate metadata from class attributes."""
        return RuleMetadata(
            rule_id=self.rule_id,
            name=self.name,
            description=self.description,
            severity=self.severity,
            group=self.group,
        )

    @abstractmethod
    def check(self, context: ValidationContext) -> list[Finding]:
        """Check a blueprint."""
        raise NotImplementedError

    def _create_finding(
        self,
        message: str,
        location: str | None = None,
        severity: Severity | None = None,
        remediation: str | None = None,
        evidence: dict | None = None,
    ) -> Finding:
        """Helper to create a finding with this rule's metadata."""
        return Finding(
            rule_id=self.rule_id,
            severity=severity or self.severity,
            message=message,
            location=location,
            remediation=remediation,
            evidence=evidence or {},
        )

    def _error(self, message: str, location: str | None = None, **kwargs: Any) -> Finding:
        return self._create_finding(message, location, severity=Severity.ERROR, **kwargs)

    def _warning(self, message: str, location: str | None = None, **kwargs: Any) -> Finding:
        return self._create_finding(message, location, severity=Severity.WARNING, **kwargs)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.rule_id}>"
