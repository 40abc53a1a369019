"""
Validation rules for blueprintcheck.

Each rule is an independent, testable unit that checks one aspect of a
blueprint. Order matters: findings are reported in rule order, so the
structural checks come first in each group.
"""

from blueprintcheck.rules.base import (
    DESCRIPTOR,
    DESCRIPTOR_STRUCTURE,
    MANIFEST,
    MANIFEST_STRUCTURE,
    BaseRule,
    Rule,
    ValidationContext,
)
from blueprintcheck.rules.manifest import (
    ManifestStructure,
    ContainerNameForbidden,
    ExplicitNetworks,
    PortMapping,
    ServiceNaming,
)
from blueprintcheck.rules.descriptor import (
    ConfigSection,
    DomainDeclarations,
    EnvDeclarations,
    MountDeclarations,
    VariableDeclarations,
    ResolutionSmokeTest,
)

DEFAULT_RULES: list[Rule] = [
    # Manifest rules
    ManifestStructure(),
    ContainerNameForbidden(),
    ExplicitNetworks(),
    PortMapping(),
    ServiceNaming(),
    # Descriptor rules
    ConfigSection(),
    DomainDeclarations(),
    EnvDeclarations(),
    MountDeclarations(),
    VariableDeclarations(),
    ResolutionSmokeTest(),
]

__all__ = [
    # Base
    "BaseRule",
    "Rule",
    "ValidationContext",
    "MANIFEST_STRUCTURE",
    "MANIFEST",
    "DESCRIPTOR_STRUCTURE",
    "DESCRIPTOR",
    # Manifest
    "ManifestStructure",
    "ContainerNameForbidden",
    "ExplicitNetworks",
    "PortMapping",
    "ServiceNaming",
    # Descriptor
    "ConfigSection",
    "DomainDeclarations",
    "EnvDeclarations",
    "MountDeclarations",
    "VariableDeclarations",
    "ResolutionSmokeTest",
    # Ruleset
    "DEFAULT_RULES",
]
