"""
Compose manifest rules.

Checks the service definitions for constructs the deployment platform
manages on its own (container names, networks, published ports) and for
naming conventions.

Rules:
- COMPOSE-001: Manifest structure
- COMPOSE-002: Fixed container name
- COMPOSE-003: Explicit network configuration
- COMPOSE-004: Host port mapping
- COMPOSE-005: Service naming convention
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from blueprintcheck.core.constants import PORT_MAPPING_RE
from blueprintcheck.domain.models import Finding, Severity
from blueprintcheck.rules.base import MANIFEST, MANIFEST_STRUCTURE, BaseRule

if TYPE_CHECKING:
    from blueprintcheck.rules.base import ValidationContext

logger = logging.getLogger(__name__)


class ManifestStructure(BaseRule):
    """
    COMPOSE-001: The manifest must be a mapping with a non-empty service map.

    When this fails every other manifest rule is skipped, but descriptor
    rules still run.
    """

    rule_id = "COMPOSE-001"
    name = "Manifest structure"
    description = "Manifest parses to an object with at least one service"
    severity = Severity.ERROR
    group = MANIFEST_STRUCTURE

    def check(self, context: ValidationContext) -> list[Finding]:
        blueprint = context.blueprint

        if blueprint.manifest_error is not None:
            return [self._error(f"Failed to parse manifest: {blueprint.manifest_error}", "manifest")]

        if context.manifest is None:
            return [self._error("Invalid manifest structure: expected an object", "manifest")]

        if not context.services:
            return [
                self._error(
                    "No services found in manifest",
                    "services",
                    remediation="Define at least one service under 'services'.",
                )
            ]

        logger.debug(
            "Found %d service(s): %s",
            len(context.services),
            ", ".join(context.service_names),
        )
        return []


class ContainerNameForbidden(BaseRule):
    """
    COMPOSE-002: Services must not pin ``container_name``.

    The platform names containers itself; a fixed name collides as soon as
    the blueprint is deployed twice.
    """

    rule_id = "COMPOSE-002"
    name = "Fixed container name"
    description = "Detects services that set container_name"
    severity = Severity.ERROR
    group = MANIFEST

    def check(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []

        for service_name, service in context.services.items():
            if isinstance(service, dict) and service.get("container_name"):
                findings.append(
                    self._error(
                        f"Service '{service_name}': Found 'container_name' field. "
                        f"Container names are managed automatically and must not be set.",
                        f"services.{service_name}.container_name",
                        remediation="Remove the container_name field.",
                        evidence={"container_name": service["container_name"]},
                    )
                )

        return findings


class ExplicitNetworks(BaseRule):
    """
    COMPOSE-003: Networks are managed by the platform.

    Referencing the reserved isolation network, or declaring any other
    network, conflicts with the implicit isolation.
    """

    rule_id = "COMPOSE-003"
    name = "Explicit network configuration"
    description = "Detects explicit service or top-level network configuration"
    severity = Severity.ERROR
    group = MANIFEST

    def check(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        reserved = context.reserved_network

        for service_name, service in context.services.items():
            if not isinstance(service, dict):
                continue
            networks = self._network_names(service.get("networks"))
            if not networks:
                continue

            location = f"services.{service_name}.networks"
            if reserved in networks:
                message = (
                    f"Service '{service_name}': Uses '{reserved}'. Networks are created "
                    f"automatically, explicit networks are not needed."
                )
            else:
                message = (
                    f"Service '{service_name}': Uses explicit network configuration. "
                    f"Networks are created automatically, explicit networks are not needed."
                )
            findings.append(
                self._error(
                    message,
                    location,
                    remediation="Remove the networks key from the service.",
                    evidence={"networks": networks},
                )
            )

        top_level = self._network_names(context.manifest.get("networks") if context.manifest else None)
        if top_level:
            if reserved in top_level:
                message = (
                    f"Found '{reserved}' in networks section. Networks are created "
                    f"automatically, explicit networks are not needed."
                )
            else:
                message = (
                    "Found explicit networks section. Networks are created automatically, "
                    "explicit networks are not needed."
                )
            findings.append(self._error(message, "networks", evidence={"networks": top_level}))

        return findings

    @staticmethod
    def _network_names(networks: Any) -> list[str]:
        if isinstance(networks, dict):
            return [str(name) for name in networks]
        if isinstance(networks, list):
            return [str(name) for name in networks]
        return []


class PortMapping(BaseRule):
    """
    COMPOSE-004: Only container-side ports may be declared.

    ``"8080:80"`` strings and long-form entries with both ``published`` and
    ``target`` bind host ports, which the platform's router handles instead.
    """

    rule_id = "COMPOSE-004"
    name = "Host port mapping"
    description = "Detects host:container port mappings"
    severity = Severity.ERROR
    group = MANIFEST

    def check(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []

        for service_name, service in context.services.items():
            if not isinstance(service, dict):
                continue
            ports = service.get("ports")
            if not isinstance(ports, list):
                continue

            for index, port in enumerate(ports):
                location = f"services.{service_name}.ports[{index}]"
                if isinstance(port, str) and PORT_MAPPING_RE.match(port):
                    container_port = port.rsplit(":", 1)[-1]
                    findings.append(
                        self._error(
                            f"Service '{service_name}': ports[{index}] uses port mapping format "
                            f"'{port}'. Use only the container port (e.g., '{container_port}').",
                            location,
                            evidence={"port": port},
                        )
                    )
                elif isinstance(port, dict) and port.get("published") and port.get("target"):
                    findings.append(
                        self._error(
                            f"Service '{service_name}': ports[{index}] uses port mapping "
                            f"(published: {port['published']}, target: {port['target']}). "
                            f"Use only the container port.",
                            location,
                            evidence={"published": port["published"], "target": port["target"]},
                        )
                    )

        return findings


class ServiceNaming(BaseRule):
    """COMPOSE-005: Service keys should be lowercase and hyphenated."""

    rule_id = "COMPOSE-005"
    name = "Service naming convention"
    description = "Warns about uppercase or underscored service names"
    severity = Severity.WARNING
    group = MANIFEST

    def check(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []

        for service_name in map(str, context.services):
            location = f"services.{service_name}"
            if service_name != service_name.lower():
                findings.append(
                    self._warning(
                        f"Service '{service_name}': Service names should be lowercase. "
                        f"Consider using '{service_name.lower()}'.",
                        location,
                    )
                )
            if "_" in service_name:
                findings.append(
                    self._warning(
                        f"Service '{service_name}': Service names should use hyphens instead "
                        f"of underscores. Consider using '{service_name.replace('_', '-')}'.",
                        location,
                    )
                )

        return findings
