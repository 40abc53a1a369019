"""
Template descriptor rules.

Checks the descriptor's own structure (domains, env, mounts, variables)
and its referential consistency with the manifest's services, then runs
the resolver over every templated field to surface broken references.

Rules:
- TEMPLATE-001: Config section
- TEMPLATE-002: Domain declarations
- TEMPLATE-003: Environment declarations
- TEMPLATE-004: Mount declarations
- TEMPLATE-005: Variable declarations
- TEMPLATE-006: Resolution smoke test
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from blueprintcheck.core.constants import EXPRESSION_RE, LENGTH_ARG_RE, MAX_PORT, MIN_PORT
from blueprintcheck.domain.models import Finding, Severity
from blueprintcheck.engine.resolver import check_helper
from blueprintcheck.rules.base import DESCRIPTOR, DESCRIPTOR_STRUCTURE, BaseRule

if TYPE_CHECKING:
    from blueprintcheck.rules.base import ValidationContext


def _format_fragments(bodies: frozenset[str]) -> str:
    return ", ".join("${" + body + "}" for body in sorted(bodies))


class ConfigSection(BaseRule):
    """
    TEMPLATE-001: The descriptor must carry a ``config`` section.

    Without it no other descriptor rule runs.
    """

    rule_id = "TEMPLATE-001"
    name = "Config section"
    description = "Descriptor parses to an object with a config section"
    severity = Severity.ERROR
    group = DESCRIPTOR_STRUCTURE

    def check(self, context: ValidationContext) -> list[Finding]:
        blueprint = context.blueprint

        if blueprint.descriptor_error is not None:
            return [self._error(f"Failed to parse descriptor: {blueprint.descriptor_error}", "descriptor")]

        if context.descriptor is None:
            return [self._error("Invalid descriptor structure: expected an object", "descriptor")]

        config = context.descriptor.get("config")
        if config is None:
            return [
                self._error(
                    "Missing [config] section in descriptor",
                    "config",
                    remediation="Add a [config] table with domains, env and mounts.",
                )
            ]
        if not isinstance(config, dict):
            return [self._error("config must be an object", "config")]

        return []


class DomainDeclarations(BaseRule):
    """
    TEMPLATE-002: Domain entries must point at a real service and port.

    Hosts should be templated; a static host collides across deployments.
    """

    rule_id = "TEMPLATE-002"
    name = "Domain declarations"
    description = "Checks required fields, service references, ports and host templates"
    severity = Severity.ERROR
    group = DESCRIPTOR

    def check(self, context: ValidationContext) -> list[Finding]:
        domains = context.config.get("domains") if context.config else None

        if domains is None:
            return [self._warning("No domains configured in descriptor", "config.domains")]
        if not isinstance(domains, list):
            return [self._error("config.domains must be an array", "config.domains")]

        findings: list[Finding] = []
        for index, domain in enumerate(domains):
            findings.extend(self._check_domain(index, domain, context.service_names))
        return findings

    def _check_domain(self, index: int, domain: Any, service_names: list[str]) -> list[Finding]:
        prefix = f"domain[{index}]"
        if not isinstance(domain, dict):
            return [self._error(f"{prefix}: must be an object", prefix)]

        findings: list[Finding] = []
        service_name = domain.get("serviceName")
        port = domain.get("port")

        if not service_name:
            findings.append(self._error(f"{prefix}: Missing required field 'serviceName'", f"{prefix}.serviceName"))
        if port is None:
            findings.append(self._error(f"{prefix}: Missing required field 'port'", f"{prefix}.port"))

        if service_name and service_names and service_name not in service_names:
            findings.append(
                self._error(
                    f"{prefix}: serviceName '{service_name}' not found in manifest services. "
                    f"Available services: {', '.join(service_names)}",
                    f"{prefix}.serviceName",
                    evidence={"service_name": service_name, "available": list(service_names)},
                )
            )

        if port is not None and self._parse_port(port) is None:
            findings.append(
                self._warning(
                    f"{prefix}: port '{port}' may be invalid (should be {MIN_PORT}-{MAX_PORT})",
                    f"{prefix}.port",
                )
            )

        host = domain.get("host")
        if isinstance(host, str):
            if "${" not in host:
                findings.append(
                    self._warning(
                        f"{prefix}: host '{host}' doesn't use variable syntax "
                        "(e.g., ${main_domain} or ${domain})",
                        f"{prefix}.host",
                        remediation="Declare a variable such as main_domain = \"${domain}\" and use it as host.",
                    )
                )
            else:
                for body in EXPRESSION_RE.findall(host):
                    problem = check_helper(body)
                    if problem:
                        findings.append(self._warning(f"{prefix}.host: {problem}", f"{prefix}.host"))

        return findings

    @staticmethod
    def _parse_port(port: Any) -> int | None:
        """Port number within range, or None."""
        if isinstance(port, bool):
            return None
        if isinstance(port, str):
            match = LENGTH_ARG_RE.match(port.replace("_", ""))
            if not match:
                return None
            value: float = int(match.group(1))
        elif isinstance(port, (int, float)):
            value = port
        else:
            return None
        if MIN_PORT <= value <= MAX_PORT:
            return int(value)
        return None


class EnvDeclarations(BaseRule):
    """
    TEMPLATE-003: Environment entries in either list or mapping form.

    List entries may be ``KEY=VALUE`` strings, objects fanning out to
    several pairs, booleans or numbers. Both forms are equally valid.
    """

    rule_id = "TEMPLATE-003"
    name = "Environment declarations"
    description = "Checks env entries are KEY=VALUE strings, objects or scalars"
    severity = Severity.ERROR
    group = DESCRIPTOR

    def check(self, context: ValidationContext) -> list[Finding]:
        if context.config is None or "env" not in context.config:
            return []

        env = context.config["env"]
        findings: list[Finding] = []

        if isinstance(env, list):
            for index, entry in enumerate(env):
                location = f"config.env[{index}]"
                if isinstance(entry, str):
                    if "=" not in entry:
                        findings.append(
                            self._warning(f"{location}: '{entry}' doesn't follow KEY=VALUE format", location)
                        )
                elif isinstance(entry, dict):
                    if not entry:
                        findings.append(self._warning(f"{location}: empty object", location))
                elif not isinstance(entry, (bool, int, float)):
                    findings.append(
                        self._error(f"{location}: must be a string, object, boolean, or number", location)
                    )
        elif isinstance(env, dict):
            if not env:
                findings.append(self._warning("config.env is an empty object", "config.env"))
        else:
            findings.append(self._error("config.env must be an array or an object", "config.env"))

        return findings


class MountDeclarations(BaseRule):
    """TEMPLATE-004: Mounts need a non-empty string filePath and string content."""

    rule_id = "TEMPLATE-004"
    name = "Mount declarations"
    description = "Checks mounts carry filePath and content strings"
    severity = Severity.ERROR
    group = DESCRIPTOR

    def check(self, context: ValidationContext) -> list[Finding]:
        mounts = context.config.get("mounts") if context.config else None
        if mounts is None:
            return []
        if not isinstance(mounts, list):
            return [self._error("config.mounts must be an array", "config.mounts")]

        findings: list[Finding] = []
        for index, mount in enumerate(mounts):
            prefix = f"config.mounts[{index}]"
            if not isinstance(mount, dict):
                findings.append(self._error(f"{prefix}: must be an object", prefix))
                continue

            file_path = mount.get("filePath")
            if file_path is None or file_path == "":
                findings.append(self._error(f"{prefix}: Missing required field 'filePath'", f"{prefix}.filePath"))
            elif not isinstance(file_path, str):
                findings.append(self._error(f"{prefix}: filePath must be a string", f"{prefix}.filePath"))

            content = mount.get("content")
            if content is None:
                findings.append(self._error(f"{prefix}: Missing required field 'content'", f"{prefix}.content"))
            elif not isinstance(content, str):
                findings.append(self._error(f"{prefix}: content must be a string", f"{prefix}.content"))

        return findings


class VariableDeclarations(BaseRule):
    """
    TEMPLATE-005: Variables form a flat map of strings.

    Unknown expression names are not flagged here: a name that is neither a
    helper nor declared may be a typo or a forward reference, and the
    resolution smoke test is the one that decides.
    """

    rule_id = "TEMPLATE-005"
    name = "Variable declarations"
    description = "Checks variables are strings and helper parameters are well-formed"
    severity = Severity.ERROR
    group = DESCRIPTOR

    def check(self, context: ValidationContext) -> list[Finding]:
        variables = context.variables
        if variables is None:
            return []
        if not isinstance(variables, dict):
            return [self._error("variables must be an object", "variables")]

        findings: list[Finding] = []
        for key, value in variables.items():
            location = f"variables.{key}"
            if not isinstance(value, str):
                findings.append(self._error(f"{location}: must be a string", location))
                continue
            for body in EXPRESSION_RE.findall(value):
                problem = check_helper(body)
                if problem:
                    findings.append(self._warning(f"{location}: {problem}", location))

        return findings


class ResolutionSmokeTest(BaseRule):
    """
    TEMPLATE-006: Every templated field must resolve.

    Resolves the declared variables, then every domain host, env value and
    mount field against them. Leftover ``${...}`` fragments are warnings:
    they usually mean a reference to an undeclared variable.
    """

    rule_id = "TEMPLATE-006"
    name = "Resolution smoke test"
    description = "Resolves all templated fields and reports leftover expressions"
    severity = Severity.WARNING
    group = DESCRIPTOR

    def check(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        declared = context.variables if isinstance(context.variables, dict) else {}
        resolved, leftovers = context.variable_resolution

        for key, bodies in leftovers.items():
            for body in sorted(bodies):
                if body in declared or ":" in body:
                    continue
                findings.append(
                    self._warning(
                        f"variables.{key}: contains unresolved variable reference '${{{body}}}'",
                        f"variables.{key}",
                        evidence={"fragment": body},
                    )
                )

        config = context.config or {}

        def probe(location: str, text: str, message: str) -> None:
            result = context.resolver.resolve_expressions(text, resolved)
            if result.unresolved:
                findings.append(
                    self._warning(
                        f"{location}: {message} ({_format_fragments(result.unresolved)})",
                        location,
                        evidence={"unresolved": sorted(result.unresolved), "result": result.value},
                    )
                )

        domains = config.get("domains")
        for index, domain in enumerate(domains if isinstance(domains, list) else []):
            if isinstance(domain, dict) and isinstance(domain.get("host"), str):
                probe(f"domain[{index}].host", domain["host"], "could not fully resolve all variables")

        env = config.get("env")
        if isinstance(env, list):
            for index, entry in enumerate(env):
                if isinstance(entry, str):
                    probe(f"config.env[{index}]", entry, "could not fully resolve all variables")
        elif isinstance(env, dict):
            for key, value in env.items():
                if isinstance(value, str):
                    probe(f"config.env.{key}", value, "could not fully resolve all variables")

        mounts = config.get("mounts")
        for index, mount in enumerate(mounts if isinstance(mounts, list) else []):
            if not isinstance(mount, dict):
                continue
            for field in ("filePath", "content"):
                if isinstance(mount.get(field), str):
                    probe(f"config.mounts[{index}].{field}", mount[field], "could not fully resolve all variables")

        return findings
