"""
Unit tests for compose manifest rules.
"""

from __future__ import annotations

from typing import Any

import pytest

from blueprintcheck.domain.models import Blueprint, Severity
from blueprintcheck.engine.resolver import VariableResolver
from blueprintcheck.rules.base import MANIFEST, MANIFEST_STRUCTURE, ValidationContext
from blueprintcheck.rules.manifest import (
    ContainerNameForbidden,
    ExplicitNetworks,
    ManifestStructure,
    PortMapping,
    ServiceNaming,
)


def _context(manifest: Any = None, manifest_error: str | None = None, **kwargs: Any) -> ValidationContext:
    blueprint = Blueprint(manifest=manifest, manifest_error=manifest_error, descriptor={"config": {}})
    return ValidationContext(blueprint, VariableResolver(), **kwargs)


def _service(**fields: Any) -> dict[str, Any]:
    return {"services": {"web": {"image": "nginx", **fields}}}


class TestManifestStructure:
    """Tests for COMPOSE-001."""

    @pytest.fixture
    def rule(self) -> ManifestStructure:
        return ManifestStructure()

    def test_valid_manifest(self, rule: ManifestStructure, sample_manifest: dict) -> None:
        """A manifest with services passes."""
        assert rule.check(_context(sample_manifest)) == []

    def test_parse_error(self, rule: ManifestStructure) -> None:
        """A parse failure is a single error."""
        findings = rule.check(_context(manifest_error="Invalid YAML: mapping values are not allowed"))
        assert len(findings) == 1
        assert findings[0].message.startswith("Failed to parse manifest")

    @pytest.mark.parametrize("manifest", [["services"], "services: {}", 42])
    def test_not_an_object(self, rule: ManifestStructure, manifest: Any) -> None:
        """Non-mapping documents are rejected."""
        findings = rule.check(_context(manifest))
        assert len(findings) == 1
        assert "expected an object" in findings[0].message

    @pytest.mark.parametrize("manifest", [{}, {"services": {}}, {"services": ["web"]}, {"version": "3"}])
    def test_no_services(self, rule: ManifestStructure, manifest: dict) -> None:
        """A missing or empty service map is an error."""
        findings = rule.check(_context(manifest))
        assert [f.message for f in findings] == ["No services found in manifest"]
        assert findings[0].severity == Severity.ERROR

    def test_gates(self, sample_manifest: dict) -> None:
        """Dependent manifest rules only apply to a sound manifest."""
        assert _context(sample_manifest).applies(MANIFEST)
        assert not _context({"services": {}}).applies(MANIFEST)
        assert not _context(manifest_error="boom").applies(MANIFEST)
        assert not _context().applies(MANIFEST_STRUCTURE)


class TestContainerNameForbidden:
    """Tests for COMPOSE-002."""

    def test_container_name_is_error(self) -> None:
        """container_name on a service is an error."""
        findings = ContainerNameForbidden().check(_context(_service(container_name="my-web")))
        assert len(findings) == 1
        assert "Service 'web'" in findings[0].message
        assert "container_name" in findings[0].message
        assert findings[0].location == "services.web.container_name"

    def test_no_container_name(self, sample_manifest: dict) -> None:
        """Services without container_name pass."""
        assert ContainerNameForbidden().check(_context(sample_manifest)) == []


class TestExplicitNetworks:
    """Tests for COMPOSE-003."""

    @pytest.fixture
    def rule(self) -> ExplicitNetworks:
        return ExplicitNetworks()

    @pytest.mark.parametrize("networks", [["dokploy-network"], {"dokploy-network": {}}])
    def test_reserved_network(self, rule: ExplicitNetworks, networks: Any) -> None:
        """The reserved network is called out by name."""
        findings = rule.check(_context(_service(networks=networks)))
        assert len(findings) == 1
        assert "Uses 'dokploy-network'" in findings[0].message

    @pytest.mark.parametrize("networks", [["backend"], {"backend": None}])
    def test_other_network(self, rule: ExplicitNetworks, networks: Any) -> None:
        """Any other explicit network is also an error."""
        findings = rule.check(_context(_service(networks=networks)))
        assert len(findings) == 1
        assert "explicit network configuration" in findings[0].message

    @pytest.mark.parametrize("networks", [[], {}, None])
    def test_empty_networks(self, rule: ExplicitNetworks, networks: Any) -> None:
        """Empty network declarations pass."""
        assert rule.check(_context(_service(networks=networks))) == []

    def test_top_level_networks(self, rule: ExplicitNetworks, sample_manifest: dict) -> None:
        """A top-level networks section is a single error."""
        manifest = {**sample_manifest, "networks": {"backend": {}, "frontend": {}}}
        findings = rule.check(_context(manifest))
        assert len(findings) == 1
        assert findings[0].location == "networks"

    def test_top_level_reserved_network(self, rule: ExplicitNetworks, sample_manifest: dict) -> None:
        """The top-level message names the reserved network."""
        manifest = {**sample_manifest, "networks": {"dokploy-network": {"external": True}}}
        findings = rule.check(_context(manifest))
        assert "Found 'dokploy-network' in networks section" in findings[0].message

    def test_configurable_reserved_network(self, rule: ExplicitNetworks) -> None:
        """The reserved network name comes from the context."""
        findings = rule.check(_context(_service(networks=["platform"]), reserved_network="platform"))
        assert "Uses 'platform'" in findings[0].message


class TestPortMapping:
    """Tests for COMPOSE-004."""

    @pytest.fixture
    def rule(self) -> PortMapping:
        return PortMapping()

    def test_string_mapping(self, rule: PortMapping) -> None:
        """host:container strings are errors naming the container port."""
        findings = rule.check(_context(_service(ports=["8080:80"])))
        assert len(findings) == 1
        assert "ports[0] uses port mapping format '8080:80'" in findings[0].message
        assert "'80'" in findings[0].message

    def test_long_form_mapping(self, rule: PortMapping) -> None:
        """Long-form entries with published and target are errors."""
        findings = rule.check(_context(_service(ports=[{"published": 8080, "target": 80}])))
        assert len(findings) == 1
        assert "published: 8080, target: 80" in findings[0].message

    @pytest.mark.parametrize("ports", [[80], ["80"], [{"target": 80}], ["3000/tcp"]])
    def test_container_ports_pass(self, rule: PortMapping, ports: list) -> None:
        """Container-only ports pass."""
        assert rule.check(_context(_service(ports=ports))) == []

    def test_each_entry_reported(self, rule: PortMapping) -> None:
        """Every offending entry gets its own error."""
        findings = rule.check(_context(_service(ports=["80:80", 443, "8443:443"])))
        assert [f.location for f in findings] == ["services.web.ports[0]", "services.web.ports[2]"]


class TestServiceNaming:
    """Tests for COMPOSE-005."""

    @pytest.fixture
    def rule(self) -> ServiceNaming:
        return ServiceNaming()

    def test_uppercase_warning(self, rule: ServiceNaming) -> None:
        """Uppercase names are warnings suggesting the lowercase form."""
        findings = rule.check(_context({"services": {"Web": {}}}))
        assert len(findings) == 1
        assert findings[0].severity == Severity.WARNING
        assert "'web'" in findings[0].message

    def test_underscore_warning(self, rule: ServiceNaming) -> None:
        """Underscores are warnings suggesting hyphens."""
        findings = rule.check(_context({"services": {"my_app": {}}}))
        assert len(findings) == 1
        assert "'my-app'" in findings[0].message

    def test_both_warnings(self, rule: ServiceNaming) -> None:
        """A name can trigger both warnings."""
        assert len(rule.check(_context({"services": {"My_App": {}}}))) == 2

    def test_conventional_name(self, rule: ServiceNaming) -> None:
        """Lowercase hyphenated names pass."""
        assert rule.check(_context({"services": {"my-app": {}}})) == []
