"""
Pytest configuration and shared fixtures for blueprintcheck tests.
"""

from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from blueprintcheck.domain.models import Finding, Severity
from blueprintcheck.domain.report import ValidationReport
from blueprintcheck.engine.entropy import SeededRandom
from blueprintcheck.engine.resolver import VariableResolver


# --- Markers ---

def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# --- Fixtures: Resolver ---

FIXED_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-01-01T00:00:00Z."""
    return lambda: FIXED_NOW


@pytest.fixture
def resolver(fixed_clock) -> VariableResolver:
    """Resolver with a seeded random source and a fixed clock."""
    return VariableResolver(rng=SeededRandom(1234), clock=fixed_clock)


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep config discovery and env overrides out of every test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BLUEPRINTCHECK_CONFIG", raising=False)
    for name in ("BLUEPRINTCHECK_VERBOSE", "BLUEPRINTCHECK_NO_COLOR"):
        monkeypatch.delenv(name, raising=False)


# --- Fixtures: Documents ---

@pytest.fixture
def sample_manifest() -> dict[str, Any]:
    """A compose manifest with a single well-formed service."""
    return {
        "services": {
            "web": {
                "image": "nginx",
                "ports": [80],
            },
        },
    }


@pytest.fixture
def sample_descriptor() -> dict[str, Any]:
    """A descriptor that validates with no errors and no warnings."""
    return {
        "variables": {
            "main_domain": "${domain}",
        },
        "config": {
            "domains": [
                {"serviceName": "web", "port": 80, "host": "${main_domain}"},
            ],
            "env": ["K=V"],
            "mounts": [],
        },
    }


@pytest.fixture
def full_descriptor() -> dict[str, Any]:
    """A descriptor exercising helpers, env forms and mounts."""
    return {
        "variables": {
            "main_domain": "${domain}",
            "db_password": "${password:24}",
            "secret_key": "${base64:48}",
            "db_url": "postgres://app:${db_password}@db:5432/app",
        },
        "config": {
            "domains": [
                {"serviceName": "web", "port": 3000, "host": "${main_domain}", "path": "/"},
            ],
            "env": [
                "DATABASE_URL=${db_url}",
                "SECRET_KEY=${secret_key}",
            ],
            "mounts": [
                {"filePath": "/etc/app/config.yml", "content": "host: ${main_domain}\n"},
            ],
        },
    }


# --- Fixtures: Files ---

COMPOSE_YAML = textwrap.dedent(
    """\
    services:
      web:
        image: nginx
        ports:
          - 80
    """
)

TEMPLATE_TOML = textwrap.dedent(
    """\
    [variables]
    main_domain = "${domain}"

    [config]
    env = ["K=V"]
    mounts = []

    [[config.domains]]
    serviceName = "web"
    port = 80
    host = "${main_domain}"
    """
)


def write_blueprint(directory: Path, compose: str | None = COMPOSE_YAML, template: str | None = TEMPLATE_TOML) -> Path:
    """Write a blueprint directory and return it."""
    directory.mkdir(parents=True, exist_ok=True)
    if compose is not None:
        (directory / "docker-compose.yml").write_text(compose, encoding="utf-8")
    if template is not None:
        (directory / "template.toml").write_text(template, encoding="utf-8")
    return directory


@pytest.fixture
def make_blueprint():
    """Factory writing a blueprint directory from raw file contents."""
    return write_blueprint


@pytest.fixture
def blueprint_dir(tmp_path: Path) -> Path:
    """A valid blueprint directory."""
    return write_blueprint(tmp_path / "blueprints" / "nginx")


@pytest.fixture
def blueprints_root(tmp_path: Path) -> Path:
    """A directory with one valid and one invalid blueprint."""
    root = tmp_path / "blueprints"
    write_blueprint(root / "nginx")
    write_blueprint(
        root / "broken",
        template=TEMPLATE_TOML.replace('serviceName = "web"', 'serviceName = "worker"'),
    )
    return root


# --- Fixtures: Reports ---

@pytest.fixture
def sample_finding() -> Finding:
    """A sample error finding."""
    return Finding(
        rule_id="TEMPLATE-002",
        severity=Severity.ERROR,
        message="domain[0]: Missing required field 'port'",
        location="domain[0].port",
    )


@pytest.fixture
def sample_warning() -> Finding:
    """A sample warning finding."""
    return Finding(
        rule_id="COMPOSE-005",
        severity=Severity.WARNING,
        message="Service 'Web': Service names should be lowercase. Consider using 'web'.",
        location="services.Web",
    )


@pytest.fixture
def sample_report(sample_finding: Finding, sample_warning: Finding) -> ValidationReport:
    """A report with one error and one warning."""
    return ValidationReport(
        target="blueprints/nginx",
        findings=[sample_finding, sample_warning],
        rules_executed=["TEMPLATE-002", "COMPOSE-005"],
    )
