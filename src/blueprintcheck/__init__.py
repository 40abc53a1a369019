"""
blueprintcheck: templating and consistency checks for deployment blueprints

A blueprint pairs a compose manifest (``docker-compose.yml``) with a
descriptor (``template.toml``) whose ``${...}`` expressions expand into
domains, environment variables and mounted files at deploy time.

Usage:
    # CLI
    $ blueprintcheck validate ./blueprints/grafana

    # Python API
    from blueprintcheck import validate_blueprint, resolve_variable_map

    report = validate_blueprint(descriptor, manifest)
    if not report.valid:
        print(report.errors)

    variables = resolve_variable_map({"password": "${password:32}"})
"""

from blueprintcheck.domain.models import (
    Blueprint,
    BlueprintPreview,
    DomainSchema,
    Finding,
    Severity,
)
from blueprintcheck.domain.report import ReportSummary, ValidationReport
from blueprintcheck.engine.resolver import (
    VariableResolver,
    resolve_all_expressions,
    resolve_helper,
    resolve_variable_map,
)
from blueprintcheck.engine.validator import (
    BlueprintValidator,
    validate,
    validate_blueprint,
    validate_blueprint_dir,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Domain models
    "Blueprint",
    "BlueprintPreview",
    "DomainSchema",
    "Finding",
    "Severity",
    # Reports
    "ReportSummary",
    "ValidationReport",
    # Resolver
    "VariableResolver",
    "resolve_all_expressions",
    "resolve_helper",
    "resolve_variable_map",
    # Validator
    "BlueprintValidator",
    "validate",
    "validate_blueprint",
    "validate_blueprint_dir",
]
