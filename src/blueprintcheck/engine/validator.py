"""
Rule engine for blueprint validation.

Executes rules against a manifest/descriptor pair and aggregates their
findings into a validation report. Rules run in declaration order so the
report reads like the documents: manifest structure first, descriptor last.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from pydantic import ValidationError

from blueprintcheck.core.constants import RESERVED_NETWORK
from blueprintcheck.domain.exceptions import RuleError
from blueprintcheck.domain.models import Blueprint, DomainDeclaration, Finding
from blueprintcheck.domain.report import ValidationReport
from blueprintcheck.engine.resolver import VariableResolver
from blueprintcheck.rules import DEFAULT_RULES
from blueprintcheck.rules.base import ValidationContext

if TYPE_CHECKING:
    from blueprintcheck.adapters.fs import FileSystemAdapter
    from blueprintcheck.rules.base import Rule

logger = logging.getLogger(__name__)


class BlueprintValidator:
    """
    Executes validation rules against blueprints.

    A rule whose group does not apply (because the structure it depends on
    is broken) is skipped. A rule that raises is recorded as a failure and
    the run carries on.
    """

    def __init__(
        self,
        rules: list[Rule] | None = None,
        resolver: VariableResolver | None = None,
        reserved_network: str = RESERVED_NETWORK,
        disabled_rules: Iterable[str] = (),
    ) -> None:
        """
        Initialize the validator.

        Args:
            rules: Rules to execute. Defaults to DEFAULT_RULES.
            resolver: Resolver used for the resolution smoke test and preview.
            reserved_network: Network name the platform reserves for isolation.
            disabled_rules: Rule IDs that are never executed.
        """
        self.rules = rules if rules is not None else DEFAULT_RULES
        self.resolver = resolver or VariableResolver()
        self.reserved_network = reserved_network
        self.disabled_rules = frozenset(disabled_rules)

    def validate(self, blueprint: Blueprint, service_names: list[str] | None = None) -> ValidationReport:
        """
        Validate a blueprint with all configured rules.

        Args:
            blueprint: Manifest and descriptor to check.
            service_names: Known service names. Taken from the manifest when
                omitted.

        Returns:
            ValidationReport with findings in rule order.
        """
        start_time = time.perf_counter()
        context = ValidationContext(
            blueprint,
            self.resolver,
            service_names=service_names,
            reserved_network=self.reserved_network,
        )

        findings: list[Finding] = []
        executed: list[str] = []
        skipped: list[str] = []
        failures: list[str] = []

        for rule in self.rules:
            if rule.rule_id in self.disabled_rules or not context.applies(rule.group):
                skipped.append(rule.rule_id)
                continue
            try:
                findings.extend(rule.check(context))
            except Exception as e:
                error = RuleError(f"Rule {rule.rule_id} failed: {e}", rule_id=rule.rule_id)
                logger.debug("%s", error.message, exc_info=True)
                failures.append(error.message)
            executed.append(rule.rule_id)

        logger.debug("Executed %d rule(s), skipped: %s", len(executed), ", ".join(skipped) or "none")

        resolved_variables: dict[str, str] = {}
        domains: list[DomainDeclaration] = []
        if context.descriptor is not None:
            try:
                resolved_variables, _ = context.variable_resolution
                domains = self._collect_domains(context, resolved_variables)
            except Exception as e:
                message = f"Resolution preview failed: {e}"
                logger.debug("%s", message, exc_info=True)
                failures.append(message)
                resolved_variables, domains = {}, []

        duration_ms = (time.perf_counter() - start_time) * 1000

        return ValidationReport(
            target=blueprint.source,
            duration_ms=duration_ms,
            findings=findings,
            failures=failures,
            rules_executed=executed,
            rules_skipped=skipped,
            resolved_variables=resolved_variables,
            domains=domains,
            metadata={
                "rule_count": len(self.rules),
                "service_count": len(context.service_names),
                "variable_count": len(resolved_variables),
            },
        )

    def _collect_domains(
        self, context: ValidationContext, variables: dict[str, str]
    ) -> list[DomainDeclaration]:
        """Well-formed domain entries with their hosts resolved."""
        raw_domains = context.config.get("domains") if context.config else None
        if not isinstance(raw_domains, list):
            return []

        domains: list[DomainDeclaration] = []
        for entry in raw_domains:
            try:
                domain = DomainDeclaration.model_validate(entry)
            except ValidationError:
                continue
            if domain.host is not None:
                host = self.resolver.resolve_expressions(domain.host, variables).value
                domain = domain.model_copy(update={"host": host})
            domains.append(domain)
        return domains


def validate(
    descriptor: Any,
    manifest_service_names: list[str],
    resolver: VariableResolver | None = None,
) -> ValidationReport:
    """
    Validate a descriptor against a known list of service names.

    Only descriptor checks run; the domain cross-check uses the names given.
    An empty list disables the serviceName cross-check.

    Example:
        >>> report = validate({"config": {"domains": []}}, ["web"])
        >>> report.valid
        True
    """
    validator = BlueprintValidator(resolver=resolver)
    return validator.validate(Blueprint(descriptor=descriptor), service_names=manifest_service_names)


def validate_blueprint(
    descriptor: Any,
    manifest: Any,
    resolver: VariableResolver | None = None,
    reserved_network: str = RESERVED_NETWORK,
    disabled_rules: Iterable[str] = (),
    source: str = "<dict>",
) -> ValidationReport:
    """
    Validate a descriptor and a manifest together.

    This is the primary public API for in-memory documents.

    Args:
        descriptor: Parsed descriptor.
        manifest: Parsed manifest.
        resolver: Resolver for the smoke test and preview.
        reserved_network: Reserved isolation network name.
        disabled_rules: Rule IDs to skip.
        source: Label used as the report target.

    Returns:
        ValidationReport with all findings.
    """
    validator = BlueprintValidator(
        resolver=resolver,
        reserved_network=reserved_network,
        disabled_rules=disabled_rules,
    )
    blueprint = Blueprint(source=source, manifest=manifest, descriptor=descriptor)
    return validator.validate(blueprint)


def validate_blueprint_dir(
    path: str | Path,
    resolver: VariableResolver | None = None,
    reserved_network: str = RESERVED_NETWORK,
    disabled_rules: Iterable[str] = (),
    adapter: FileSystemAdapter | None = None,
) -> ValidationReport:
    """
    Load and validate the blueprint stored in a directory.

    Unreadable or unparsable files are reported as a single error of the
    check group that needs them; they do not raise.
    """
    from blueprintcheck.adapters.fs import FileSystemAdapter

    adapter = adapter or FileSystemAdapter()
    blueprint = adapter.load_blueprint(path)
    validator = BlueprintValidator(
        resolver=resolver,
        reserved_network=reserved_network,
        disabled_rules=disabled_rules,
    )
    return validator.validate(blueprint)
