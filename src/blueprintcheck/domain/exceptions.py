"""
Exception hierarchy for blueprintcheck.

All exceptions inherit from BlueprintCheckError for easy catching. The
resolver and the rules never raise these for malformed input data; they
belong to the loading, configuration and rule-engine layers.
"""

from __future__ import annotations


class BlueprintCheckError(Exception):
    """Base exception for all blueprintcheck errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BlueprintParseError(BlueprintCheckError):
    """Raised when a manifest or descriptor file cannot be read or parsed."""

    def __init__(self, message: str, source: str | None = None, line: int | None = None) -> None:
        super().__init__(message, {"source": source, "line": line})
        self.source = source
        self.line = line


class RuleError(BlueprintCheckError):
    """Raised when a rule fails to execute."""

    def __init__(self, message: str, rule_id: str) -> None:
        super().__init__(message, {"rule_id": rule_id})
        self.rule_id = rule_id


class ConfigError(BlueprintCheckError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: str | None = None) -> None:
        super().__init__(message, {"config_key": config_key})
        self.config_key = config_key
