"""
Unit tests for settings and logging configuration.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

import pytest

from blueprintcheck.config import CheckSettings, configure_logging, find_config, render_default_config
from blueprintcheck.domain.exceptions import ConfigError


def _write_config(directory: Path, content: str) -> Path:
    path = directory / ".blueprintcheck.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestFindConfig:
    """Tests for config discovery."""

    def test_walks_up(self, tmp_path: Path) -> None:
        """The nearest config file above the start directory wins."""
        config = _write_config(tmp_path, "")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == config.resolve()

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """BLUEPRINTCHECK_CONFIG takes precedence over discovery."""
        other = tmp_path / "custom.toml"
        other.write_text("", encoding="utf-8")
        monkeypatch.setenv("BLUEPRINTCHECK_CONFIG", str(other))
        assert find_config(tmp_path) == other

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A dangling BLUEPRINTCHECK_CONFIG disables discovery."""
        _write_config(tmp_path, "")
        monkeypatch.setenv("BLUEPRINTCHECK_CONFIG", str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None


class TestCheckSettings:
    """Tests for the merged settings object."""

    def test_defaults(self, tmp_path: Path) -> None:
        """Code defaults apply without a config file."""
        settings = CheckSettings.load(start=tmp_path)
        assert settings.check.fail_on_warnings is False
        assert settings.check.disabled_rules == []
        assert settings.check.reserved_network == "dokploy-network"
        assert settings.output.format == "terminal"
        assert settings.resolve.domain is None

    def test_toml_values(self, tmp_path: Path) -> None:
        """Values come from the discovered TOML file."""
        path = _write_config(
            tmp_path,
            '[check]\nfail_on_warnings = true\ndisabled_rules = ["COMPOSE-005"]\n\n'
            '[resolve]\ndomain = "apps.example.org"\n',
        )
        settings = CheckSettings.load(start=tmp_path)

        assert settings.config_path == path.resolve()
        assert settings.check.fail_on_warnings is True
        assert settings.check.disabled_rules == ["COMPOSE-005"]
        assert settings.resolve.domain == "apps.example.org"

    def test_explicit_path(self, tmp_path: Path) -> None:
        """An explicit config path is used as given."""
        path = tmp_path / "ci.toml"
        path.write_text('[output]\nformat = "json"\n', encoding="utf-8")
        assert CheckSettings.load(config_path=path).output.format == "json"

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        """A missing explicit config file is an error."""
        with pytest.raises(ConfigError):
            CheckSettings.load(config_path=tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigError."""
        _write_config(tmp_path, "[check\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            CheckSettings.load(start=tmp_path)

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Env vars beat the TOML file; untouched keys keep their TOML value."""
        _write_config(tmp_path, '[check]\nfail_on_warnings = true\ndisabled_rules = ["COMPOSE-005"]\n')
        monkeypatch.setenv("BLUEPRINTCHECK_CHECK__FAIL_ON_WARNINGS", "false")
        settings = CheckSettings.load(start=tmp_path)

        assert settings.check.fail_on_warnings is False
        assert settings.check.disabled_rules == ["COMPOSE-005"]

    def test_overrides_beat_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """CLI overrides have the highest priority."""
        monkeypatch.setenv("BLUEPRINTCHECK_VERBOSE", "false")
        assert CheckSettings.load(start=tmp_path, verbose=True).verbose is True

    def test_settings_are_frozen(self, tmp_path: Path) -> None:
        """Settings cannot be mutated after construction."""
        settings = CheckSettings.load(start=tmp_path)
        with pytest.raises(Exception):
            settings.verbose = True  # type: ignore

    def test_default_config_template(self, tmp_path: Path) -> None:
        """The init template is valid TOML matching the defaults."""
        data = tomllib.loads(render_default_config())
        assert data["check"]["reserved_network"] == "dokploy-network"

        _write_config(tmp_path, render_default_config())
        settings = CheckSettings.load(start=tmp_path)
        assert settings.check.fail_on_warnings is False
        assert settings.check.disabled_rules == []
        assert settings.output.format == "terminal"


class TestConfigureLogging:
    """Tests for logging setup."""

    def test_levels(self) -> None:
        """Verbose switches the package logger to DEBUG."""
        configure_logging(verbose=True)
        assert logging.getLogger("blueprintcheck").level == logging.DEBUG

        configure_logging(verbose=False)
        assert logging.getLogger("blueprintcheck").level == logging.WARNING

    def test_single_handler(self) -> None:
        """Repeated configuration does not stack handlers."""
        configure_logging()
        configure_logging()
        assert len(logging.getLogger("blueprintcheck").handlers) == 1
