"""
Settings for blueprintcheck.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags
  2. Env vars: ``BLUEPRINTCHECK_*`` prefix, ``__`` for nested sections
  3. TOML file: ``.blueprintcheck.toml`` found by walking up, or ``--config``
  4. Code defaults baked into the section models
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from blueprintcheck.core.constants import CONFIG_ENV_VAR, CONFIG_FILENAME, RESERVED_NETWORK
from blueprintcheck.domain.exceptions import ConfigError


class CheckConfig(BaseModel):
    """[check] section."""

    model_config = ConfigDict(frozen=True)

    fail_on_warnings: bool = Field(default=False, description="Treat warnings as failures")
    disabled_rules: list[str] = Field(default_factory=list, description="Rule IDs to skip")
    reserved_network: str = Field(default=RESERVED_NETWORK, description="Platform isolation network")


class ResolveConfig(BaseModel):
    """[resolve] section."""

    model_config = ConfigDict(frozen=True)

    domain: str | None = Field(default=None, description="Value for ${domain} in previews")


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = ConfigDict(frozen=True)

    format: Literal["terminal", "json"] = "terminal"
    show_resolved: bool = False


def find_config(start: Path | None = None) -> Path | None:
    """
    Walk up from ``start`` (default: cwd) looking for the config file.

    ``BLUEPRINTCHECK_CONFIG`` wins when set; a value pointing at a missing
    file disables discovery.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        return path if path.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def load_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file, raising ConfigError when it is invalid."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", config_key=str(path)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", config_key=str(path)) from e


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a discovered ``.blueprintcheck.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = load_toml(toml_path) if toml_path else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path for the settings object under construction
_tls = threading.local()


class CheckSettings(BaseSettings):
    """
    Merged settings for the CLI.

    Attributes:
        config_path: The TOML file that was loaded, if any.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="BLUEPRINTCHECK_",
        env_nested_delimiter="__",
    )

    config_path: Path | None = None

    verbose: bool = False
    no_color: bool = False

    check: CheckConfig = Field(default_factory=CheckConfig)
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, getattr(_tls, "toml_path", None)),
        )

    @classmethod
    def load(
        cls,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> CheckSettings:
        """
        Build settings for one CLI invocation.

        Args:
            config_path: Explicit config file. Must exist when given.
            start: Directory to start config discovery from.
            **overrides: CLI flags, highest priority.

        Raises:
            ConfigError: If the config file is missing or is not valid TOML.
        """
        if config_path is not None:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                raise ConfigError(f"Config file not found: {toml_path}", config_key="config")
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


DEFAULT_CONFIG_TEMPLATE = """\
# blueprintcheck configuration

[check]
fail_on_warnings = false
disabled_rules = []
reserved_network = "{reserved_network}"

[resolve]
# domain = "example.com"

[output]
format = "terminal"
show_resolved = false
"""


def render_default_config() -> str:
    """Contents written by ``blueprintcheck init``."""
    return DEFAULT_CONFIG_TEMPLATE.format(reserved_network=RESERVED_NETWORK)
