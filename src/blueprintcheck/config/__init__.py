"""Configuration and logging setup for blueprintcheck."""

from blueprintcheck.config.logging import configure_logging
from blueprintcheck.config.settings import (
    CheckConfig,
    CheckSettings,
    OutputConfig,
    ResolveConfig,
    find_config,
    render_default_config,
)

__all__ = [
    "CheckConfig",
    "CheckSettings",
    "OutputConfig",
    "ResolveConfig",
    "configure_logging",
    "find_config",
    "render_default_config",
]
