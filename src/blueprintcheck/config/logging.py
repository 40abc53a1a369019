"""
Logging configuration for blueprintcheck.

Library modules only call ``logging.getLogger(__name__)``; the CLI calls
``configure_logging`` once to route records through rich on stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "blueprintcheck"


def configure_logging(*, verbose: bool = False, no_color: bool = False) -> None:
    """
    Attach a rich handler to the package logger.

    Args:
        verbose: Enable DEBUG output. When False, only WARNING and above.
        no_color: Disable colored output.
    """
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False
