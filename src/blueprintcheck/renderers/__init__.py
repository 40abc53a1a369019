"""
Renderers for blueprintcheck.

Output formatters for validation reports: terminal and JSON.
"""

from blueprintcheck.renderers.terminal import TerminalRenderer
from blueprintcheck.renderers.json_renderer import JsonRenderer

__all__ = [
    "TerminalRenderer",
    "JsonRenderer",
]
