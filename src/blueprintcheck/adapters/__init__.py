"""
Adapters layer for blueprintcheck.

Contains the infrastructure implementations: filesystem access.
"""

from blueprintcheck.adapters.fs import FileSystemAdapter

__all__ = [
    "FileSystemAdapter",
]
