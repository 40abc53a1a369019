"""Shared constants for blueprintcheck."""
