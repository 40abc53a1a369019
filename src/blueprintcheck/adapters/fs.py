"""
Filesystem adapter for blueprintcheck.

Handles reading manifests and descriptors and discovering blueprint
directories. Nothing below the adapter layer touches the filesystem.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

import yaml

from blueprintcheck.core.constants import COMPOSE_FILENAMES, DESCRIPTOR_FILENAME
from blueprintcheck.domain.exceptions import BlueprintParseError
from blueprintcheck.domain.models import Blueprint

logger = logging.getLogger(__name__)


class FileSystemAdapter:
    """
    Adapter for filesystem operations.

    All filesystem I/O in blueprintcheck goes through this adapter,
    making it easy to point at temporary directories in tests.
    """

    def __init__(self, base_path: Path | None = None) -> None:
        """
        Initialize the filesystem adapter.

        Args:
            base_path: Base path for relative file operations.
        """
        self.base_path = base_path or Path.cwd()

    def read_text(self, path: Path | str) -> str:
        """
        Read a text file.

        Raises:
            BlueprintParseError: If the file cannot be read.
        """
        path = self._resolve_path(path)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise BlueprintParseError(f"File not found: {path}", source=str(path))
        except PermissionError:
            raise BlueprintParseError(f"Permission denied reading: {path}", source=str(path))
        except (OSError, UnicodeDecodeError) as e:
            raise BlueprintParseError(f"Error reading {path}: {e}", source=str(path))

    def read_yaml(self, path: Path | str) -> Any:
        """
        Read and parse a YAML file.

        Returns:
            Parsed document; None for an empty file.

        Raises:
            BlueprintParseError: If the file cannot be read or isn't valid YAML.
        """
        path = self._resolve_path(path)
        content = self.read_text(path)
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            raise BlueprintParseError(
                f"Invalid YAML: {e}",
                source=str(path),
                line=mark.line + 1 if mark is not None else None,
            )

    def read_toml(self, path: Path | str) -> dict[str, Any]:
        """
        Read and parse a TOML file.

        Raises:
            BlueprintParseError: If the file cannot be read or isn't valid TOML.
        """
        path = self._resolve_path(path)
        content = self.read_text(path)
        try:
            return tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise BlueprintParseError(f"Invalid TOML: {e}", source=str(path))

    def exists(self, path: Path | str) -> bool:
        """Check if a path exists."""
        return self._resolve_path(path).exists()

    def manifest_path(self, directory: Path | str) -> Path | None:
        """First compose file present in ``directory``."""
        directory = self._resolve_path(directory)
        for filename in COMPOSE_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
        return None

    def is_blueprint(self, directory: Path | str) -> bool:
        """Whether ``directory`` holds a descriptor or a compose manifest."""
        directory = self._resolve_path(directory)
        return (directory / DESCRIPTOR_FILENAME).is_file() or self.manifest_path(directory) is not None

    def load_blueprint(self, directory: Path | str) -> Blueprint:
        """
        Load the manifest and descriptor stored in a blueprint directory.

        Read and parse failures do not raise; they are kept on the returned
        Blueprint so the validator can report them.

        Args:
            directory: Blueprint directory.

        Returns:
            Blueprint with the parsed documents or their parse errors.
        """
        directory = self._resolve_path(directory)

        manifest: Any = None
        manifest_error: str | None = None
        manifest_file = self.manifest_path(directory)
        if manifest_file is None:
            manifest_error = f"No {' or '.join(COMPOSE_FILENAMES)} found in {directory}"
        else:
            try:
                manifest = self.read_yaml(manifest_file)
                if manifest is None:
                    # empty file
                    manifest = {}
            except BlueprintParseError as e:
                manifest_error = e.message

        descriptor: Any = None
        descriptor_error: str | None = None
        try:
            descriptor = self.read_toml(directory / DESCRIPTOR_FILENAME)
        except BlueprintParseError as e:
            descriptor_error = e.message

        logger.debug(
            "Loaded blueprint %s (manifest: %s, descriptor: %s)",
            directory,
            "error" if manifest_error else "ok",
            "error" if descriptor_error else "ok",
        )
        return Blueprint(
            source=str(directory),
            manifest=manifest,
            descriptor=descriptor,
            manifest_error=manifest_error,
            descriptor_error=descriptor_error,
        )

    def find_blueprints(self, directory: Path | str | None = None) -> list[Path]:
        """
        Find blueprint directories.

        ``directory`` itself is returned when it is a blueprint; otherwise
        each immediate sub-directory that is a blueprint, sorted by name.

        Args:
            directory: Directory to search (defaults to base_path).

        Returns:
            List of blueprint directories.
        """
        directory = self._resolve_path(directory) if directory else self.base_path

        if self.is_blueprint(directory):
            return [directory]

        found = sorted(
            child for child in directory.iterdir() if child.is_dir() and self.is_blueprint(child)
        )
        logger.debug("Discovered %d blueprint(s) under %s", len(found), directory)
        return found

    def _resolve_path(self, path: Path | str) -> Path:
        """Resolve a path relative to base_path."""
        if isinstance(path, str):
            path = Path(path)

        if path.is_absolute():
            return path

        return self.base_path / path
