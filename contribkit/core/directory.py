"""
Content store layout for contribkit.

This module maps contributions to their locations on disk and creates the
store skeleton on first use.

Directory Structure:
    Data directory (~/.contribkit/ or %LOCALAPPDATA%\\contribkit\\):
        - packages/                 : Installed contributions
          - <package>/tools/<tool>/<version>/
          - <package>/hardware/<architecture>/<version>/
        - staging/                  : Downloaded archives
        - package_index.json        : Default package index
        - package_<name>_index.json : Additional package indexes (+ .sig)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class DirectoryError(Exception):
    """Base exception for directory-related errors."""

    pass


def get_data_dir() -> Path:
    """
    Get the platform-specific contribkit data directory.

    Returns:
        Path: The data directory path.
            - Windows: %LOCALAPPDATA%\\contribkit
            - Linux/macOS: ~/.contribkit/
    """
    if os.name == "nt":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if not local_app_data:
            raise DirectoryError(
                "LOCALAPPDATA environment variable is not set. "
                "Cannot determine data directory."
            )
        return Path(local_app_data) / "contribkit"
    else:
        return Path.home() / ".contribkit"


@dataclass
class ContentStore:
    """
    Locations of installed contributions, staged archives and index files.

    Attributes:
        packages_dir: Root holding one folder per package
        staging_dir: Where downloaded archives are kept
        index_dir: Flat folder holding the package index files
    """

    packages_dir: Path
    staging_dir: Path
    index_dir: Path

    @classmethod
    def default(cls, data_dir: Optional[Path] = None) -> "ContentStore":
        """Store rooted at the given (or the platform default) data directory."""
        data_dir = Path(data_dir) if data_dir else get_data_dir()
        return cls(
            packages_dir=data_dir / "packages",
            staging_dir=data_dir / "staging",
            index_dir=data_dir,
        )

    def package_folder(self, package_name: str) -> Path:
        return self.packages_dir / package_name

    def tool_folder(self, package_name: str, tool_name: str, version: str) -> Path:
        """<packages>/<package>/tools/<tool>/<version>"""
        return self.package_folder(package_name) / "tools" / tool_name / version

    def platform_folder(
        self, package_name: str, architecture: str, version: str
    ) -> Path:
        """<packages>/<package>/hardware/<architecture>/<version>"""
        return (
            self.package_folder(package_name) / "hardware" / architecture / version
        )

    def index_file(self, file_name: str) -> Path:
        return self.index_dir / file_name

    def ensure_structure(self) -> "ContentStore":
        """
        Create the store directories if they don't exist.

        Raises:
            DirectoryError: If a directory cannot be created
        """
        for directory in (self.packages_dir, self.staging_dir, self.index_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryError(
                    f"Failed to create store directory at {directory}: {e}"
                ) from e
        return self


__all__ = ["DirectoryError", "ContentStore", "get_data_dir"]
