"""
Local inventory of installed LSP binaries.

Layout: {storage_dir}/{major}_{minor}_{patch}/{executable_name}
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from fpp_lsp_manager._core.platforms import is_windows
from fpp_lsp_manager._core.version import EXECUTABLE_NAME
from fpp_lsp_manager.errors import VersionParseError
from fpp_lsp_manager.types import SemanticVersion

logger = logging.getLogger(__name__)


class LocalInventory:
    """
    Reads which LSP versions are installed in the storage directory.

    Only reads the filesystem, so it is safe to use from any thread or task
    without coordination. A version counts as installed only when its
    executable exists (and is executable where the platform has that bit),
    so half-finished installs are never reported.
    """

    def __init__(
        self,
        storage_dir: Union[str, Path],
        executable_name: Optional[str] = None,
    ):
        self.storage_dir = Path(storage_dir)
        if executable_name is None:
            executable_name = f"{EXECUTABLE_NAME}.exe" if is_windows() else EXECUTABLE_NAME
        self.executable_name = executable_name

    def version_dir(self, version: SemanticVersion) -> Path:
        """Directory a version is installed into."""
        return self.storage_dir / version.to_dir_name()

    def executable_location(self, version: SemanticVersion) -> Path:
        """Where the executable for a version lives, whether or not it exists."""
        return self.version_dir(version) / self.executable_name

    def get_executable_path(self, version: SemanticVersion) -> Optional[Path]:
        """
        Get the executable for an installed version.

        Returns:
            The executable path, or None if missing or not executable
        """
        path = self.executable_location(version)
        if not path.is_file():
            return None
        if not is_windows() and not os.access(path, os.X_OK):
            return None
        return path

    def is_installed(self, version: SemanticVersion) -> bool:
        """Check if a version's executable is present."""
        return self.get_executable_path(version) is not None

    def list_installed(self) -> List[SemanticVersion]:
        """
        List installed versions, sorted ascending.

        Entries whose names are not version directories (.DS_Store, staging
        directories, ...) are skipped.
        """
        try:
            names = [entry.name for entry in self.storage_dir.iterdir()]
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Failed to list LSP versions in {self.storage_dir}: {e}")
            return []

        installed = []
        for name in names:
            try:
                version = SemanticVersion.from_dir_name(name)
            except VersionParseError:
                continue
            if self.is_installed(version):
                installed.append(version)
        return sorted(installed)

    def latest_installed(self) -> Optional[SemanticVersion]:
        """Get the newest installed version, if any."""
        installed = self.list_installed()
        return installed[-1] if installed else None
