"""
Version constants and release locations for fpp-lsp-manager.

fpp-lsp-manager is versioned independently from the language server:
- MANAGER_VERSION: User-facing package version
- LSP_REPO: GitHub repository publishing fpp_lsp_server releases
- CACHE_TTL_SECONDS: How long a fetched release list stays fresh
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir

from fpp_lsp_manager.types import SemanticVersion

# fpp-lsp-manager version (user-facing, independent semver)
MANAGER_VERSION = "0.1.0"

# GitHub repository for binary downloads
LSP_REPO = "Kronos3/fpp-rust"
LSP_GITHUB_API_URL = f"https://api.github.com/repos/{LSP_REPO}/releases"
LSP_DOWNLOAD_BASE_URL = f"https://github.com/{LSP_REPO}/releases/download"
LSP_RELEASE_NOTES_BASE_URL = f"https://github.com/{LSP_REPO}/releases/tag"
USER_AGENT = f"fpp-lsp-manager/{MANAGER_VERSION} (https://github.com/{LSP_REPO})"

EXECUTABLE_NAME = "fpp_lsp_server"
ARCHIVE_PREFIX = "fpp-lsp-"
ARCHIVE_SUFFIX = ".zip"

CACHE_TTL_SECONDS = 25 * 60
REQUEST_TIMEOUT_SECONDS = 60.0

# Environment overrides
ENV_HOME = "FPP_LSP_HOME"
ENV_RELEASES_URL = "FPP_LSP_RELEASES_URL"
ENV_DOWNLOAD_URL = "FPP_LSP_DOWNLOAD_URL"


def get_config_root() -> Path:
    """Get the configuration root (FPP_LSP_HOME or the user config dir)."""
    override = os.environ.get(ENV_HOME)
    if override:
        return Path(override)
    return Path(user_config_dir("fpp-lsp", "fpp"))


def get_archive_name(platform_tag: str) -> str:
    """
    Get the release asset name for a platform tag.

    Args:
        platform_tag: One of windows, macos-arm64, macos-x64, linux-arm64, linux-x64
    """
    return f"{ARCHIVE_PREFIX}{platform_tag}{ARCHIVE_SUFFIX}"


def get_download_url(
    version: SemanticVersion,
    platform_tag: str,
    base_url: str = LSP_DOWNLOAD_BASE_URL,
) -> str:
    """
    Get the download URL for a specific LSP version and platform.

    Args:
        version: LSP version (e.g., 1.2.0)
        platform_tag: Platform tag (e.g., linux-x64)
        base_url: Release download base URL

    Returns:
        GitHub release download URL
    """
    return f"{base_url.rstrip('/')}/{version}/{get_archive_name(platform_tag)}"


def get_release_notes_url(version: SemanticVersion) -> str:
    """Get the GitHub release page for a version."""
    return f"{LSP_RELEASE_NOTES_BASE_URL}/{version}"


@dataclass
class LspManagerConfig:
    """
    Configuration for the LSP binary manager.

    Attributes:
        storage_dir: Directory holding one subdirectory per installed version
        releases_url: Release index endpoint (GitHub releases API)
        download_base_url: Base URL for release archives
        cache_ttl: Seconds a fetched release list stays fresh
        request_timeout: Timeout for each HTTP request in seconds
        user_agent: User-Agent header sent with every request
    """
    storage_dir: Optional[Path] = None
    releases_url: str = LSP_GITHUB_API_URL
    download_base_url: str = LSP_DOWNLOAD_BASE_URL
    cache_ttl: float = CACHE_TTL_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if self.storage_dir is None:
            self.storage_dir = get_config_root() / "lsp"
        else:
            self.storage_dir = Path(self.storage_dir)

    @classmethod
    def from_env(cls) -> "LspManagerConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            FPP_LSP_HOME: Configuration root; binaries go to $FPP_LSP_HOME/lsp
            FPP_LSP_RELEASES_URL: Release index endpoint override
            FPP_LSP_DOWNLOAD_URL: Archive base URL override
        """
        return cls(
            storage_dir=get_config_root() / "lsp",
            releases_url=os.environ.get(ENV_RELEASES_URL) or LSP_GITHUB_API_URL,
            download_base_url=os.environ.get(ENV_DOWNLOAD_URL) or LSP_DOWNLOAD_BASE_URL,
        )
