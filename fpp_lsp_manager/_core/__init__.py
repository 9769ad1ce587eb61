"""
Core binary lifecycle management for fpp-lsp-manager.

This module handles:
- Version constants, release locations and configuration
- Remote release list caching
- Local inventory of installed binaries
- Download coordination with per-version locking
"""

from fpp_lsp_manager._core.version import (
    MANAGER_VERSION,
    CACHE_TTL_SECONDS,
    LspManagerConfig,
    get_download_url,
    get_release_notes_url,
)
from fpp_lsp_manager._core.locking import DoubleCheckedLock, KeyedLocks
from fpp_lsp_manager._core.platforms import get_platform_info, get_platform_tag
from fpp_lsp_manager._core.releases import (
    RemoteReleaseCache,
    eligible_versions,
    fetch_releases,
)
from fpp_lsp_manager._core.inventory import LocalInventory
from fpp_lsp_manager._core.lifecycle import DownloadCoordinator

__all__ = [
    # Version
    "MANAGER_VERSION",
    "CACHE_TTL_SECONDS",
    "LspManagerConfig",
    "get_download_url",
    "get_release_notes_url",
    # Locking
    "DoubleCheckedLock",
    "KeyedLocks",
    # Platform
    "get_platform_info",
    "get_platform_tag",
    # Releases
    "RemoteReleaseCache",
    "eligible_versions",
    "fetch_releases",
    # Inventory
    "LocalInventory",
    # Lifecycle
    "DownloadCoordinator",
]
