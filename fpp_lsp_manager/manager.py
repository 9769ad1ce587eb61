"""
LSP manager facade.

Wires the release cache, local inventory, download coordinator and event
bus together for the editor integration.

Usage:
    # Singleton pattern (recommended)
    manager = LspManager.get_instance()
    status = await manager.check(LATEST)
    if isinstance(status, (BinaryMissing, UpdateAvailable)):
        result = await manager.download(status.version)

    # Explicit configuration
    manager = LspManager(LspManagerConfig(storage_dir=Path("/tmp/lsp")))
"""

from __future__ import annotations

import logging
import threading
from typing import ClassVar, List, Optional

import requests

from fpp_lsp_manager._core.inventory import LocalInventory
from fpp_lsp_manager._core.lifecycle import DownloadCoordinator
from fpp_lsp_manager._core.releases import RemoteReleaseCache
from fpp_lsp_manager._core.version import LspManagerConfig, get_release_notes_url
from fpp_lsp_manager.errors import ReleaseIndexError
from fpp_lsp_manager.events import LifecycleEventBus
from fpp_lsp_manager.status import check_lsp
from fpp_lsp_manager.types import (
    Auto,
    AutoConfiguration,
    CheckLspResult,
    DesiredVersionSpec,
    Disabled,
    DisabledConfiguration,
    DownloadResult,
    LatestVersion,
    LspConfiguration,
    Manual,
    ManualConfiguration,
    SemanticVersion,
    Version,
)

logger = logging.getLogger(__name__)


class LspManager:
    """
    Entry point for checking, downloading and resolving the LSP binary.

    Attributes:
        config: Effective configuration
        releases: Remote release cache
        inventory: Local inventory of installed versions
        coordinator: Download coordinator
        events: Lifecycle event bus (subscribe here for VersionInstalled)
    """

    _instance: ClassVar[Optional["LspManager"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        config: Optional[LspManagerConfig] = None,
        event_bus: Optional[LifecycleEventBus] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or LspManagerConfig.from_env()
        self.events = event_bus if event_bus is not None else LifecycleEventBus()
        self.releases = RemoteReleaseCache(
            releases_url=self.config.releases_url,
            ttl=self.config.cache_ttl,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
            session=session,
        )
        self.inventory = LocalInventory(self.config.storage_dir)
        self.coordinator = DownloadCoordinator(
            self.inventory,
            event_bus=self.events,
            download_base_url=self.config.download_base_url,
            timeout=self.config.request_timeout,
            user_agent=self.config.user_agent,
            session=session,
        )

    @classmethod
    def get_instance(cls) -> "LspManager":
        """Get or create the process-wide manager (configured from the environment)."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide manager (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    async def available_versions(self) -> List[SemanticVersion]:
        """
        Get downloadable versions, falling back to the last known list.

        A failed refresh is logged and the stale (possibly empty) list is
        returned; use `releases.get_versions()` to see the failure itself.
        """
        try:
            return await self.releases.get_versions()
        except ReleaseIndexError as e:
            logger.warning(f"Could not refresh LSP releases, using last known list: {e}")
            return self.releases.cached_versions

    def installed_versions(self) -> List[SemanticVersion]:
        """Get installed versions, sorted ascending."""
        return self.inventory.list_installed()

    async def check(self, version: Version) -> CheckLspResult:
        """
        Check the status of the requested LSP version.

        Args:
            version: LATEST or a pinned SemanticVersion from settings

        Returns:
            ReadyToUse, BinaryMissing, UpdateAvailable or LspIsNotConfigured
        """
        available = await self.available_versions()
        installed = self.installed_versions()
        result = check_lsp(version, installed, available)
        logger.debug(f"Check LSP result for {version}: {result}")
        return result

    async def download(self, version: SemanticVersion) -> DownloadResult:
        """Install a version if needed (see DownloadCoordinator.ensure_installed)."""
        return await self.coordinator.ensure_installed(version)

    def resolve_configuration(self, spec: DesiredVersionSpec) -> LspConfiguration:
        """
        Turn a desired version specification into something launchable.

        For "latest" the newest installed version is used; the release index
        is not consulted, so this never blocks on the network.
        """
        if isinstance(spec, Disabled):
            return DisabledConfiguration()
        if isinstance(spec, Manual):
            return ManualConfiguration(spec.path)
        if isinstance(spec, Auto):
            if isinstance(spec.version, LatestVersion):
                version = self.inventory.latest_installed()
            else:
                version = spec.version
            path = self.inventory.get_executable_path(version) if version is not None else None
            return AutoConfiguration(version, path)
        raise TypeError(f"Unknown LSP version specification: {spec!r}")

    @staticmethod
    def release_notes_url(version: SemanticVersion) -> str:
        """Get the release notes page for a version."""
        return get_release_notes_url(version)
