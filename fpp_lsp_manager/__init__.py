"""
fpp-lsp-manager: Lifecycle management for the FPP language server binary.

This package provides:
- A cached view of published fpp_lsp_server releases
- An inventory of locally installed versions
- A pure status check deciding whether to download or update
- Coordinated downloads (one per version, even under concurrency)
- "Version installed" lifecycle events for restart logic

Installation:
    pip install fpp-lsp-manager

Quickstart:
    from fpp_lsp_manager import LspManager, LATEST, BinaryMissing, UpdateAvailable

    manager = LspManager.get_instance()
    status = await manager.check(LATEST)
    if isinstance(status, (BinaryMissing, UpdateAvailable)):
        result = await manager.download(status.version)

Quickstart (Restart logic):
    from fpp_lsp_manager import Auto, needs_restart

    def on_event(event):
        latest = manager.inventory.latest_installed()
        if needs_restart(Auto(), event, latest):
            restart_server()

    manager.events.subscribe(on_event)
"""

from fpp_lsp_manager.types import (
    LATEST,
    SemanticVersion,
    LatestVersion,
    Version,
    parse_version,
    Release,
    Disabled,
    Manual,
    Auto,
    DesiredVersionSpec,
    ReadyToUse,
    BinaryMissing,
    UpdateAvailable,
    LspIsNotConfigured,
    CheckLspResult,
    FailureReason,
    AlreadyPresent,
    Installed,
    Failed,
    DownloadResult,
    DisabledConfiguration,
    ManualConfiguration,
    AutoConfiguration,
    LspConfiguration,
)
from fpp_lsp_manager.errors import (
    FppLspError,
    ReleaseIndexError,
    ReleaseFetchError,
    ReleaseDecodeError,
    VersionParseError,
    UnsupportedPlatformError,
    DownloadError,
    ExtractionError,
    LspNotConfiguredError,
)
from fpp_lsp_manager.events import (
    LifecycleEventBus,
    VersionInstalled,
    needs_restart,
)
from fpp_lsp_manager.status import check_lsp
from fpp_lsp_manager._core.version import MANAGER_VERSION, LspManagerConfig
from fpp_lsp_manager._core.releases import RemoteReleaseCache
from fpp_lsp_manager._core.inventory import LocalInventory
from fpp_lsp_manager._core.lifecycle import DownloadCoordinator
from fpp_lsp_manager.manager import LspManager

__version__ = MANAGER_VERSION

__all__ = [
    # Version
    "__version__",
    "MANAGER_VERSION",
    # Types
    "LATEST",
    "SemanticVersion",
    "LatestVersion",
    "Version",
    "parse_version",
    "Release",
    "Disabled",
    "Manual",
    "Auto",
    "DesiredVersionSpec",
    "ReadyToUse",
    "BinaryMissing",
    "UpdateAvailable",
    "LspIsNotConfigured",
    "CheckLspResult",
    "FailureReason",
    "AlreadyPresent",
    "Installed",
    "Failed",
    "DownloadResult",
    "DisabledConfiguration",
    "ManualConfiguration",
    "AutoConfiguration",
    "LspConfiguration",
    # Errors
    "FppLspError",
    "ReleaseIndexError",
    "ReleaseFetchError",
    "ReleaseDecodeError",
    "VersionParseError",
    "UnsupportedPlatformError",
    "DownloadError",
    "ExtractionError",
    "LspNotConfiguredError",
    # Events
    "LifecycleEventBus",
    "VersionInstalled",
    "needs_restart",
    # Status
    "check_lsp",
    # Core
    "LspManagerConfig",
    "RemoteReleaseCache",
    "LocalInventory",
    "DownloadCoordinator",
    "LspManager",
]
