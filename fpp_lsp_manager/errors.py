"""
Exception types for fpp-lsp-manager.

Provides typed exceptions for:
- Release index errors (network and decode failures)
- Version parsing errors
- Binary installation errors (platform, download, extraction)
- Configuration errors
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from fpp_lsp_manager.types import SemanticVersion


class FppLspError(Exception):
    """Base exception for all fpp-lsp-manager errors."""
    pass


# =============================================================================
# Release Index Errors
# =============================================================================


class ReleaseIndexError(FppLspError):
    """
    Raised when the remote release index cannot be used.

    The version cache is never updated when this is raised, so callers
    can fall back to the last known list of versions.
    """
    pass


class ReleaseFetchError(ReleaseIndexError):
    """
    Raised when the release index is unreachable.

    This includes:
    - Connection failures and timeouts
    - Non-2xx HTTP responses
    """

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class ReleaseDecodeError(ReleaseIndexError):
    """
    Raised when the release index response cannot be decoded.

    This includes:
    - A body that is not JSON
    - JSON that is not an array of release objects
    - Release objects missing required fields
    """
    pass


# =============================================================================
# Version Errors
# =============================================================================


class VersionParseError(FppLspError, ValueError):
    """
    Raised when a string is not a valid version.

    Also a ValueError so callers parsing user input can catch either.
    """

    def __init__(self, text: str, reason: str = "invalid version string"):
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: {text!r}")


# =============================================================================
# Installation Errors
# =============================================================================


class UnsupportedPlatformError(FppLspError):
    """Raised when no LSP archive is published for the current OS/CPU."""

    def __init__(self, system: str, machine: str):
        self.system = system
        self.machine = machine
        super().__init__(f"Unsupported platform: {system}/{machine}")


class DownloadError(FppLspError):
    """Raised when an LSP archive cannot be downloaded."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class ExtractionError(FppLspError):
    """
    Raised when a downloaded archive cannot be installed.

    This includes:
    - Corrupt or truncated zip archives
    - Archives that do not contain the server executable
    - Filesystem write failures (e.g. unwritable storage directory)
    """
    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class LspNotConfiguredError(FppLspError):
    """
    Raised when no usable LSP executable can be determined.

    Happens when the version specification is "latest" but nothing is
    installed yet, or a pinned version has not been downloaded.
    """

    def __init__(self, message: str, version: Optional["SemanticVersion"] = None):
        self.version = version
        super().__init__(message)
