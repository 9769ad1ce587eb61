"""
Type definitions for fpp-lsp-manager.

Defines the value types and closed result types used across the package for:
- Versions: concrete semantic versions and the "latest" sentinel
- Remote releases decoded from the release index
- The desired version specification consumed from editor settings
- Outcomes of status checks and downloads
- Resolved LSP configurations
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fpp_lsp_manager.errors import (
    LspNotConfiguredError,
    ReleaseDecodeError,
    VersionParseError,
)

LATEST_TOKEN = "latest"

_VERSION_RE = re.compile(r"v?(\d+)\.(\d+)\.(\d+)")
_DIR_PART_RE = re.compile(r"[0-9]+")


# =============================================================================
# Versions
# =============================================================================


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """
    A concrete (major, minor, patch) release of the language server.

    Ordering and equality are strictly by the (major, minor, patch) tuple.
    """
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        for part in (self.major, self.minor, self.patch):
            if isinstance(part, bool) or not isinstance(part, int) or part < 0:
                raise VersionParseError(
                    f"{self.major}.{self.minor}.{self.patch}",
                    "version components must be non-negative integers",
                )

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parse "1.2.3" (or a "v1.2.3" release tag).

        Raises:
            VersionParseError: If text is not exactly three dot-separated integers
        """
        match = _VERSION_RE.fullmatch(text.strip())
        if not match:
            raise VersionParseError(text)
        return cls(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    @classmethod
    def from_dir_name(cls, name: str) -> "SemanticVersion":
        """
        Parse a storage directory name such as "1_2_3".

        Raises:
            VersionParseError: If name does not split into three non-negative integers
        """
        parts = name.split("_")
        if len(parts) != 3 or not all(_DIR_PART_RE.fullmatch(p) for p in parts):
            raise VersionParseError(name, "invalid version directory name")
        return cls(int(parts[0]), int(parts[1]), int(parts[2]))

    def to_dir_name(self) -> str:
        """Directory name used for this version in the storage directory."""
        return f"{self.major}_{self.minor}_{self.patch}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class LatestVersion:
    """
    Sentinel meaning "use the newest eligible release".

    Never installed and never compared numerically; it is resolved to a
    SemanticVersion before any comparison.
    """

    def __str__(self) -> str:
        return LATEST_TOKEN

    def __repr__(self) -> str:
        return "LATEST"


LATEST = LatestVersion()

Version = Union[SemanticVersion, LatestVersion]


def parse_version(text: str) -> Version:
    """
    Parse the textual form of a version specification value.

    Args:
        text: "latest" or a "major.minor.patch" string

    Returns:
        LATEST or a SemanticVersion

    Raises:
        VersionParseError: If text is neither
    """
    if text.strip().lower() == LATEST_TOKEN:
        return LATEST
    return SemanticVersion.parse(text)


# =============================================================================
# Remote Releases
# =============================================================================


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Release:
    """
    One entry of the remote release index.

    Only the fields the manager needs are kept; unknown keys are ignored.
    """
    tag_name: str
    name: str
    prerelease: bool
    draft: bool
    published_at: Optional[datetime] = None

    @property
    def is_eligible(self) -> bool:
        """Drafts and prereleases are never offered for download."""
        return not (self.draft or self.prerelease)

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "Release":
        """
        Build a Release from a decoded JSON object.

        Raises:
            ReleaseDecodeError: If a required field is missing or mistyped
        """
        if not isinstance(obj, dict):
            raise ReleaseDecodeError(f"Release entry is not an object: {obj!r}")
        try:
            tag_name = obj["tag_name"]
            prerelease = obj["prerelease"]
            draft = obj["draft"]
        except KeyError as e:
            raise ReleaseDecodeError(f"Release entry missing field {e}") from e
        if not isinstance(tag_name, str):
            raise ReleaseDecodeError(f"Release tag_name is not a string: {tag_name!r}")
        if not isinstance(prerelease, bool) or not isinstance(draft, bool):
            raise ReleaseDecodeError(f"Release flags are not booleans for {tag_name!r}")
        name = obj.get("name")
        if name is not None and not isinstance(name, str):
            raise ReleaseDecodeError(f"Release name is not a string for {tag_name!r}")
        published_at = obj.get("published_at")
        if published_at is not None and not isinstance(published_at, str):
            raise ReleaseDecodeError(f"Release published_at is not a string for {tag_name!r}")
        return cls(
            tag_name=tag_name,
            name=name or tag_name,
            prerelease=prerelease,
            draft=draft,
            published_at=_parse_timestamp(published_at),
        )


# =============================================================================
# Desired Version Specification
# =============================================================================


@dataclass(frozen=True)
class Disabled:
    """The LSP is turned off."""


@dataclass(frozen=True)
class Manual:
    """The user points at an executable they manage themselves."""
    path: Path


@dataclass(frozen=True)
class Auto:
    """The manager downloads and selects the executable."""
    version: Version = LATEST


DesiredVersionSpec = Union[Disabled, Manual, Auto]


# =============================================================================
# Status Check Results
# =============================================================================


@dataclass(frozen=True)
class ReadyToUse:
    """The requested binary is installed and current."""


@dataclass(frozen=True)
class BinaryMissing:
    """Nothing usable is installed; `version` should be downloaded."""
    version: SemanticVersion


@dataclass(frozen=True)
class UpdateAvailable:
    """A newer release than the newest installed one exists."""
    version: SemanticVersion


@dataclass(frozen=True)
class LspIsNotConfigured:
    """No safe recommendation is possible (no remote data for "latest")."""


CheckLspResult = Union[ReadyToUse, BinaryMissing, UpdateAvailable, LspIsNotConfigured]


# =============================================================================
# Download Results
# =============================================================================


class FailureReason(str, Enum):
    """
    Why an installation attempt failed.

    - NETWORK_FAILURE: The archive could not be fetched
    - UNSUPPORTED_PLATFORM: No archive is published for this OS/CPU
    - EXTRACTION_FAILURE: Corrupt archive or filesystem write failure
    """
    NETWORK_FAILURE = "network_failure"
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    EXTRACTION_FAILURE = "extraction_failure"


@dataclass(frozen=True)
class AlreadyPresent:
    """The version was installed before this call did any work."""
    path: Path


@dataclass(frozen=True)
class Installed:
    """This call downloaded and installed the version."""
    path: Path


@dataclass(frozen=True)
class Failed:
    """The installation attempt failed; nothing was marked installed."""
    reason: FailureReason
    detail: str = ""


DownloadResult = Union[AlreadyPresent, Installed, Failed]


# =============================================================================
# Resolved Configurations
# =============================================================================


@dataclass(frozen=True)
class DisabledConfiguration:
    """Resolved form of Disabled; there is nothing to launch."""
    is_ready: bool = False


@dataclass(frozen=True)
class ManualConfiguration:
    """Resolved form of Manual; the path is trusted as-is."""
    executable_path: Path
    is_ready: bool = True


@dataclass(frozen=True)
class AutoConfiguration:
    """
    Resolved form of Auto.

    `version` is the pinned version, or the newest installed one when the
    specification asks for "latest". It is None when "latest" was requested
    and nothing is installed.
    """
    version: Optional[SemanticVersion]
    executable_path: Optional[Path] = field(default=None)

    @property
    def is_ready(self) -> bool:
        return self.version is not None

    def require_executable(self) -> Path:
        """
        Return the executable path or raise.

        Raises:
            LspNotConfiguredError: If no installed executable matches
        """
        if self.version is None:
            raise LspNotConfiguredError("No LSP version is installed")
        if self.executable_path is None:
            raise LspNotConfiguredError(
                f"LSP {self.version} is not installed", version=self.version
            )
        return self.executable_path


LspConfiguration = Union[DisabledConfiguration, ManualConfiguration, AutoConfiguration]
