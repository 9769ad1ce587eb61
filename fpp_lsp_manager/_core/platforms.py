"""
Platform detection for LSP release archives.
"""

from __future__ import annotations

import platform
from typing import Optional, Tuple

from fpp_lsp_manager.errors import UnsupportedPlatformError

SUPPORTED_PLATFORM_TAGS = (
    "windows",
    "macos-arm64",
    "macos-x64",
    "linux-arm64",
    "linux-x64",
)


def is_windows() -> bool:
    """Check if running on Windows (no executable permission bit)."""
    return platform.system().lower() == "windows"


def get_platform_info() -> Tuple[str, str]:
    """
    Determine the OS and architecture.

    Returns:
        Tuple of (os_name, arch_name), e.g. ("macos", "arm64")

    Raises:
        UnsupportedPlatformError: If platform is unsupported
    """
    system = platform.system().lower()
    machine = platform.machine().lower()

    # Normalize OS
    if system == "darwin":
        os_name = "macos"
    elif system == "linux":
        os_name = "linux"
    elif system == "windows":
        os_name = "windows"
    else:
        raise UnsupportedPlatformError(system, machine)

    # Normalize Architecture
    if machine in ("x86_64", "amd64", "x64"):
        arch_name = "x64"
    elif machine in ("arm64", "aarch64"):
        arch_name = "arm64"
    else:
        raise UnsupportedPlatformError(system, machine)

    return os_name, arch_name


def get_platform_tag(os_name: Optional[str] = None, arch_name: Optional[str] = None) -> str:
    """
    Get the release archive platform tag.

    Windows builds are published as a single "windows" archive; macOS and
    Linux carry the architecture.

    Args:
        os_name: Normalized OS name (default: current)
        arch_name: Normalized architecture (default: current)

    Raises:
        UnsupportedPlatformError: If no archive is published for the platform
    """
    if os_name is None or arch_name is None:
        os_name, arch_name = get_platform_info()

    tag = "windows" if os_name == "windows" else f"{os_name}-{arch_name}"
    if tag not in SUPPORTED_PLATFORM_TAGS:
        raise UnsupportedPlatformError(os_name, arch_name)
    return tag
