"""
LSP status evaluation.

`check_lsp` is a pure function: given the desired version and the installed
and available versions it returns one CheckLspResult, with no I/O.

Decision table:
1. "latest" requested
   - nothing available remotely -> LspIsNotConfigured
   - nothing installed -> BinaryMissing(newest available)
   - newest available > newest installed -> UpdateAvailable(newest available)
   - otherwise -> ReadyToUse
2. pinned version
   - installed -> ReadyToUse
   - otherwise -> BinaryMissing(pinned)
"""

from __future__ import annotations

from typing import Collection, Sequence

from fpp_lsp_manager.types import (
    BinaryMissing,
    CheckLspResult,
    LatestVersion,
    LspIsNotConfigured,
    ReadyToUse,
    SemanticVersion,
    UpdateAvailable,
    Version,
)


def check_lsp(
    version: Version,
    installed: Collection[SemanticVersion],
    available: Sequence[SemanticVersion],
) -> CheckLspResult:
    """
    Decide what, if anything, needs to happen for the requested version.

    Only meaningful for the automatic configuration; disabled and manual
    configurations are handled before calling this.

    Args:
        version: LATEST or a pinned SemanticVersion
        installed: Versions present in the local inventory
        available: Eligible versions from the release index

    Returns:
        ReadyToUse, BinaryMissing, UpdateAvailable or LspIsNotConfigured
    """
    if isinstance(version, LatestVersion):
        if not available:
            return LspIsNotConfigured()
        latest = max(available)
        if not installed:
            return BinaryMissing(latest)
        if latest > max(installed):
            return UpdateAvailable(latest)
        return ReadyToUse()

    if version in installed:
        return ReadyToUse()
    return BinaryMissing(version)
