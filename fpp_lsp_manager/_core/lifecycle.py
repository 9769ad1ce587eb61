"""
Binary lifecycle management for fpp-lsp-manager.

Handles:
- Archive download from GitHub releases
- Extraction into a private staging directory and promotion into place
- At most one concurrent installation per version
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import shutil
import stat
import tempfile
import threading
import zipfile
import zlib
from pathlib import Path
from typing import Any, Optional

import requests

from fpp_lsp_manager._core.inventory import LocalInventory
from fpp_lsp_manager._core.locking import KeyedLocks
from fpp_lsp_manager._core.platforms import get_platform_tag, is_windows
from fpp_lsp_manager._core.version import (
    LSP_DOWNLOAD_BASE_URL,
    REQUEST_TIMEOUT_SECONDS,
    USER_AGENT,
    get_download_url,
)
from fpp_lsp_manager.errors import (
    DownloadError,
    ExtractionError,
    UnsupportedPlatformError,
)
from fpp_lsp_manager.events import LifecycleEventBus, VersionInstalled
from fpp_lsp_manager.types import (
    AlreadyPresent,
    DownloadResult,
    Failed,
    FailureReason,
    Installed,
    SemanticVersion,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class _Aborted(Exception):
    """The awaiting task was cancelled; the worker thread stops early."""


def _check_abort(abort: Optional[threading.Event]) -> None:
    if abort is not None and abort.is_set():
        raise _Aborted()


def download_archive(
    url: str,
    destination: Path,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    user_agent: str = USER_AGENT,
    session: Optional[requests.Session] = None,
    abort: Optional[threading.Event] = None,
) -> Path:
    """
    Stream an archive to `destination` (blocking).

    Raises:
        DownloadError: If the request fails or returns an error status
        ExtractionError: If the archive cannot be written locally
    """
    http: Any = session or requests
    try:
        response = http.get(
            url,
            headers={"User-Agent": user_agent},
            stream=True,
            timeout=timeout,
        )
        response.raise_for_status()

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                _check_abort(abort)
                f.write(chunk)
    except requests.exceptions.RequestException as e:
        raise DownloadError(f"Failed to download LSP archive from {url}: {e}", url=url) from e
    except OSError as e:
        raise ExtractionError(f"Failed to write LSP archive to {destination}: {e}") from e

    return destination


def remove_stale_staging(storage_dir: Path, version_dir_name: str) -> int:
    """
    Delete staging directories an interrupted install left behind.

    Must only be called while holding the version's install lock.

    Returns:
        Number of directories removed
    """
    removed = 0
    for leftover in storage_dir.glob(f".{version_dir_name}.*.partial"):
        if leftover.is_dir():
            logger.debug(f"Removing stale staging directory {leftover}")
            shutil.rmtree(leftover, ignore_errors=True)
            removed += 1
    return removed


def install_archive(
    url: str,
    storage_dir: Path,
    version_dir_name: str,
    executable_name: str,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    user_agent: str = USER_AGENT,
    session: Optional[requests.Session] = None,
    abort: Optional[threading.Event] = None,
) -> Path:
    """
    Download and unpack an archive into a fresh staging directory (blocking).

    The staging directory lives inside `storage_dir` so promotion is a
    rename, and its name never parses as a version, so the inventory ignores
    it until it is promoted.

    Returns:
        The staging directory, containing an executable `executable_name`

    Raises:
        DownloadError: If the archive cannot be fetched
        ExtractionError: If the archive is corrupt or cannot be written
    """
    try:
        storage_dir.mkdir(parents=True, exist_ok=True)
        remove_stale_staging(storage_dir, version_dir_name)
        staging = Path(tempfile.mkdtemp(
            prefix=f".{version_dir_name}.", suffix=".partial", dir=storage_dir
        ))
        fd, archive_name = tempfile.mkstemp(prefix=f"fpp-lsp-{version_dir_name}-", suffix=".zip")
        os.close(fd)
    except OSError as e:
        raise ExtractionError(f"LSP storage directory {storage_dir} is not writable: {e}") from e

    archive = Path(archive_name)
    try:
        download_archive(url, archive, timeout, user_agent, session, abort)
        _check_abort(abort)

        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(staging)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            raise ExtractionError(f"LSP archive from {url} is corrupt: {e}") from e

        executable = staging / executable_name
        if not executable.is_file():
            raise ExtractionError(f"LSP archive from {url} does not contain {executable_name}")

        # Make executable (Unix)
        if not is_windows():
            st = os.stat(executable)
            os.chmod(executable, st.st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        _check_abort(abort)
        return staging
    except OSError as e:
        shutil.rmtree(staging, ignore_errors=True)
        raise ExtractionError(f"Failed to extract LSP archive into {staging}: {e}") from e
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    finally:
        archive.unlink(missing_ok=True)


class DownloadCoordinator:
    """
    Installs LSP versions, at most one download per version at a time.

    Different versions install fully in parallel; each has its own lock.
    Concurrent requests for the same missing version produce one download:
    the winner gets Installed, everyone who waited gets AlreadyPresent (or
    the winner's Failed if it failed).
    """

    def __init__(
        self,
        inventory: LocalInventory,
        event_bus: Optional[LifecycleEventBus] = None,
        download_base_url: str = LSP_DOWNLOAD_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        user_agent: str = USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.inventory = inventory
        self.event_bus = event_bus if event_bus is not None else LifecycleEventBus()
        self.download_base_url = download_base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._locks: KeyedLocks[SemanticVersion, DownloadResult] = KeyedLocks("lsp-download")

    def _already_present(self, version: SemanticVersion) -> Optional[AlreadyPresent]:
        path = self.inventory.get_executable_path(version)
        return AlreadyPresent(path) if path is not None else None

    async def ensure_installed(self, version: SemanticVersion) -> DownloadResult:
        """
        Make sure `version` is installed, downloading it if needed.

        Cancelling the awaiting task stops the download, releases the
        version lock and leaves nothing marked as installed.

        Args:
            version: Concrete version to install

        Returns:
            AlreadyPresent, Installed or Failed
        """
        present = self._already_present(version)
        if present is not None:
            logger.debug(f"LSP {version} already installed at {present.path}")
            return present

        lock = self._locks.get(version)
        return await lock.run(
            functools.partial(self._already_present, version),
            functools.partial(self._install, version),
        )

    async def _install(self, version: SemanticVersion) -> DownloadResult:
        try:
            platform_tag = get_platform_tag()
        except UnsupportedPlatformError as e:
            logger.warning(f"Cannot install LSP {version}: {e}")
            return Failed(FailureReason.UNSUPPORTED_PLATFORM, str(e))

        url = get_download_url(version, platform_tag, self.download_base_url)
        logger.info(f"Downloading LSP {version} from {url}")

        abort = threading.Event()
        loop = asyncio.get_running_loop()
        try:
            staging = await loop.run_in_executor(
                None,
                functools.partial(
                    install_archive,
                    url,
                    self.inventory.storage_dir,
                    version.to_dir_name(),
                    self.inventory.executable_name,
                    self.timeout,
                    self.user_agent,
                    self._session,
                    abort,
                ),
            )
            path = self._promote(staging, version)
        except asyncio.CancelledError:
            abort.set()
            logger.info(f"Download of LSP {version} cancelled")
            raise
        except DownloadError as e:
            logger.warning(str(e))
            return Failed(FailureReason.NETWORK_FAILURE, str(e))
        except ExtractionError as e:
            logger.warning(str(e))
            return Failed(FailureReason.EXTRACTION_FAILURE, str(e))

        logger.info(f"Successfully installed LSP {version} to {path}")
        self.event_bus.publish(VersionInstalled(version))
        return Installed(path)

    def _promote(self, staging: Path, version: SemanticVersion) -> Path:
        """Move a finished staging directory to the version directory."""
        target = self.inventory.version_dir(version)
        try:
            # A leftover directory without a usable executable is a broken install
            if target.exists():
                shutil.rmtree(target)
            os.replace(staging, target)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise ExtractionError(f"Failed to install LSP {version} into {target}: {e}") from e
        return self.inventory.executable_location(version)
