"""
Remote release index access with a time-based cache.

The release list is fetched from the GitHub releases API, filtered down to
eligible (non-draft, non-prerelease) versions and kept for a fixed TTL.
Concurrent callers during an expired window share a single refresh.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Iterable, List, Optional, Tuple

import requests

from fpp_lsp_manager._core.locking import DoubleCheckedLock
from fpp_lsp_manager._core.version import (
    CACHE_TTL_SECONDS,
    LSP_GITHUB_API_URL,
    REQUEST_TIMEOUT_SECONDS,
    USER_AGENT,
)
from fpp_lsp_manager.errors import (
    ReleaseDecodeError,
    ReleaseFetchError,
    VersionParseError,
)
from fpp_lsp_manager.types import Release, SemanticVersion

logger = logging.getLogger(__name__)


def fetch_releases(
    url: str = LSP_GITHUB_API_URL,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    user_agent: str = USER_AGENT,
    session: Optional[requests.Session] = None,
) -> List[Release]:
    """
    Fetch and decode the raw release list (blocking).

    Args:
        url: Release index endpoint
        timeout: Request timeout in seconds
        user_agent: User-Agent header value
        session: Optional requests session to reuse connections

    Returns:
        Every release in the index, eligible or not

    Raises:
        ReleaseFetchError: If the index is unreachable or returns an error status
        ReleaseDecodeError: If the body is not a JSON array of releases
    """
    http: Any = session or requests
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": user_agent,
    }

    try:
        response = http.get(url, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise ReleaseFetchError(f"Failed to fetch LSP releases from {url}: {e}", url=url) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ReleaseDecodeError(f"LSP release index is not valid JSON: {e}") from e

    if not isinstance(payload, list):
        raise ReleaseDecodeError(
            f"LSP release index is not a JSON array (got {type(payload).__name__})"
        )

    return [Release.from_json(obj) for obj in payload]


def eligible_versions(releases: Iterable[Release]) -> List[SemanticVersion]:
    """
    Reduce releases to the sorted list of downloadable versions.

    Drafts and prereleases are dropped. Tags that are not versions are
    logged and skipped; the rest of the list is still usable.
    """
    versions = set()
    for release in releases:
        if not release.is_eligible:
            continue
        try:
            versions.add(SemanticVersion.parse(release.tag_name))
        except VersionParseError as e:
            logger.warning(f"Skipping LSP release with unparseable tag: {e}")
    return sorted(versions)


class RemoteReleaseCache:
    """
    Caches the eligible LSP versions for a fixed time-to-live.

    Reads during a valid window never block. Once the window expires, the
    first caller refreshes under the cache lock and everyone queued behind it
    receives that refresh's result, success or failure. A failed refresh
    leaves the previous entries in place (see `cached_versions`).
    """

    def __init__(
        self,
        releases_url: str = LSP_GITHUB_API_URL,
        ttl: float = CACHE_TTL_SECONDS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        user_agent: str = USER_AGENT,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.releases_url = releases_url
        self.ttl = ttl
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._clock = clock

        # (entries, expires_at); replaced as a whole so readers never see a mixed pair
        self._state: Optional[Tuple[Tuple[SemanticVersion, ...], float]] = None
        self._refresh = DoubleCheckedLock("release-cache")

    def _fresh_entries(self) -> Optional[List[SemanticVersion]]:
        state = self._state
        if state is not None and self._clock() < state[1]:
            return list(state[0])
        return None

    async def get_versions(self) -> List[SemanticVersion]:
        """
        Get eligible LSP versions, sorted ascending.

        Returns:
            Cached versions while fresh, otherwise a newly fetched list

        Raises:
            ReleaseFetchError: If the refresh could not reach the index
            ReleaseDecodeError: If the refresh could not decode the index
        """
        versions = self._fresh_entries()
        if versions is not None:
            logger.debug("Returning cached LSP versions")
            return versions
        return await self._refresh.run(self._fresh_entries, self._fetch)

    async def _fetch(self) -> List[SemanticVersion]:
        logger.debug(f"LSP version cache expired or empty, fetching {self.releases_url}")
        loop = asyncio.get_running_loop()
        releases = await loop.run_in_executor(
            None,
            fetch_releases,
            self.releases_url,
            self.timeout,
            self.user_agent,
            self._session,
        )
        versions = tuple(eligible_versions(releases))
        expires_at = self._clock() + self.ttl
        self._state = (versions, expires_at)
        logger.debug(f"LSP version cache updated with {len(versions)} versions")
        return list(versions)

    @property
    def cached_versions(self) -> List[SemanticVersion]:
        """Last successfully fetched versions, fresh or not (empty if none)."""
        state = self._state
        return list(state[0]) if state is not None else []

    @property
    def is_fresh(self) -> bool:
        """Check if the cache holds entries that have not expired."""
        return self._fresh_entries() is not None

    def invalidate(self) -> None:
        """Expire the cache now, keeping its entries for stale fallback."""
        state = self._state
        if state is not None:
            self._state = (state[0], float("-inf"))
