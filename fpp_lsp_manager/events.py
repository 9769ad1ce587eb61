"""
Lifecycle events published by the LSP manager.

Listeners (for example the editor's restart logic) subscribe to the bus and
are called after a new LSP version has been installed.

Usage:
    from fpp_lsp_manager import LifecycleEventBus, VersionInstalled

    bus = LifecycleEventBus()
    unsubscribe = bus.subscribe(lambda event: print(f"installed {event.version}"))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from fpp_lsp_manager.types import (
    Auto,
    DesiredVersionSpec,
    LatestVersion,
    SemanticVersion,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionInstalled:
    """A version finished downloading and is ready to launch."""
    version: SemanticVersion


LifecycleEvent = VersionInstalled

Listener = Callable[[LifecycleEvent], None]


class LifecycleEventBus:
    """
    Minimal publish/subscribe channel for lifecycle events.

    Listeners are called synchronously in subscription order. A listener
    that raises is logged and skipped; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: LifecycleEvent) -> None:
        """Deliver an event to every current listener."""
        with self._lock:
            listeners = list(self._listeners)

        logger.debug(f"Publishing {event} to {len(listeners)} listener(s)")
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"LSP lifecycle listener {listener!r} failed for {event}")

    def __len__(self) -> int:
        return len(self._listeners)


def needs_restart(
    spec: DesiredVersionSpec,
    event: LifecycleEvent,
    latest_installed: Optional[SemanticVersion],
) -> bool:
    """
    Decide whether a running server should restart after an install.

    Only the automatic configuration reacts to downloads:
    - "latest": restart when the new version is at least the newest installed one
    - pinned: restart when the pinned version is the one just installed

    Args:
        spec: Current desired version specification
        event: The lifecycle event that was published
        latest_installed: Newest installed version after the install

    Returns:
        True if the server should be (re)started
    """
    if not isinstance(spec, Auto):
        return False
    if isinstance(spec.version, LatestVersion):
        return latest_installed is None or event.version >= latest_installed
    return spec.version == event.version
