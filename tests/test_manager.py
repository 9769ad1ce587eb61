"""Tests for fpp_lsp_manager.manager module."""

import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import install_fake_version, make_response
from fpp_lsp_manager._core.version import LspManagerConfig
from fpp_lsp_manager.errors import ReleaseFetchError
from fpp_lsp_manager.events import LifecycleEventBus
from fpp_lsp_manager.manager import LspManager
from fpp_lsp_manager.types import (
    LATEST,
    Auto,
    AutoConfiguration,
    BinaryMissing,
    Disabled,
    DisabledConfiguration,
    Installed,
    LspIsNotConfigured,
    Manual,
    ManualConfiguration,
    ReadyToUse,
    SemanticVersion,
    UpdateAvailable,
)

V = SemanticVersion


@pytest.fixture(autouse=True)
def reset_singleton():
    """Reset LspManager singleton before and after each test."""
    LspManager.reset_instance()
    yield
    LspManager.reset_instance()


@pytest.fixture
def manager(storage_dir):
    m = LspManager(LspManagerConfig(storage_dir=storage_dir))
    m.inventory.executable_name = "fpp_lsp_server"
    return m


class TestLspManagerSingleton:
    """Tests for LspManager singleton pattern."""

    def test_get_instance_returns_same_instance(self, tmp_path):
        with patch.dict(os.environ, {"FPP_LSP_HOME": str(tmp_path)}):
            assert LspManager.get_instance() is LspManager.get_instance()

    def test_reset_instance(self, tmp_path):
        with patch.dict(os.environ, {"FPP_LSP_HOME": str(tmp_path)}):
            first = LspManager.get_instance()
            LspManager.reset_instance()
            assert LspManager.get_instance() is not first

    def test_instance_uses_environment(self, tmp_path):
        with patch.dict(os.environ, {"FPP_LSP_HOME": str(tmp_path)}):
            assert LspManager.get_instance().inventory.storage_dir == tmp_path / "lsp"


class TestLspManagerWiring:
    """Tests for component wiring."""

    def test_components_share_configuration(self, storage_dir):
        config = LspManagerConfig(
            storage_dir=storage_dir,
            releases_url="https://example.com/releases",
            download_base_url="https://example.com/download",
            cache_ttl=60,
        )
        manager = LspManager(config)

        assert manager.releases.releases_url == "https://example.com/releases"
        assert manager.releases.ttl == 60
        assert manager.inventory.storage_dir == storage_dir
        assert manager.coordinator.download_base_url == "https://example.com/download"
        assert manager.coordinator.inventory is manager.inventory

    def test_coordinator_publishes_on_manager_bus(self, storage_dir):
        bus = LifecycleEventBus()
        manager = LspManager(LspManagerConfig(storage_dir=storage_dir), event_bus=bus)
        assert manager.events is bus
        assert manager.coordinator.event_bus is bus

    def test_default_bus_is_shared_with_coordinator(self, storage_dir):
        manager = LspManager(LspManagerConfig(storage_dir=storage_dir))
        assert manager.coordinator.event_bus is manager.events


@pytest.mark.skipif(sys.platform == "win32", reason="Executable bit not applicable on Windows")
class TestLspManagerCheck:
    """Tests for LspManager.check."""

    @pytest.mark.asyncio
    async def test_update_available(self, manager, storage_dir):
        install_fake_version(storage_dir, V(1, 2, 0))
        with patch.object(manager.releases, "get_versions", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = [V(1, 2, 0), V(1, 3, 0)]
            assert await manager.check(LATEST) == UpdateAvailable(V(1, 3, 0))

    @pytest.mark.asyncio
    async def test_ready(self, manager, storage_dir):
        install_fake_version(storage_dir, V(1, 3, 0))
        with patch.object(manager.releases, "get_versions", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = [V(1, 2, 0), V(1, 3, 0)]
            assert await manager.check(LATEST) == ReadyToUse()

    @pytest.mark.asyncio
    async def test_pinned_missing(self, manager):
        with patch.object(manager.releases, "get_versions", new_callable=AsyncMock) as mock_get:
            mock_get.return_value = []
            assert await manager.check(V(2, 0, 0)) == BinaryMissing(V(2, 0, 0))

    @pytest.mark.asyncio
    async def test_fetch_failure_without_cache_is_not_configured(self, manager):
        with patch.object(manager.releases, "get_versions", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = ReleaseFetchError("offline")
            assert await manager.check(LATEST) == LspIsNotConfigured()

    @pytest.mark.asyncio
    async def test_fetch_failure_falls_back_to_stale_list(self, manager, storage_dir):
        install_fake_version(storage_dir, V(1, 2, 0))
        manager.releases._state = ((V(1, 2, 0), V(1, 3, 0)), float("-inf"))
        with patch.object(manager.releases, "get_versions", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = ReleaseFetchError("offline")
            assert await manager.check(LATEST) == UpdateAvailable(V(1, 3, 0))


class TestLspManagerDownload:
    """Tests for LspManager.download."""

    @pytest.mark.asyncio
    async def test_delegates_to_coordinator(self, manager, storage_dir):
        expected = Installed(storage_dir / "1_3_0" / "fpp_lsp_server")
        with patch.object(manager.coordinator, "ensure_installed", new_callable=AsyncMock) as mock_ensure:
            mock_ensure.return_value = expected
            assert await manager.download(V(1, 3, 0)) == expected
            mock_ensure.assert_called_once_with(V(1, 3, 0))


@pytest.mark.skipif(sys.platform == "win32", reason="Executable bit not applicable on Windows")
class TestResolveConfiguration:
    """Tests for LspManager.resolve_configuration."""

    def test_disabled(self, manager):
        assert manager.resolve_configuration(Disabled()) == DisabledConfiguration()

    def test_manual(self, manager):
        config = manager.resolve_configuration(Manual(Path("/opt/fpp/fpp_lsp_server")))
        assert config == ManualConfiguration(Path("/opt/fpp/fpp_lsp_server"))
        assert config.is_ready

    def test_auto_latest_uses_newest_installed(self, manager, storage_dir):
        install_fake_version(storage_dir, V(1, 2, 0))
        binary = install_fake_version(storage_dir, V(1, 3, 0))

        config = manager.resolve_configuration(Auto(LATEST))

        assert config == AutoConfiguration(V(1, 3, 0), binary)
        assert config.is_ready

    def test_auto_latest_nothing_installed(self, manager):
        config = manager.resolve_configuration(Auto(LATEST))
        assert config == AutoConfiguration(None, None)
        assert not config.is_ready

    def test_auto_pinned_not_installed(self, manager):
        config = manager.resolve_configuration(Auto(V(2, 0, 0)))
        assert config.version == V(2, 0, 0)
        assert config.executable_path is None

    def test_unknown_spec(self, manager):
        with pytest.raises(TypeError):
            manager.resolve_configuration(MagicMock())


class TestReleaseNotesUrl:
    """Tests for LspManager.release_notes_url."""

    def test_url(self):
        assert LspManager.release_notes_url(V(1, 3, 0)).endswith("/releases/tag/1.3.0")


@pytest.mark.skipif(sys.platform == "win32", reason="Executable bit not applicable on Windows")
class TestLspManagerFlow:
    """End-to-end flow with a mocked HTTP session."""

    @pytest.mark.asyncio
    async def test_check_download_recheck(self, storage_dir, sample_releases, lsp_zip):
        def fake_get(url, **kwargs):
            if url == "https://example.com/releases":
                return make_response(json_data=sample_releases)
            return make_response(lsp_zip)

        session = MagicMock()
        session.get = MagicMock(side_effect=fake_get)
        config = LspManagerConfig(
            storage_dir=storage_dir,
            releases_url="https://example.com/releases",
            download_base_url="https://example.com/download",
        )
        manager = LspManager(config, session=session)
        installed_events = []
        manager.events.subscribe(installed_events.append)

        with patch("fpp_lsp_manager._core.lifecycle.get_platform_tag", return_value="linux-x64"):
            status = await manager.check(LATEST)
            assert status == BinaryMissing(V(1, 3, 0))

            result = await manager.download(status.version)
            assert isinstance(result, Installed)

        assert await manager.check(LATEST) == ReadyToUse()
        assert [e.version for e in installed_events] == [V(1, 3, 0)]
        assert manager.resolve_configuration(Auto()).require_executable() == result.path
        # one release index request, one archive request
        assert session.get.call_count == 2
