"""Tests for fpp_lsp_manager._core.version module."""

import os
from pathlib import Path
from unittest.mock import patch

from fpp_lsp_manager._core.version import (
    MANAGER_VERSION,
    CACHE_TTL_SECONDS,
    LSP_DOWNLOAD_BASE_URL,
    LSP_GITHUB_API_URL,
    LspManagerConfig,
    get_archive_name,
    get_config_root,
    get_download_url,
    get_release_notes_url,
)
from fpp_lsp_manager.types import SemanticVersion


class TestVersionConstants:
    """Tests for version constants."""

    def test_manager_version_format(self):
        """Manager version should be valid semver."""
        parts = MANAGER_VERSION.split(".")
        assert len(parts) == 3
        for part in parts:
            assert part.isdigit()

    def test_cache_ttl_is_25_minutes(self):
        assert CACHE_TTL_SECONDS == 25 * 60

    def test_api_url(self):
        assert LSP_GITHUB_API_URL == "https://api.github.com/repos/Kronos3/fpp-rust/releases"


class TestGetDownloadUrl:
    """Tests for get_download_url function."""

    def test_linux_url(self):
        url = get_download_url(SemanticVersion(1, 2, 0), "linux-x64")
        assert url == f"{LSP_DOWNLOAD_BASE_URL}/1.2.0/fpp-lsp-linux-x64.zip"

    def test_windows_url(self):
        url = get_download_url(SemanticVersion(1, 2, 0), "windows")
        assert url.endswith("/1.2.0/fpp-lsp-windows.zip")

    def test_custom_base_url(self):
        url = get_download_url(SemanticVersion(0, 1, 0), "macos-arm64", "https://mirror.example.com/dl/")
        assert url == "https://mirror.example.com/dl/0.1.0/fpp-lsp-macos-arm64.zip"

    def test_archive_name(self):
        assert get_archive_name("linux-arm64") == "fpp-lsp-linux-arm64.zip"


class TestReleaseNotesUrl:
    """Tests for get_release_notes_url function."""

    def test_points_at_tag_page(self):
        url = get_release_notes_url(SemanticVersion(1, 3, 0))
        assert url == "https://github.com/Kronos3/fpp-rust/releases/tag/1.3.0"


class TestConfigRoot:
    """Tests for get_config_root function."""

    def test_env_override(self, tmp_path):
        with patch.dict(os.environ, {"FPP_LSP_HOME": str(tmp_path)}):
            assert get_config_root() == tmp_path

    def test_default_uses_user_config_dir(self):
        env = {k: v for k, v in os.environ.items() if k != "FPP_LSP_HOME"}
        with patch.dict(os.environ, env, clear=True):
            with patch("fpp_lsp_manager._core.version.user_config_dir", return_value="/home/u/.config/fpp-lsp"):
                assert get_config_root() == Path("/home/u/.config/fpp-lsp")


class TestLspManagerConfig:
    """Tests for LspManagerConfig dataclass."""

    def test_default_values(self, tmp_path):
        with patch.dict(os.environ, {"FPP_LSP_HOME": str(tmp_path)}):
            config = LspManagerConfig()
        assert config.storage_dir == tmp_path / "lsp"
        assert config.releases_url == LSP_GITHUB_API_URL
        assert config.download_base_url == LSP_DOWNLOAD_BASE_URL
        assert config.cache_ttl == CACHE_TTL_SECONDS

    def test_storage_dir_coerced_to_path(self):
        config = LspManagerConfig(storage_dir="/tmp/lsp-store")
        assert config.storage_dir == Path("/tmp/lsp-store")

    def test_from_env(self, tmp_path):
        env = {
            "FPP_LSP_HOME": str(tmp_path),
            "FPP_LSP_RELEASES_URL": "https://mirror.example.com/releases",
            "FPP_LSP_DOWNLOAD_URL": "https://mirror.example.com/download",
        }
        with patch.dict(os.environ, env):
            config = LspManagerConfig.from_env()
        assert config.storage_dir == tmp_path / "lsp"
        assert config.releases_url == "https://mirror.example.com/releases"
        assert config.download_base_url == "https://mirror.example.com/download"

    def test_from_env_defaults(self, tmp_path):
        env = {k: v for k, v in os.environ.items() if not k.startswith("FPP_LSP_")}
        env["FPP_LSP_HOME"] = str(tmp_path)
        with patch.dict(os.environ, env, clear=True):
            config = LspManagerConfig.from_env()
        assert config.releases_url == LSP_GITHUB_API_URL
        assert config.download_base_url == LSP_DOWNLOAD_BASE_URL
