"""
Pytest configuration for fpp-lsp-manager tests.
"""

import io
import os
import stat
import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fpp_lsp_manager.types import SemanticVersion

# Note: With pytest-asyncio in auto mode, no event_loop fixture needed

EXECUTABLE = "fpp_lsp_server"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def install_fake_version(storage_dir: Path, version: SemanticVersion, executable: bool = True) -> Path:
    """Create an installed-looking version directory."""
    version_dir = storage_dir / version.to_dir_name()
    version_dir.mkdir(parents=True, exist_ok=True)
    binary = version_dir / EXECUTABLE
    binary.write_bytes(b"#!/bin/sh\necho fpp\n")
    mode = 0o755 if executable else 0o644
    os.chmod(binary, mode)
    return binary


def make_zip(files: dict) -> bytes:
    """Build a zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def make_response(body: bytes = b"", json_data=None, status_error: Exception = None) -> MagicMock:
    """Mock requests.Response supporting streaming and json()."""
    response = MagicMock()
    response.status_code = 200
    response.raise_for_status = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    response.iter_content = MagicMock(return_value=[body[:10], body[10:]])
    if json_data is not None:
        response.json = MagicMock(return_value=json_data)
    return response


@pytest.fixture
def clock():
    """Fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def storage_dir(tmp_path):
    """Empty LSP storage directory."""
    path = tmp_path / "lsp"
    path.mkdir()
    return path


@pytest.fixture
def lsp_zip():
    """Valid LSP archive containing the server executable."""
    return make_zip({EXECUTABLE: b"#!/bin/sh\necho fpp\n"})


@pytest.fixture
def sample_releases():
    """Release index payload with drafts, prereleases and a bad tag."""
    return [
        {
            "tag_name": "1.3.0",
            "name": "1.3.0",
            "prerelease": False,
            "draft": False,
            "published_at": "2025-05-01T10:00:00Z",
            "assets": [],
        },
        {
            "tag_name": "1.2.0",
            "name": "1.2.0",
            "prerelease": False,
            "draft": False,
            "published_at": "2025-04-01T10:00:00Z",
        },
        {
            "tag_name": "1.4.0-rc1",
            "name": "1.4.0 RC",
            "prerelease": True,
            "draft": False,
            "published_at": "2025-05-10T10:00:00Z",
        },
        {
            "tag_name": "2.0.0",
            "name": "2.0.0",
            "prerelease": False,
            "draft": True,
            "published_at": None,
        },
        {
            "tag_name": "nightly",
            "name": "Nightly",
            "prerelease": False,
            "draft": False,
            "published_at": "2025-05-11T10:00:00Z",
        },
    ]


def is_executable(path: Path) -> bool:
    return bool(os.stat(path).st_mode & stat.S_IXUSR)
