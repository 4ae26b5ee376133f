"""
Pytest configuration and shared fixtures for releasekit tests.
"""

import hashlib
import json
import os
import stat
from pathlib import Path

import pytest
import responses


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


API_URL = "https://api.example.test"
DOWNLOAD_BASE = "https://downloads.example.test/releases/v1.54.0"


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def github_release(version, assets, published_at="2024-05-01T12:00:00Z"):
    """Build a GitHub style release document."""
    return {
        "tag_name": version,
        "name": f"Release {version}",
        "prerelease": False,
        "published_at": published_at,
        "assets": [
            {
                "name": name,
                "browser_download_url": f"{DOWNLOAD_BASE}/{name}",
                "url": f"{API_URL}/assets/{i}",
                "size": 0,
            }
            for i, name in enumerate(assets)
        ],
    }


@pytest.fixture
def api_url() -> str:
    return API_URL


@pytest.fixture
def download_base() -> str:
    return DOWNLOAD_BASE


@pytest.fixture
def make_release():
    """Factory for GitHub style release documents."""
    return github_release


@pytest.fixture
def release_payloads():
    """Asset bodies and a matching checksums.txt for a small release."""
    bodies = {
        "tool-linux-amd64": b"\x7fELF linux amd64 build",
        "tool-darwin-arm64": b"\xcf\xfa\xed\xfe darwin arm64 build",
    }
    checksums = "".join(
        f"{sha256_hex(body)}  {name}\n" for name, body in bodies.items()
    )
    return bodies, checksums


@pytest.fixture
def rsps():
    """Active responses mock; unfired registrations are allowed."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def mock_release(rsps, release_payloads):
    """Register a full release (metadata, assets, checksums.txt) on rsps."""
    bodies, checksums = release_payloads
    names = list(bodies) + ["checksums.txt"]
    document = github_release("v1.54.0", names)

    rsps.add(
        responses.GET,
        f"{API_URL}/repos/acme/tool/releases/latest",
        body=json.dumps(document),
        status=200,
        content_type="application/json",
    )
    for name, body in bodies.items():
        rsps.add(responses.GET, f"{DOWNLOAD_BASE}/{name}", body=body, status=200)
    rsps.add(
        responses.GET,
        f"{DOWNLOAD_BASE}/checksums.txt",
        body=checksums,
        status=200,
    )
    return document


@pytest.fixture
def fake_executable(tmp_path):
    """Factory creating an executable file at tmp_path/<subdir>/<name>."""

    def _make(name: str, subdir: str = "bin") -> Path:
        directory = tmp_path / subdir
        directory.mkdir(parents=True, exist_ok=True)
        exe = directory / name
        exe.write_text("#!/bin/sh\nexit 0\n")
        exe.chmod(exe.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return exe

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove releasekit related variables from the environment."""
    for var in (
        "GITHUB_TOKEN",
        "RELEASEKIT_TOKEN",
        "RELEASEKIT_TOOLCHAIN",
        "RELEASEKIT_API_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    return os.environ


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from releasekit.core import platform

    platform.clear_host_cache()
    yield
