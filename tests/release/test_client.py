"""
Tests for releasekit.release.client.

Network traffic is mocked with responses.
"""

import hashlib
import json

import pytest
import requests
import responses

from releasekit.core.exceptions import (
    AmbiguousAssetError,
    AssetNotFoundError,
    ChecksumMismatchError,
    ChecksumNotFoundError,
    FilesystemError,
    HTTPStatusError,
    MetadataParseError,
    NetworkError,
    RateLimitError,
)
from releasekit.core.fetch import ArtifactFetcher
from releasekit.release.client import DownloadResult, ReleaseClient
from releasekit.release.models import AssetDescriptor, ReleaseInfo


def release_with(*names):
    return ReleaseInfo(
        "v1.0.0", tuple(AssetDescriptor(n, f"https://dl/{n}") for n in names)
    )


@pytest.fixture
def client(api_url):
    return ReleaseClient(ArtifactFetcher(), api_url=api_url)


@pytest.fixture
def latest_url(api_url):
    return f"{api_url}/repos/acme/tool/releases/latest"


# ============================================================================
# fetch_info
# ============================================================================


class TestFetchInfo:
    """Test latest release metadata retrieval."""

    def test_end_to_end_metadata(self, rsps, client, latest_url):
        """Test the minimal metadata document yields version and one asset."""
        rsps.add(
            responses.GET,
            latest_url,
            json={
                "version": "v1.54.0",
                "assets": [
                    {"name": "tool-linux-amd64", "url": "https://x/tool-linux-amd64"}
                ],
            },
        )

        release = client.fetch_info("acme", "tool")

        assert release.version == "v1.54.0"
        assert len(release.assets) == 1
        assert release.assets[0].name == "tool-linux-amd64"

    def test_single_request_with_accept(self, rsps, client, latest_url):
        rsps.add(responses.GET, latest_url, json={"tag_name": "v1", "assets": []})

        client.fetch_info("acme", "tool")

        assert len(rsps.calls) == 1
        assert rsps.calls[0].request.headers["Accept"] == "application/vnd.github+json"

    def test_authenticated_metadata_request(self, rsps, api_url, latest_url):
        rsps.add(responses.GET, latest_url, json={"tag_name": "v1", "assets": []})
        client = ReleaseClient(ArtifactFetcher(token="t0k"), api_url=api_url)

        client.fetch_info("acme", "tool")

        assert rsps.calls[0].request.headers["Authorization"] == "Bearer t0k"

    def test_403_is_rate_limit(self, rsps, client, latest_url):
        """Test a 403 from the metadata endpoint is classified as rate limiting."""
        rsps.add(
            responses.GET,
            latest_url,
            status=403,
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
            json={"message": "API rate limit exceeded"},
        )

        with pytest.raises(RateLimitError) as exc_info:
            client.fetch_info("acme", "tool")

        error = exc_info.value
        assert error.code == 403
        assert error.authenticated is False
        assert error.reset_at == 1700000000
        assert "GITHUB_TOKEN" in str(error)

    def test_403_without_rate_limit_headers_still_rate_limit(
        self, rsps, client, latest_url
    ):
        rsps.add(responses.GET, latest_url, status=403)

        with pytest.raises(RateLimitError):
            client.fetch_info("acme", "tool")

    def test_429_is_rate_limit(self, rsps, client, latest_url):
        rsps.add(responses.GET, latest_url, status=429, headers={"Retry-After": "60"})

        with pytest.raises(RateLimitError) as exc_info:
            client.fetch_info("acme", "tool")

        assert exc_info.value.retry_after == 60

    def test_authenticated_rate_limit_has_no_token_hint(self, rsps, api_url, latest_url):
        rsps.add(responses.GET, latest_url, status=403)
        client = ReleaseClient(ArtifactFetcher(token="t0k"), api_url=api_url)

        with pytest.raises(RateLimitError) as exc_info:
            client.fetch_info("acme", "tool")

        assert exc_info.value.authenticated is True
        assert "GITHUB_TOKEN" not in str(exc_info.value)

    def test_404_is_http_status_error(self, rsps, client, latest_url):
        """Test a 404 is an HTTPStatusError and not a RateLimitError."""
        rsps.add(responses.GET, latest_url, status=404, json={"message": "Not Found"})

        with pytest.raises(HTTPStatusError) as exc_info:
            client.fetch_info("acme", "tool")

        assert exc_info.value.code == 404
        assert not isinstance(exc_info.value, RateLimitError)

    def test_500_is_http_status_error(self, rsps, client, latest_url):
        rsps.add(responses.GET, latest_url, status=500)

        with pytest.raises(HTTPStatusError) as exc_info:
            client.fetch_info("acme", "tool")

        assert exc_info.value.code == 500

    def test_network_error_propagates(self, rsps, client, latest_url):
        rsps.add(
            responses.GET,
            latest_url,
            body=requests.exceptions.ConnectionError("name resolution failed"),
        )

        with pytest.raises(NetworkError):
            client.fetch_info("acme", "tool")

    def test_invalid_document(self, rsps, client, latest_url):
        rsps.add(responses.GET, latest_url, json={"assets": []})

        with pytest.raises(MetadataParseError, match="no version"):
            client.fetch_info("acme", "tool")

    def test_not_json(self, rsps, client, latest_url):
        rsps.add(responses.GET, latest_url, body="<html>oops</html>")

        with pytest.raises(MetadataParseError):
            client.fetch_info("acme", "tool")

    def test_api_url_trailing_slash(self, api_url):
        client = ReleaseClient(ArtifactFetcher(), api_url=api_url + "/")
        assert client.latest_release_url("a", "b") == (
            f"{api_url}/repos/a/b/releases/latest"
        )

    def test_missing_coordinates(self, client):
        with pytest.raises(ValueError):
            client.latest_release_url("", "tool")


# ============================================================================
# select_asset
# ============================================================================


class TestSelectAsset:
    """Test platform/arch asset matching."""

    def test_selects_single_match(self, client):
        release = release_with("app-linux-amd64", "app-darwin-amd64")

        asset = client.select_asset(release, "darwin", "amd64")

        assert asset.name == "app-darwin-amd64"

    def test_deterministic(self, client):
        release = release_with("app-linux-amd64", "app-darwin-amd64")
        first = client.select_asset(release, "linux", "amd64")
        second = client.select_asset(release, "linux", "amd64")
        assert first == second

    def test_ambiguous_never_picks_first(self, client):
        """Test two darwin/amd64 assets raise AmbiguousAssetError."""
        release = release_with("app-darwin-amd64", "app-darwin-amd64.tar.gz")

        with pytest.raises(AmbiguousAssetError) as exc_info:
            client.select_asset(release, "darwin", "amd64")

        assert exc_info.value.matches == [
            "app-darwin-amd64",
            "app-darwin-amd64.tar.gz",
        ]

    def test_microarchitecture_variant_is_ambiguous(self, client):
        """Test amd64 and amd64v3 builds both count as darwin/amd64."""
        release = release_with("app-darwin-amd64", "app-darwin-amd64v3")

        with pytest.raises(AmbiguousAssetError) as exc_info:
            client.select_asset(release, "darwin", "amd64")

        assert exc_info.value.matches == ["app-darwin-amd64", "app-darwin-amd64v3"]

    def test_invalid_asset_pattern(self, api_url):
        with pytest.raises(ValueError, match="asset pattern"):
            ReleaseClient(ArtifactFetcher(), api_url=api_url, asset_pattern="tool-{os")

    def test_no_match(self, client):
        release = release_with("app-linux-amd64")

        with pytest.raises(AssetNotFoundError) as exc_info:
            client.select_asset(release, "windows", "arm64")

        assert exc_info.value.available == ["app-linux-amd64"]

    def test_aliases(self, client):
        release = release_with("tool-x86_64-apple-darwin.tar.gz", "tool-x86_64-linux.tar.gz")

        asset = client.select_asset(release, "darwin", "amd64")

        assert asset.name == "tool-x86_64-apple-darwin.tar.gz"

    def test_arm_does_not_match_arm64(self, client):
        release = release_with("tool-linux-arm64", "tool-linux-armv7")

        assert client.select_asset(release, "linux", "arm").name == "tool-linux-armv7"
        assert client.select_asset(release, "linux", "arm64").name == "tool-linux-arm64"

    def test_x86_does_not_match_x86_64(self, client):
        release = release_with("tool-linux-x86_64", "tool-linux-i386")

        assert client.select_asset(release, "linux", "386").name == "tool-linux-i386"

    def test_checksum_and_signature_files_ignored(self, client):
        release = release_with(
            "tool-linux-amd64",
            "tool-linux-amd64.sha256",
            "tool-linux-amd64.asc",
            "checksums.txt",
        )

        assert client.select_asset(release, "linux", "amd64").name == "tool-linux-amd64"

    def test_asset_pattern(self, api_url):
        client = ReleaseClient(
            ArtifactFetcher(),
            api_url=api_url,
            asset_pattern="tool-{platform}-{arch}.tar.gz",
        )
        release = release_with("tool-linux-amd64.tar.gz", "tool-linux-amd64.zip")

        assert (
            client.select_asset(release, "linux", "amd64").name
            == "tool-linux-amd64.tar.gz"
        )


# ============================================================================
# download_latest
# ============================================================================


class TestDownloadLatest:
    """Test verified download."""

    def test_downloads_and_verifies(self, rsps, mock_release, release_payloads, client, tmp_path):
        bodies, _ = release_payloads
        dest = tmp_path / "out" / "tool"

        result = client.download_latest("acme", "tool", "linux", "amd64", dest)

        assert isinstance(result, DownloadResult)
        assert result.path == dest
        assert result.asset.name == "tool-linux-amd64"
        assert result.release.version == "v1.54.0"
        assert result.checksum.algorithm == "sha256"
        assert dest.read_bytes() == bodies["tool-linux-amd64"]

    def test_request_sequence(self, rsps, mock_release, client, tmp_path, download_base):
        client.download_latest("acme", "tool", "darwin", "arm64", tmp_path / "tool")

        urls = [call.request.url for call in rsps.calls]
        assert urls[1:] == [
            f"{download_base}/tool-darwin-arm64",
            f"{download_base}/checksums.txt",
        ]
        assert rsps.calls[1].request.headers["Accept"] == "application/octet-stream"

    def test_destination_directory(self, rsps, mock_release, client, tmp_path):
        result = client.download_latest("acme", "tool", "linux", "amd64", tmp_path)
        assert result.path == tmp_path / "tool-linux-amd64"
        assert result.path.exists()

    def test_corrupted_body_leaves_sentinel(
        self, rsps, release_payloads, make_release, client, api_url, download_base, tmp_path
    ):
        """Test a mismatching digest raises and leaves dest untouched."""
        bodies, checksums = release_payloads
        document = make_release("v1.54.0", list(bodies) + ["checksums.txt"])
        corrupted = bytearray(bodies["tool-linux-amd64"])
        corrupted[-1] ^= 0xFF

        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(document),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=bytes(corrupted))
        rsps.add(responses.GET, f"{download_base}/checksums.txt", body=checksums)

        dest = tmp_path / "tool"
        dest.write_bytes(b"sentinel")

        with pytest.raises(ChecksumMismatchError):
            client.download_latest("acme", "tool", "linux", "amd64", dest)

        assert dest.read_bytes() == b"sentinel"
        assert [p.name for p in tmp_path.iterdir()] == ["tool"]

    def test_missing_checksum_file(
        self, rsps, make_release, client, api_url, download_base, tmp_path
    ):
        """Test a release without checksums is a failure, not a silent pass."""
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", ["tool-linux-amd64"])),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=b"bin")

        dest = tmp_path / "tool"
        with pytest.raises(ChecksumNotFoundError):
            client.download_latest("acme", "tool", "linux", "amd64", dest)

        assert not dest.exists()

    def test_missing_checksum_entry(
        self, rsps, make_release, client, api_url, download_base, tmp_path
    ):
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", ["tool-linux-amd64", "checksums.txt"])),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=b"bin")
        rsps.add(
            responses.GET,
            f"{download_base}/checksums.txt",
            body=f"{'a' * 64}  tool-darwin-amd64\n",
        )

        with pytest.raises(ChecksumNotFoundError, match="no entry"):
            client.download_latest("acme", "tool", "linux", "amd64", tmp_path / "tool")

    def test_companion_checksum_preferred(
        self, rsps, make_release, client, api_url, download_base, tmp_path
    ):
        """Test <asset>.sha256 wins over a release-wide listing."""
        body = b"binary"
        names = ["tool-linux-amd64", "tool-linux-amd64.sha256", "checksums.txt"]
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", names)),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=body)
        rsps.add(
            responses.GET,
            f"{download_base}/tool-linux-amd64.sha256",
            body=hashlib.sha256(body).hexdigest() + "\n",
        )

        result = client.download_latest("acme", "tool", "linux", "amd64", tmp_path / "t")

        assert result.path.read_bytes() == body
        assert not any(
            call.request.url.endswith("checksums.txt") for call in rsps.calls
        )

    def test_bare_line_in_listing_does_not_override_entry(
        self, rsps, make_release, client, api_url, download_base, tmp_path
    ):
        body = b"binary"
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", ["tool-linux-amd64", "checksums.txt"])),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=body)
        rsps.add(
            responses.GET,
            f"{download_base}/checksums.txt",
            body=f"{hashlib.sha256(body).hexdigest()}  tool-linux-amd64\n{'0' * 64}\n",
        )

        result = client.download_latest("acme", "tool", "linux", "amd64", tmp_path / "t")

        assert result.checksum.digest == hashlib.sha256(body).hexdigest()

    def test_sha512sums(self,rsps, make_release, client, api_url, download_base, tmp_path):
        body = b"binary"
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", ["tool-linux-amd64", "SHA512SUMS"])),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", body=body)
        rsps.add(
            responses.GET,
            f"{download_base}/SHA512SUMS",
            body=f"{hashlib.sha512(body).hexdigest()}  tool-linux-amd64\n",
        )

        result = client.download_latest("acme", "tool", "linux", "amd64", tmp_path / "t")

        assert result.checksum.algorithm == "sha512"

    def test_asset_download_error_propagates(
        self, rsps, make_release, client, api_url, download_base, tmp_path
    ):
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            body=json.dumps(make_release("v1", ["tool-linux-amd64", "checksums.txt"])),
        )
        rsps.add(responses.GET, f"{download_base}/tool-linux-amd64", status=502)

        dest = tmp_path / "tool"
        with pytest.raises(HTTPStatusError) as exc_info:
            client.download_latest("acme", "tool", "linux", "amd64", dest)

        assert exc_info.value.code == 502
        assert not dest.exists()

    def test_selection_error_stops_before_download(self, rsps, mock_release, client, tmp_path):
        with pytest.raises(AssetNotFoundError):
            client.download_latest("acme", "tool", "windows", "amd64", tmp_path / "t")

        assert len(rsps.calls) == 1

    def test_write_failure_is_filesystem_error(self, rsps, mock_release, client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not directory")

        with pytest.raises(FilesystemError):
            client.download_latest(
                "acme", "tool", "linux", "amd64", blocker / "tool"
            )

    def test_end_to_end_scenario(self, rsps, api_url, tmp_path):
        """Test metadata, single asset and checksum line for v1.54.0."""
        body = b"tool linux amd64"
        digest = hashlib.sha256(body).hexdigest()
        rsps.add(
            responses.GET,
            f"{api_url}/repos/acme/tool/releases/latest",
            json={
                "version": "v1.54.0",
                "assets": [
                    {"name": "tool-linux-amd64", "url": "https://x/tool-linux-amd64"},
                    {"name": "checksums.txt", "url": "https://x/checksums.txt"},
                ],
            },
        )
        rsps.add(responses.GET, "https://x/tool-linux-amd64", body=body)
        rsps.add(
            responses.GET,
            "https://x/checksums.txt",
            body=f"{digest}  tool-linux-amd64\n",
        )
        client = ReleaseClient(ArtifactFetcher(), api_url=api_url)
        dest = tmp_path / "tool"

        result = client.download_latest("acme", "tool", "linux", "amd64", dest)

        assert result.release.version == "v1.54.0"
        assert dest.read_bytes() == body
