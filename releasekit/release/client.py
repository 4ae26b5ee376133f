"""
releasekit/release/client.py

Latest-release resolution and verified asset download.

ReleaseClient composes ArtifactFetcher calls into two operations:

- fetch_info(): read the "latest release" metadata of a repository
- download_latest(): select the asset for a platform/arch pair, download it,
  verify it against the release's checksum file and only then place it at
  the destination path
"""

import fnmatch
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from ..core.exceptions import (
    AmbiguousAssetError,
    AssetNotFoundError,
    ChecksumNotFoundError,
    HTTPStatusError,
    RateLimitError,
)
from ..core.fetch import ArtifactFetcher
from ..core.filesystem import atomic_write
from ..core.platform import arch_aliases, normalize_arch, normalize_os, os_aliases
from ..core.verification import Checksum, find_checksum, verify_bytes
from .models import AssetDescriptor, ReleaseInfo, parse_release

logger = logging.getLogger(__name__)


DEFAULT_API_URL = "https://api.github.com"

METADATA_ACCEPT = "application/vnd.github+json"
ASSET_ACCEPT = "application/octet-stream"

# Release-wide checksum listings, in priority order. Glob patterns allowed.
DEFAULT_CHECKSUM_NAMES = (
    "checksums.txt",
    "SHA256SUMS",
    "SHA256SUMS.txt",
    "sha256sums.txt",
    "SHA512SUMS",
    "*checksums*.txt",
    "*SHA256SUMS*",
)

# Suffixes of single-asset companion checksum files
COMPANION_SUFFIXES = (".sha256", ".sha512", ".sha256sum", ".sha512sum")

_NON_ARTIFACT_SUFFIXES = COMPANION_SUFFIXES + (
    ".sha1",
    ".md5",
    ".asc",
    ".sig",
    ".pem",
    ".sbom",
    ".intoto.jsonl",
)

RATE_LIMIT_STATUSES = (403, 429)


class DownloadState(Enum):
    """Stages of download_latest(); each is logged as it is reached."""

    START = "start"
    METADATA_FETCHED = "metadata_fetched"
    ASSET_SELECTED = "asset_selected"
    ASSET_DOWNLOADED = "asset_downloaded"
    CHECKSUM_VERIFIED = "checksum_verified"
    WRITTEN = "written"


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of a successful download_latest() call."""

    path: Path
    release: ReleaseInfo
    asset: AssetDescriptor
    checksum: Checksum


def _token_pattern(alias: str) -> "re.Pattern[str]":
    # Alias must not sit inside a longer alphanumeric run, except for a
    # microarchitecture level ("amd64v3"), and "x86" must not match the head
    # of "x86_64".
    return re.compile(
        rf"(?<![a-z0-9]){re.escape(alias)}(?!(?!v\d)[a-z0-9]|_\d)"
    )


def _contains_token(name: str, aliases: Sequence[str]) -> bool:
    return any(_token_pattern(alias).search(name) for alias in aliases)


def validate_asset_pattern(pattern: str) -> str:
    """
    Check that an asset pattern only uses the {platform} and {arch} fields.

    Raises:
        ValueError: If the pattern is malformed or names another field
    """
    try:
        pattern.format(platform="linux", arch="amd64")
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(
            f"Invalid asset pattern {pattern!r}: use only {{platform}} and {{arch}} ({e!r})"
        ) from e
    return pattern


def _parse_int_header(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class ReleaseClient:
    """
    Resolve and download release artifacts from a GitHub-compatible host.

    Example:
        >>> fetcher = ArtifactFetcher(token=settings.token)
        >>> client = ReleaseClient(fetcher)
        >>> info = client.fetch_info("ziglang", "zig")
        >>> client.download_latest("goreleaser", "goreleaser", "linux", "amd64",
        ...                        Path("bin/goreleaser.tar.gz"))
    """

    def __init__(
        self,
        fetcher: ArtifactFetcher,
        api_url: str = DEFAULT_API_URL,
        asset_pattern: Optional[str] = None,
        checksum_names: Sequence[str] = DEFAULT_CHECKSUM_NAMES,
    ):
        """
        Initialize client.

        Args:
            fetcher: Fetcher used for every request
            api_url: Base URL of the release metadata API
            asset_pattern: Optional glob with {platform}/{arch} placeholders
                replacing the default token-matching convention
            checksum_names: Release-wide checksum file names (or globs) in
                priority order
        """
        self.fetcher = fetcher
        self.api_url = api_url.rstrip("/")
        self.asset_pattern = (
            validate_asset_pattern(asset_pattern) if asset_pattern else None
        )
        self.checksum_names = tuple(checksum_names)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def latest_release_url(self, org: str, repo: str) -> str:
        if not org or not repo:
            raise ValueError("Repository organization and name are required")
        return f"{self.api_url}/repos/{org}/{repo}/releases/latest"

    def fetch_info(self, org: str, repo: str) -> ReleaseInfo:
        """
        Fetch metadata of the latest release of org/repo.

        Raises:
            RateLimitError: On HTTP 403 or 429 from the metadata endpoint
            HTTPStatusError: On any other non-2xx status
            NetworkError: On transport failure
            MetadataParseError: If the document lacks a version or asset list
        """
        url = self.latest_release_url(org, repo)
        logger.info(f"Fetching latest release of {org}/{repo}")

        try:
            response = self.fetcher.get(url, accept=METADATA_ACCEPT)
        except HTTPStatusError as e:
            # The endpoint needs no special permission, so a 403 here is
            # treated as quota exhaustion.
            if e.code in RATE_LIMIT_STATUSES:
                raise RateLimitError(
                    e.code,
                    url,
                    authenticated=self.fetcher.authenticated,
                    reset_at=_parse_int_header(_header(e.headers, "X-RateLimit-Reset")),
                    retry_after=_parse_int_header(_header(e.headers, "Retry-After")),
                ) from e
            raise

        remaining = response.get_header("X-RateLimit-Remaining")
        if remaining is not None:
            logger.debug(f"Rate limit remaining: {remaining}")

        release = parse_release(response.json())
        logger.info(f"Latest release of {org}/{repo} is {release.version}")
        return release

    # ------------------------------------------------------------------
    # Asset selection
    # ------------------------------------------------------------------

    def _is_artifact(self, name: str) -> bool:
        lowered = name.lower()
        if lowered.endswith(_NON_ARTIFACT_SUFFIXES):
            return False
        return not any(
            fnmatch.fnmatchcase(lowered, pattern.lower())
            for pattern in self.checksum_names
        )

    def _matches(self, name: str, platform: str, arch: str) -> bool:
        lowered = name.lower()
        if self.asset_pattern:
            pattern = self.asset_pattern.format(platform=platform, arch=arch)
            return fnmatch.fnmatchcase(lowered, pattern.lower())
        return _contains_token(lowered, os_aliases(platform)) and _contains_token(
            lowered, arch_aliases(arch)
        )

    def select_asset(
        self, release: ReleaseInfo, platform: str, arch: str
    ) -> AssetDescriptor:
        """
        Select the single asset built for platform/arch.

        Raises:
            AssetNotFoundError: If no asset matches
            AmbiguousAssetError: If more than one asset matches
        """
        candidates = [a for a in release.assets if self._is_artifact(a.name)]
        matches = [a for a in candidates if self._matches(a.name, platform, arch)]

        if not matches:
            raise AssetNotFoundError(
                platform, arch, available=[a.name for a in candidates]
            )
        if len(matches) > 1:
            raise AmbiguousAssetError(platform, arch, [a.name for a in matches])

        logger.debug(f"Selected asset {matches[0].name} for {platform}/{arch}")
        return matches[0]

    # ------------------------------------------------------------------
    # Checksums
    # ------------------------------------------------------------------

    def find_checksum_asset(
        self, release: ReleaseInfo, asset: AssetDescriptor
    ) -> AssetDescriptor:
        """
        Locate the checksum file covering an asset.

        A per-asset companion (``<asset>.sha256`` ...) wins over a
        release-wide listing. Listings are tried in checksum_names order.

        Raises:
            ChecksumNotFoundError: If the release publishes no checksum file
        """
        for suffix in COMPANION_SUFFIXES:
            companion = release.find_asset(asset.name + suffix)
            if companion:
                return companion

        for pattern in self.checksum_names:
            for candidate in release.assets:
                if candidate.name == asset.name:
                    continue
                if fnmatch.fnmatchcase(candidate.name.lower(), pattern.lower()):
                    return candidate

        raise ChecksumNotFoundError(
            asset.name, f"release {release.version} publishes no checksum file"
        )

    def fetch_checksum(
        self, release: ReleaseInfo, asset: AssetDescriptor
    ) -> Checksum:
        """
        Download the checksum file and return the entry for asset.

        Raises:
            ChecksumNotFoundError: If no checksum file or entry exists
        """
        source = self.find_checksum_asset(release, asset)
        logger.debug(f"Fetching checksums from {source.name}")
        response = self.fetcher.get(source.url, accept=ASSET_ACCEPT)
        try:
            text = response.text
        except UnicodeDecodeError as e:
            raise ChecksumNotFoundError(
                asset.name, f"{source.name} is not a text file"
            ) from e
        companion = source.name in {asset.name + s for s in COMPANION_SUFFIXES}
        return find_checksum(
            text, asset.name, source_name=source.name, companion=companion
        )

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def download_latest(
        self,
        org: str,
        repo: str,
        platform: str,
        arch: str,
        dest: Union[str, Path],
        mode: Optional[int] = None,
    ) -> DownloadResult:
        """
        Download the latest release asset for platform/arch and verify it.

        Nothing is written to dest unless the asset's digest matches the
        release's checksum file. A failure at any stage leaves dest as it was.

        Args:
            org: Repository owner
            repo: Repository name
            platform: Target OS (any known spelling)
            arch: Target architecture (any known spelling)
            dest: Destination file, or existing directory to place the
                asset in under its own name
            mode: Optional permission bits for the written file

        Returns:
            DownloadResult describing what was written

        Raises:
            FetchError, MetadataParseError, AssetSelectionError,
            ChecksumError, FilesystemError
        """
        def advance(state: DownloadState, detail: str = ""):
            logger.debug(f"download {org}/{repo}: {state.value} {detail}".rstrip())

        advance(DownloadState.START, f"{platform}/{arch}")

        release = self.fetch_info(org, repo)
        advance(DownloadState.METADATA_FETCHED, release.version)

        asset = self.select_asset(release, platform, arch)
        advance(DownloadState.ASSET_SELECTED, asset.name)

        logger.info(f"Downloading {asset.name} from {org}/{repo} {release.version}")
        body = self.fetcher.get(asset.url, accept=ASSET_ACCEPT).body
        advance(DownloadState.ASSET_DOWNLOADED, f"{len(body)} bytes")

        checksum = self.fetch_checksum(release, asset)
        verify_bytes(body, checksum)
        advance(DownloadState.CHECKSUM_VERIFIED, str(checksum))

        dest = Path(dest)
        if dest.is_dir():
            dest = dest / asset.name
        atomic_write(dest, body, mode=mode)
        advance(DownloadState.WRITTEN, str(dest))

        logger.info(f"Installed {asset.name} ({release.version}) at {dest}")
        return DownloadResult(
            path=dest, release=release, asset=asset, checksum=checksum
        )


def _header(headers, name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def canonical_target(platform: str, arch: str) -> str:
    """Canonical 'os/arch' label used in log and error output."""
    return f"{normalize_os(platform)}/{normalize_arch(arch)}"
