"""
Centralized exception hierarchy for releasekit.

Every error raised by the fetch, release and toolchain layers derives from
ReleaseKitError so an orchestrator can catch the whole family at once while
still distinguishing the individual kinds.
"""

from typing import Iterable, Mapping, Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class ReleaseKitError(Exception):
    """Base exception for all releasekit errors."""

    pass


# ============================================================================
# Fetch Exceptions
# ============================================================================


class FetchError(ReleaseKitError):
    """Base exception for remote retrieval errors."""

    pass


class NetworkError(FetchError):
    """Transport-level failure (DNS, refused connection, timeout, TLS)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Network error fetching {url}: {reason}")


class HTTPStatusError(FetchError):
    """Raised when a response status is outside the 2xx range."""

    def __init__(
        self,
        code: int,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ):
        self.code = code
        self.url = url
        self.headers = dict(headers or {})
        self.body = body
        super().__init__(f"HTTP {code} for {url}")


class RateLimitError(FetchError):
    """
    Raised when the metadata endpoint refuses a request due to rate limiting.

    Attributes:
        code: HTTP status that triggered the error (403 or 429)
        authenticated: Whether the request carried a credential
        reset_at: Epoch seconds when the quota resets, if advertised
        retry_after: Seconds to wait before retrying, if advertised
    """

    def __init__(
        self,
        code: int,
        url: str,
        authenticated: bool,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
    ):
        self.code = code
        self.url = url
        self.authenticated = authenticated
        self.reset_at = reset_at
        self.retry_after = retry_after

        msg = f"Rate limit suspected (HTTP {code}) for {url}"
        if retry_after is not None:
            msg += f"; retry after {retry_after}s"
        elif reset_at is not None:
            msg += f"; quota resets at epoch {reset_at}"
        if not authenticated:
            msg += "; request was unauthenticated, set GITHUB_TOKEN to raise the limit"
        super().__init__(msg)


# ============================================================================
# Release Metadata Exceptions
# ============================================================================


class MetadataParseError(ReleaseKitError):
    """Release metadata document is structurally invalid."""

    pass


class AssetSelectionError(ReleaseKitError):
    """Base exception for asset matching failures."""

    def __init__(self, message: str, platform: str, arch: str):
        self.platform = platform
        self.arch = arch
        super().__init__(message)


class AssetNotFoundError(AssetSelectionError):
    """No release asset matches the requested platform/arch pair."""

    def __init__(self, platform: str, arch: str, available: Iterable[str] = ()):
        self.available = list(available)
        msg = f"No asset matches {platform}/{arch}"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        super().__init__(msg, platform, arch)


class AmbiguousAssetError(AssetSelectionError):
    """More than one release asset matches the requested platform/arch pair."""

    def __init__(self, platform: str, arch: str, matches: Iterable[str]):
        self.matches = list(matches)
        super().__init__(
            f"{len(self.matches)} assets match {platform}/{arch}: "
            f"{', '.join(self.matches)}",
            platform,
            arch,
        )


# ============================================================================
# Checksum Exceptions
# ============================================================================


class ChecksumError(ReleaseKitError):
    """Base exception for checksum verification failures."""

    pass


class ChecksumNotFoundError(ChecksumError):
    """No checksum file, or no entry for the asset, could be obtained."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"No checksum for {filename}: {reason}")


class ChecksumMismatchError(ChecksumError):
    """Computed digest differs from the published one."""

    def __init__(self, filename: str, expected: str, actual: str, algorithm: str):
        self.filename = filename
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm
        super().__init__(
            f"Checksum mismatch for {filename}: "
            f"expected {algorithm}:{expected}, got {algorithm}:{actual}"
        )


# ============================================================================
# Filesystem Exceptions
# ============================================================================


class FilesystemError(ReleaseKitError):
    """Failed to place an artifact on the local filesystem."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class ConfigError(ReleaseKitError):
    """Configuration file is unreadable or malformed."""

    pass
