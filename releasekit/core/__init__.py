"""
Core functionality for releasekit.

This package contains the foundational modules the release and toolchain
layers depend on.
"""

from .exceptions import (
    ReleaseKitError,
    FetchError,
    NetworkError,
    HTTPStatusError,
    RateLimitError,
    MetadataParseError,
    AssetSelectionError,
    AssetNotFoundError,
    AmbiguousAssetError,
    ChecksumError,
    ChecksumNotFoundError,
    ChecksumMismatchError,
    FilesystemError,
    ConfigError,
)

from .fetch import (
    ArtifactFetcher,
    FetchResponse,
)

from .filesystem import atomic_write

from .platform import (
    HostPlatform,
    detect_host,
    normalize_os,
    normalize_arch,
    target_triple,
)

from .verification import (
    Checksum,
    parse_checksums,
    find_checksum,
    compute_digest,
    verify_bytes,
)

__all__ = [
    "ReleaseKitError",
    "FetchError",
    "NetworkError",
    "HTTPStatusError",
    "RateLimitError",
    "MetadataParseError",
    "AssetSelectionError",
    "AssetNotFoundError",
    "AmbiguousAssetError",
    "ChecksumError",
    "ChecksumNotFoundError",
    "ChecksumMismatchError",
    "FilesystemError",
    "ConfigError",
    "ArtifactFetcher",
    "FetchResponse",
    "atomic_write",
    "HostPlatform",
    "detect_host",
    "normalize_os",
    "normalize_arch",
    "target_triple",
    "Checksum",
    "parse_checksums",
    "find_checksum",
    "compute_digest",
    "verify_bytes",
]
