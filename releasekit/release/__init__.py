"""
Release metadata resolution and verified asset download.
"""

from .models import AssetDescriptor, ReleaseInfo, parse_release
from .client import (
    DEFAULT_API_URL,
    DEFAULT_CHECKSUM_NAMES,
    DownloadResult,
    DownloadState,
    ReleaseClient,
)

__all__ = [
    "AssetDescriptor",
    "ReleaseInfo",
    "parse_release",
    "DEFAULT_API_URL",
    "DEFAULT_CHECKSUM_NAMES",
    "DownloadResult",
    "DownloadState",
    "ReleaseClient",
]
