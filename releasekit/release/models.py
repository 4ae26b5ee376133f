"""
releasekit/release/models.py

Release metadata types and parsing of the remote "latest release" document.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..core.exceptions import MetadataParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetDescriptor:
    """
    One downloadable file attached to a release.

    Attributes:
        name: Asset filename, usually platform/arch qualified
        url: Download URL
        size: Size in bytes, if advertised
        content_type: MIME type, if advertised
    """

    name: str
    url: str
    size: Optional[int] = None
    content_type: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ReleaseInfo:
    """
    Metadata of a published release.

    Attributes:
        version: Version identifier (e.g. 'v1.54.0')
        assets: Assets in the order the host listed them
        published_at: Publication timestamp, if present
        name: Human readable release title
        prerelease: Whether the host flags the release as a prerelease
    """

    version: str
    assets: Tuple[AssetDescriptor, ...] = field(default_factory=tuple)
    published_at: Optional[datetime] = None
    name: str = ""
    prerelease: bool = False

    def asset_names(self) -> Tuple[str, ...]:
        return tuple(asset.name for asset in self.assets)

    def find_asset(self, name: str) -> Optional[AssetDescriptor]:
        """Return the asset with exactly this name, or None."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None

    def __str__(self) -> str:
        return f"{self.version} ({len(self.assets)} assets)"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if not isinstance(value, str):
        raise MetadataParseError(f"Invalid publication timestamp: {value!r}")
    try:
        # fromisoformat only accepts a trailing 'Z' from Python 3.11 on
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MetadataParseError(f"Invalid publication timestamp: {value!r}") from e


def _parse_asset(index: int, raw: Any) -> AssetDescriptor:
    if not isinstance(raw, dict):
        raise MetadataParseError(f"Asset #{index} is not an object")

    name = raw.get("name")
    url = raw.get("browser_download_url") or raw.get("url")

    if not isinstance(name, str) or not name:
        raise MetadataParseError(f"Asset #{index} has no name")
    if not isinstance(url, str) or not url:
        raise MetadataParseError(f"Asset '{name}' has no download URL")

    size = raw.get("size")
    return AssetDescriptor(
        name=name,
        url=url,
        size=size if isinstance(size, int) else None,
        content_type=raw.get("content_type"),
    )


def parse_release(document: Any) -> ReleaseInfo:
    """
    Parse a release metadata document.

    Accepts the GitHub release schema (``tag_name``, ``assets[].browser_download_url``)
    as well as the minimal ``{version, assets: [{name, url}]}`` shape.

    Args:
        document: Decoded JSON document

    Returns:
        ReleaseInfo

    Raises:
        MetadataParseError: If the version or asset list is missing or malformed
    """
    if not isinstance(document, dict):
        raise MetadataParseError("Release metadata is not a JSON object")

    version = document.get("tag_name") or document.get("version")
    if not isinstance(version, str) or not version:
        raise MetadataParseError("Release metadata has no version")

    raw_assets = document.get("assets")
    if not isinstance(raw_assets, list):
        raise MetadataParseError(f"Release {version} has no asset list")

    assets = tuple(_parse_asset(i, raw) for i, raw in enumerate(raw_assets))

    release = ReleaseInfo(
        version=version,
        assets=assets,
        published_at=_parse_timestamp(document.get("published_at")),
        name=document.get("name") or "",
        prerelease=bool(document.get("prerelease", False)),
    )
    logger.debug(f"Parsed release {release}")
    return release


def release_to_dict(release: ReleaseInfo) -> Dict[str, Any]:
    """Convert a release to a plain dict for JSON output."""
    return {
        "version": release.version,
        "name": release.name,
        "prerelease": release.prerelease,
        "published_at": release.published_at.isoformat()
        if release.published_at
        else None,
        "assets": [
            {"name": asset.name, "url": asset.url, "size": asset.size}
            for asset in release.assets
        ],
    }
