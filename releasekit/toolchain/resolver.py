"""
releasekit/toolchain/resolver.py

Cross-compilation toolchain lookup.

The resolver walks a fixed fallback chain, first match wins:

1. explicit override path (operator intent)
2. legacy well-known install path (backward compatibility)
3. the executable search path (automatic discovery)
4. the bare command name, unresolved

The last step is not an error. Returning the bare name defers failure to
the moment the build actually runs the compiler, where the platform's own
"command not found" message is the clearest diagnostic available.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..core.platform import target_triple

logger = logging.getLogger(__name__)


DEFAULT_COMMAND = "zig"

# Install location used by older CI images; kept for compatibility only.
DEFAULT_LEGACY_PATH = "/usr/local/zig/zig"


class ToolchainSource(Enum):
    """Where a ToolchainPath came from."""

    OVERRIDE = "override"
    LEGACY = "legacy"
    PATH = "path"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ToolchainPath:
    """
    Compiler binary selected for a target platform.

    Attributes:
        path: Absolute path, or the bare command name when source is FALLBACK
        platform: Target platform the lookup was made for
        source: Which step of the fallback chain produced the path
    """

    path: str
    platform: str
    source: ToolchainSource

    @property
    def resolved(self) -> bool:
        """False when only the bare command name could be returned."""
        return self.source is not ToolchainSource.FALLBACK

    def cc_command(self, arch: str) -> List[str]:
        """
        Compiler invocation prefix for cross-compiling C to platform/arch.

        Example:
            >>> ToolchainPath('/usr/bin/zig', 'linux', ToolchainSource.PATH).cc_command('arm64')
            ['/usr/bin/zig', 'cc', '-target', 'aarch64-linux-gnu']
        """
        return [self.path, "cc", "-target", target_triple(self.platform, arch)]

    def __str__(self) -> str:
        return self.path


class ToolchainResolver:
    """
    Resolve the compiler binary to use for a target platform.

    All inputs are explicit; the resolver does not consult the process
    environment when resolve() is called.

    Example:
        >>> resolver = ToolchainResolver(override=settings.toolchain_override)
        >>> toolchain = resolver.resolve("linux")
        >>> toolchain.path
        '/usr/bin/zig'
    """

    def __init__(
        self,
        override: Optional[str] = None,
        legacy_path: Optional[str] = DEFAULT_LEGACY_PATH,
        command: str = DEFAULT_COMMAND,
        search_path: Optional[str] = None,
    ):
        """
        Initialize resolver.

        Args:
            override: Operator supplied compiler path; wins when it exists
            legacy_path: Well-known install path checked second; None disables
            command: Command name searched on the executable search path
            search_path: os.pathsep separated directories; None captures the
                current PATH once, at construction
        """
        if not command:
            raise ValueError("Toolchain command name cannot be empty")

        self.override = override or None
        self.legacy_path = legacy_path or None
        self.command = command
        self.search_path = (
            search_path if search_path is not None else os.environ.get("PATH", "")
        )

    def resolve(self, platform: str) -> ToolchainPath:
        """
        Resolve the compiler for platform.

        Args:
            platform: Target platform (e.g. 'linux', 'darwin', 'windows')

        Returns:
            ToolchainPath; its source tells which rule matched. A FALLBACK
            result carries the bare command name and is not an error.
        """
        if self.override:
            if Path(self.override).exists():
                logger.debug(f"Using toolchain override: {self.override}")
                return ToolchainPath(self.override, platform, ToolchainSource.OVERRIDE)
            logger.warning(f"Toolchain override does not exist: {self.override}")

        if self.legacy_path and Path(self.legacy_path).exists():
            logger.debug(f"Using legacy toolchain location: {self.legacy_path}")
            return ToolchainPath(self.legacy_path, platform, ToolchainSource.LEGACY)

        # shutil.which applies PATHEXT on Windows hosts
        found = shutil.which(self.command, path=self.search_path)
        if found:
            resolved = str(Path(found).resolve())
            logger.debug(f"Found {self.command} in PATH: {resolved}")
            return ToolchainPath(resolved, platform, ToolchainSource.PATH)

        logger.warning(
            f"Toolchain '{self.command}' not found for {platform}; "
            "deferring to the shell to report it"
        )
        return ToolchainPath(self.command, platform, ToolchainSource.FALLBACK)


__all__ = [
    "DEFAULT_COMMAND",
    "DEFAULT_LEGACY_PATH",
    "ToolchainSource",
    "ToolchainPath",
    "ToolchainResolver",
]
