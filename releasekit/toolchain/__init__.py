"""
Cross-compilation toolchain discovery.
"""

from .resolver import (
    DEFAULT_COMMAND,
    DEFAULT_LEGACY_PATH,
    ToolchainPath,
    ToolchainResolver,
    ToolchainSource,
)

__all__ = [
    "DEFAULT_COMMAND",
    "DEFAULT_LEGACY_PATH",
    "ToolchainPath",
    "ToolchainResolver",
    "ToolchainSource",
]
