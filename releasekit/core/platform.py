"""
Platform naming for releasekit.

Release assets are published under many spellings of the same OS and CPU
architecture (``darwin``/``macos``/``apple-darwin``, ``amd64``/``x86_64``/``x64``).
This module normalizes those spellings to one canonical name, lists the
aliases used when matching asset names, and maps a platform/arch pair to the
target triple handed to the cross compiler.

Usage:
    from releasekit.core.platform import detect_host, normalize_arch

    host = detect_host()
    print(host.platform_string())   # e.g. 'linux-amd64'
    normalize_arch("x86_64")         # 'amd64'
"""

import functools
import platform as _platform
from dataclasses import dataclass
from typing import Tuple


# Canonical name -> spellings found in release asset names.
OS_ALIASES = {
    "linux": ("linux",),
    "darwin": ("darwin", "macos", "osx", "apple-darwin"),
    "windows": ("windows", "win", "win64", "pc-windows"),
    "freebsd": ("freebsd",),
}

ARCH_ALIASES = {
    "amd64": ("amd64", "x86_64", "x64"),
    "arm64": ("arm64", "aarch64"),
    "386": ("386", "i386", "i686", "x86"),
    "arm": ("arm", "armv7", "armv7l", "armhf"),
    "riscv64": ("riscv64",),
}

# Architecture component of the cross-compile target triple.
_TRIPLE_ARCH = {
    "amd64": "x86_64",
    "arm64": "aarch64",
    "386": "x86",
    "arm": "arm",
    "riscv64": "riscv64",
}

_TRIPLE_OS = {
    "linux": "linux-gnu",
    "darwin": "macos",
    "windows": "windows-gnu",
    "freebsd": "freebsd",
}


@dataclass(frozen=True)
class HostPlatform:
    """
    Host platform in canonical naming.

    Attributes:
        os: Canonical OS name ('linux', 'darwin', 'windows', 'freebsd')
        arch: Canonical architecture ('amd64', 'arm64', '386', 'arm')
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string.

        Example:
            >>> HostPlatform('linux', 'amd64').platform_string()
            'linux-amd64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


def _canonical(value: str, table: dict) -> str:
    value = value.strip().lower()
    for canonical, aliases in table.items():
        if value == canonical or value in aliases:
            return canonical
    return value


def normalize_os(name: str) -> str:
    """
    Normalize an OS spelling to its canonical name.

    Unknown names are returned lowercased rather than rejected, so callers
    can still match assets for platforms not listed here.
    """
    return _canonical(name, OS_ALIASES)


def normalize_arch(name: str) -> str:
    """Normalize an architecture spelling to its canonical name."""
    return _canonical(name, ARCH_ALIASES)


def os_aliases(name: str) -> Tuple[str, ...]:
    """All spellings that identify the given OS in an asset name."""
    canonical = normalize_os(name)
    return OS_ALIASES.get(canonical, (canonical,))


def arch_aliases(name: str) -> Tuple[str, ...]:
    """All spellings that identify the given architecture in an asset name."""
    canonical = normalize_arch(name)
    return ARCH_ALIASES.get(canonical, (canonical,))


def target_triple(os_name: str, arch: str) -> str:
    """
    Get the cross-compile target triple for a platform/arch pair.

    Args:
        os_name: OS name in any known spelling
        arch: Architecture in any known spelling

    Returns:
        Target triple such as 'x86_64-linux-gnu' or 'aarch64-macos'

    Raises:
        ValueError: If the OS or architecture has no known triple component
    """
    os_canonical = normalize_os(os_name)
    arch_canonical = normalize_arch(arch)

    if os_canonical not in _TRIPLE_OS:
        raise ValueError(f"No target triple known for OS: {os_name}")
    if arch_canonical not in _TRIPLE_ARCH:
        raise ValueError(f"No target triple known for architecture: {arch}")

    triple_os = _TRIPLE_OS[os_canonical]
    if os_canonical == "linux" and arch_canonical == "arm":
        triple_os = "linux-gnueabihf"
    return f"{_TRIPLE_ARCH[arch_canonical]}-{triple_os}"


@functools.lru_cache(maxsize=1)
def detect_host() -> HostPlatform:
    """
    Detect the host platform.

    This function is cached - it only runs detection once per process.
    """
    return HostPlatform(
        os=normalize_os(_platform.system()),
        arch=normalize_arch(_platform.machine()),
    )


def clear_host_cache():
    """Clear the host detection cache (used by tests)."""
    detect_host.cache_clear()


__all__ = [
    "HostPlatform",
    "OS_ALIASES",
    "ARCH_ALIASES",
    "normalize_os",
    "normalize_arch",
    "os_aliases",
    "arch_aliases",
    "target_triple",
    "detect_host",
    "clear_host_cache",
]
