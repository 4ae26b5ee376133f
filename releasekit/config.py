"""
Configuration for releasekit.

Settings are resolved once, by the orchestrator, from three layers:
built-in defaults, an optional YAML file, and the process environment
(highest precedence). The resulting Settings value is then threaded into
ArtifactFetcher, ReleaseClient and ToolchainResolver; none of those read the
environment on their own.

Example releasekit.yaml:

    api_url: https://api.github.com
    timeout: 60
    asset_pattern: "tool-{platform}-{arch}*"
    checksum_names: [checksums.txt, SHA256SUMS]
    toolchain:
      command: zig
      legacy_path: /usr/local/zig/zig
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .core.exceptions import ConfigError
from .core.fetch import ArtifactFetcher
from .release.client import (
    DEFAULT_API_URL,
    DEFAULT_CHECKSUM_NAMES,
    ReleaseClient,
    validate_asset_pattern,
)
from .toolchain.resolver import DEFAULT_COMMAND, DEFAULT_LEGACY_PATH, ToolchainResolver

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILE = "releasekit.yaml"

# Credential variables, highest precedence first
TOKEN_ENV_VARS = ("RELEASEKIT_TOKEN", "GITHUB_TOKEN")
TOOLCHAIN_ENV_VAR = "RELEASEKIT_TOOLCHAIN"
API_URL_ENV_VAR = "RELEASEKIT_API_URL"


@dataclass(frozen=True)
class Settings:
    """
    Resolved configuration values.

    Attributes:
        token: Bearer token for the release host, or None
        api_url: Base URL of the release metadata API
        timeout: Request timeout in seconds, or None for no deadline
        asset_pattern: Optional asset name glob with {platform}/{arch}
        checksum_names: Release-wide checksum file names, in priority order
        toolchain_command: Compiler command searched on PATH
        toolchain_legacy_path: Legacy install path, or None
        toolchain_override: Operator supplied compiler path, or None
        search_path: Executable search path captured at load time
    """

    token: Optional[str] = field(default=None, repr=False)
    api_url: str = DEFAULT_API_URL
    timeout: Optional[float] = None
    asset_pattern: Optional[str] = None
    checksum_names: Tuple[str, ...] = DEFAULT_CHECKSUM_NAMES
    toolchain_command: str = DEFAULT_COMMAND
    toolchain_legacy_path: Optional[str] = DEFAULT_LEGACY_PATH
    toolchain_override: Optional[str] = None
    search_path: str = ""

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def make_fetcher(self) -> ArtifactFetcher:
        return ArtifactFetcher(token=self.token, timeout=self.timeout)

    def make_release_client(
        self, fetcher: Optional[ArtifactFetcher] = None
    ) -> ReleaseClient:
        return ReleaseClient(
            fetcher or self.make_fetcher(),
            api_url=self.api_url,
            asset_pattern=self.asset_pattern,
            checksum_names=self.checksum_names,
        )

    def make_resolver(self) -> ToolchainResolver:
        return ToolchainResolver(
            override=self.toolchain_override,
            legacy_path=self.toolchain_legacy_path,
            command=self.toolchain_command,
            search_path=self.search_path,
        )


def _normalize_legacy_config_fields(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize legacy configuration fields for backwards compatibility.

    Converts the deprecated top-level ``toolchain_path`` field to
    ``toolchain.override``.
    """
    if "toolchain_path" in config:
        toolchain = config.setdefault("toolchain", {}) or {}
        if isinstance(toolchain, dict) and "override" not in toolchain:
            toolchain["override"] = config["toolchain_path"]
            config["toolchain"] = toolchain
            logger.debug("Converted legacy toolchain_path to toolchain.override")
    return config


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigError: If the file is required but missing, unreadable, or is
            not a YAML mapping
    """
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"{config_file} must contain a mapping at top level")

    return _normalize_legacy_config_fields(config)


def _settings_from_mapping(settings: Settings, config: Dict[str, Any]) -> Settings:
    updates: Dict[str, Any] = {}

    if "api_url" in config:
        updates["api_url"] = str(config["api_url"])

    if "timeout" in config:
        timeout = config["timeout"]
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                raise ConfigError(f"timeout must be a number, got {timeout!r}")
        updates["timeout"] = timeout

    if "asset_pattern" in config:
        pattern = config["asset_pattern"] or None
        if pattern is not None:
            if not isinstance(pattern, str):
                raise ConfigError("asset_pattern must be a string")
            try:
                validate_asset_pattern(pattern)
            except ValueError as e:
                raise ConfigError(str(e)) from e
        updates["asset_pattern"] = pattern

    if "checksum_names" in config:
        names = config["checksum_names"]
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ConfigError("checksum_names must be a list of strings")
        updates["checksum_names"] = tuple(names)

    toolchain = config.get("toolchain") or {}
    if not isinstance(toolchain, dict):
        raise ConfigError("toolchain must be a mapping")
    if "command" in toolchain:
        updates["toolchain_command"] = str(toolchain["command"])
    if "legacy_path" in toolchain:
        updates["toolchain_legacy_path"] = toolchain["legacy_path"] or None
    if "override" in toolchain:
        updates["toolchain_override"] = toolchain["override"] or None

    return replace(settings, **updates)


def load_settings(
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Resolve Settings from defaults, YAML file and environment.

    Args:
        config_file: Explicit config file (required to exist); when None,
            ./releasekit.yaml is used if present
        environ: Environment mapping; defaults to os.environ

    Returns:
        Settings

    Raises:
        ConfigError: If the configuration file is invalid
    """
    env = os.environ if environ is None else environ

    if config_file is not None:
        config = load_yaml_config(Path(config_file), required=True)
    else:
        config = load_yaml_config(Path.cwd() / DEFAULT_CONFIG_FILE)

    settings = _settings_from_mapping(Settings(), config)

    updates: Dict[str, Any] = {"search_path": env.get("PATH", "")}

    for var in TOKEN_ENV_VARS:
        token = env.get(var, "").strip()
        if token:
            updates["token"] = token
            logger.debug(f"Using credential from {var}")
            break
    else:
        logger.debug("No credential configured; requests will be anonymous")

    override = env.get(TOOLCHAIN_ENV_VAR, "").strip()
    if override:
        updates["toolchain_override"] = override

    api_url = env.get(API_URL_ENV_VAR, "").strip()
    if api_url:
        updates["api_url"] = api_url

    return replace(settings, **updates)


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "TOKEN_ENV_VARS",
    "TOOLCHAIN_ENV_VAR",
    "API_URL_ENV_VAR",
    "Settings",
    "load_yaml_config",
    "load_settings",
]
