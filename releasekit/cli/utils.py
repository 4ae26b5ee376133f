"""
Shared utilities for CLI commands.

Provides the error reporting used by every command so that an operator can
tell from one line which operation failed and why.
"""

import logging

from ..core.exceptions import (
    AssetSelectionError,
    ChecksumError,
    FetchError,
    FilesystemError,
    MetadataParseError,
    RateLimitError,
    ReleaseKitError,
)

logger = logging.getLogger(__name__)


# Exit codes per error family; order matters (RateLimitError is a FetchError)
EXIT_CODES = (
    (RateLimitError, 3),
    (FetchError, 4),
    (MetadataParseError, 5),
    (AssetSelectionError, 6),
    (ChecksumError, 7),
    (FilesystemError, 8),
)


def exit_code_for(error: ReleaseKitError) -> int:
    for error_type, code in EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return 1


def report_error(operation: str, error: ReleaseKitError) -> int:
    """
    Log an error with the operation that raised it.

    Args:
        operation: Short operation label, e.g. 'download ziglang/zig linux/amd64'
        error: The raised error

    Returns:
        Exit code for the error kind
    """
    logger.error(f"{operation}: {type(error).__name__}: {error}")
    return exit_code_for(error)
