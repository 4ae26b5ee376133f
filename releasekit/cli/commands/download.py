"""
Download command implementation.

Downloads the latest release asset for a platform/arch pair and verifies it
against the release checksum file before writing it.
"""

import logging

from ...core.exceptions import ReleaseKitError
from ...release.client import canonical_target
from ..parser import split_repository
from ..utils import report_error

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the download command.

    Args:
        args: Parsed command-line arguments (with resolved settings)

    Returns:
        Exit code (0 for success)
    """
    try:
        org, repo = split_repository(args.repository)
    except ValueError as e:
        logger.error(str(e))
        return 1

    operation = f"download {org}/{repo} {canonical_target(args.platform, args.arch)}"

    with args.settings.make_fetcher() as fetcher:
        client = args.settings.make_release_client(fetcher)
        try:
            result = client.download_latest(
                org,
                repo,
                args.platform,
                args.arch,
                args.dest,
                mode=0o755 if args.executable else None,
            )
        except ReleaseKitError as e:
            return report_error(operation, e)

    print(result.path)
    return 0
