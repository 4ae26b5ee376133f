"""
Info command implementation.

Shows metadata of the latest release of a repository.
"""

import json
import logging

from ...core.exceptions import ReleaseKitError
from ...release.models import release_to_dict
from ..parser import split_repository
from ..utils import report_error

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the info command.

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

    operation = f"release-info {org}/{repo}"

    with args.settings.make_fetcher() as fetcher:
        client = args.settings.make_release_client(fetcher)
        try:
            release = client.fetch_info(org, repo)
        except ReleaseKitError as e:
            return report_error(operation, e)

    if args.json:
        print(json.dumps(release_to_dict(release), indent=2))
        return 0

    print(f"{org}/{repo} {release.version}")
    if release.published_at:
        print(f"  published: {release.published_at.isoformat()}")
    for asset in release.assets:
        print(f"  {asset.name}")

    return 0
