"""
Toolchain command implementation.

Prints the compiler binary the build should invoke for a target platform.
"""

import logging

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the toolchain command.

    Args:
        args: Parsed command-line arguments (with resolved settings)

    Returns:
        Exit code (0 even for an unresolved fallback; see ToolchainResolver)
    """
    resolver = args.settings.make_resolver()
    toolchain = resolver.resolve(args.platform)

    logger.debug(f"Toolchain for {args.platform} from {toolchain.source.value}")

    if args.arch:
        try:
            print(" ".join(toolchain.cc_command(args.arch)))
        except ValueError as e:
            logger.error(f"toolchain {args.platform}/{args.arch}: {e}")
            return 1
    else:
        print(toolchain.path)

    return 0
