#!/usr/bin/env python
"""
Command-line walker
===================

Prints the path of every file reachable from one or more repository paths.

Usage:
    repowalk --walker-uri 'github://owner/repo?access_token=TOKEN' data
    repowalk --walker-uri '...' --concurrent -v src docs
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .cancellation import WalkContext
from .config import parse_walker_uri
from .core import FileNode, Walker
from .errors import ConfigurationError, WalkError


logger = logging.getLogger("repowalk")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repowalk",
        description="List every file below paths in a remote repository",
    )
    parser.add_argument(
        "--walker-uri",
        required=True,
        help="Walker URI, e.g. github://owner/repo?access_token=TOKEN",
    )
    parser.add_argument(
        "--concurrent",
        action="store_true",
        help="Walk sibling entries concurrently (overrides the URI)",
    )
    parser.add_argument(
        "--wait-on-reset",
        action="store_true",
        help="Wait for rate limit resets instead of failing (overrides the URI)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Repository paths to walk",
    )
    return parser


def print_path(ctx: WalkContext, node: FileNode) -> None:
    print(node.path)


async def run(walker: Walker, paths: List[str]) -> None:
    """Walk each path in turn, printing every file."""
    async with walker:
        for path in paths:
            logger.info("Walking %s/%s/%s", walker.owner, walker.repo, path)
            await walker.walk_uri(path, print_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = parse_walker_uri(args.walker_uri)
    except ConfigurationError as e:
        print(f"Failed to create new walker, {e}", file=sys.stderr)
        return 1

    if args.concurrent:
        config.concurrent = True
    if args.wait_on_reset:
        config.wait_on_reset = True

    walker = Walker.from_config(config)

    try:
        asyncio.run(run(walker, args.paths))
    except WalkError as e:
        print(f"Failed to walk URIs, {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
