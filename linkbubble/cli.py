"""
linkbubble CLI - preview pages and their backlinks from the command line.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .core.config import BubbleConfig
from .core.models import Bubble
from .core.resilience import setup_logging
from .service import BubbleService, BubbleView

logger = logging.getLogger("linkbubble.cli")


def format_bubble(bubble: Bubble) -> str:
    """one bubble as a short text block."""
    state = "exists" if bubble.exists else "empty"
    if bubble.content.is_synthesized:
        state += ", summary only"
    lines = [f"{bubble.id} ({state}, updated {bubble.updated})"]
    for line in bubble.content.lines[1:6]:
        lines.append(f"  | {line.text}")
    if bubble.backlinks.known:
        lines.append(f"  backlinks: {', '.join(bubble.backlinks) or '-'}")
    if bubble.project_backlinks.known:
        lines.append(f"  project backlinks: {', '.join(bubble.project_backlinks) or '-'}")
    return "\n".join(lines)


def print_view(title: str, view: Optional[BubbleView], as_json: bool = False):
    if as_json:
        data = [b.to_dict() for b in view.bubbles] if view else []
        print(json.dumps({"title": title, "bubbles": data}, ensure_ascii=False, indent=2))
        return
    if view is None:
        print(f"{title}: nothing found")
        return
    if view.is_empty_link:
        print(f"{title}: empty link")
    for bubble in view.bubbles:
        print(format_bubble(bubble))


async def run(args: argparse.Namespace) -> int:
    config = BubbleConfig.from_env()
    if args.base_url:
        config.provider.base_url = args.base_url.rstrip("/")
    if args.interval is not None:
        config.scheduler.interval = args.interval

    async with BubbleService(config) as service:
        options = dict(
            ignore_fetch=args.ignore_fetch,
            expired_after_seconds=args.max_age,
        )
        if len(args.titles) == 1:
            await service.prefetch(args.titles[0], args.project, args.watch, **options)
        else:
            await service.prefetch_many(args.titles, args.project, args.watch, **options)

        found = 0
        for title in args.titles:
            view = service.load(title, args.project)
            if view is not None:
                found += 1
            print_view(title, view, as_json=args.json)

        logger.info(
            f"[cli] {len(service.store)} bubbles cached, "
            f"{service.cache.misses} requests sent"
        )
    return 0 if found else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Preview linked pages and their backlinks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  linkbubble "Page title" -p help-jp
  linkbubble A B C -p my-project -p other-project --json
        """
    )
    parser.add_argument("titles", nargs="+", help="page titles to preview")
    parser.add_argument(
        "-p", "--project",
        action="append",
        required=True,
        metavar="NAME",
        help="project (source) to look titles up in (can specify multiple)"
    )
    parser.add_argument(
        "--watch",
        action="append",
        default=[],
        metavar="PROJECT_ID",
        help="project id to include in cross-project related pages"
    )
    parser.add_argument("--base-url", help="api host (default https://scrapbox.io)")
    parser.add_argument("--interval", type=float, help="seconds between requests per project")
    parser.add_argument("--max-age", type=float, default=None, help="cache freshness in seconds")
    parser.add_argument("--ignore-fetch", action="store_true", help="never hit the network")
    parser.add_argument("--json", action="store_true", help="print bubbles as json")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
