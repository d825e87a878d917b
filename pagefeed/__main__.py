"""
Command line entry point: generate the feed once and exit.

Exit status is 0 when a feed document was written, 1 otherwise.
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from pagefeed.config import config
from pagefeed.pipeline import FeedPipeline
from pagefeed.runner import build_source, run_once
from pagefeed.utils.logger import get_logger, set_trace_id

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pagefeed",
        description="Render a page, extract its articles and write a syndication feed",
    )
    parser.add_argument("--url", default=None, help="Target page URL")
    parser.add_argument("--output", "-o", default=None, help="Feed output path")
    parser.add_argument("--format", choices=["rss2", "atom"], default=None, help="Feed format")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of items")
    parser.add_argument("--render-mode", choices=["browser", "static"], default=None, help="How to load the page")
    parser.add_argument("--debug-dir", default=None, help="Directory for failure snapshots")
    args = parser.parse_args(argv)
    if args.limit is not None and args.limit < 1:
        parser.error(f"--limit must be at least 1, got {args.limit}")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    trace_id = set_trace_id()

    invalid = config.get_invalid_settings()
    if invalid:
        logger.error("invalid_configuration", settings=invalid)
        return 1

    logger.info(
        "feed_run_requested",
        url=args.url or config.TARGET_URL,
        render_mode=args.render_mode or config.RENDER_MODE,
        trace_id=trace_id
    )

    pipeline = FeedPipeline.from_config(feed_format=args.format, item_limit=args.limit)
    source = build_source(args.render_mode, args.url)

    outcome = asyncio.run(run_once(
        pipeline=pipeline,
        source=source,
        output_path=args.output,
        debug_dir=args.debug_dir,
    ))

    if not outcome.ok:
        logger.error(
            "feed_run_failed",
            error_type=outcome.report.error_type,
            error=outcome.report.error_message
        )
        return 1

    logger.info("feed_run_succeeded", items=outcome.report.normalized_count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
