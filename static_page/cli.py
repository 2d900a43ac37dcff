"""Command-line entry point for static page snapshots."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_IMPORT_DEPTH, SnapshotConfig
from .crawler import run_snapshots, snapshot_saved_html

logger = logging.getLogger("static_page.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Render web pages via Playwright and save them as self-contained HTML "
            "with images, stylesheets, fonts and frames inlined."
        ),
    )
    parser.add_argument("urls", nargs="*", help="One or more URLs to capture")
    parser.add_argument(
        "--html",
        type=Path,
        default=None,
        help="Snapshot a saved HTML file instead of rendering URLs (requires --base-url)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Original location of the --html document, used to resolve its references",
    )
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where snapshots should be written",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=1.0,
        help="Seconds to wait after network idle before reading HTML",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        default=DEFAULT_FETCH_TIMEOUT,
        help="Per-resource timeout in seconds; slower resources stay as live URLs",
    )
    parser.add_argument(
        "--max-import-depth",
        type=int,
        default=DEFAULT_MAX_IMPORT_DEPTH,
        help="Maximum nesting of CSS @import rules to inline",
    )
    parser.add_argument(
        "--user-agent",
        default=None,
        help="Override the User-Agent used for rendering and resource requests",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    if args.html is None and not args.urls:
        parser.error("provide at least one URL or --html")
    if args.html is not None and args.urls:
        parser.error("--html cannot be combined with URLs")
    if args.html is not None and not args.base_url:
        parser.error("--html requires --base-url")
    return args


def build_config(args: argparse.Namespace) -> SnapshotConfig:
    return SnapshotConfig(
        output_root=Path(args.output).resolve(),
        wait_after_load=args.wait,
        navigation_timeout=args.timeout,
        fetch_timeout=args.fetch_timeout,
        max_import_depth=args.max_import_depth,
        user_agent=args.user_agent,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    config = build_config(args)

    overall_start = time.perf_counter()
    if args.html is not None:
        metrics = [asyncio.run(snapshot_saved_html(args.html, args.base_url, config))]
        total_inputs = 1
    else:
        metrics = asyncio.run(run_snapshots(args.urls, config))
        total_inputs = len(args.urls)
    total_elapsed = time.perf_counter() - overall_start

    successes = len(metrics)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        successes,
        total_inputs,
        total_inputs - successes,
    )
    for metric in metrics:
        logger.debug("Snapshot of %s -> %s (%.2fs)", metric.url, metric.output_path, metric.total_seconds)

    if successes < total_inputs:
        sys.exit(1)


if __name__ == "__main__":
    main()
