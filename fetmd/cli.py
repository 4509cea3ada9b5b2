"""Command-line entry point for fetmd."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO

from .config import CrawlConfig
from .crawler import run
from .errors import FetmdError
from .models import ConversionResult

logger = logging.getLogger("fetmd.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fetmd",
        description="Fetch web pages and convert them to Markdown with local images.",
    )
    parser.add_argument("urls", nargs="*", help="One or more URLs to fetch")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Directory where Markdown and images are written (default: print to stdout)",
    )
    parser.add_argument(
        "-w",
        "--wait",
        type=int,
        default=1000,
        help="Milliseconds to wait after the page is fetched",
    )
    parser.add_argument(
        "-s",
        "--selector",
        default=None,
        help="CSS selector expected in the page (logged only)",
    )
    parser.add_argument(
        "-b",
        "--background",
        action="store_true",
        help="Also download background images declared in inline styles",
    )
    parser.add_argument(
        "-p",
        "--pipe",
        action="store_true",
        help="Read URLs from stdin, one per line",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report errors; print a JSON status line per URL",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Page fetch timeout in seconds",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def read_urls(stream: TextIO) -> List[str]:
    return [line.strip() for line in stream if line.strip()]


def _log_progress(phase: str, current: int, total: int, label: Optional[str] = None) -> None:
    if label:
        logger.debug("%s %d/%d %s", phase, current, total, label)
    else:
        logger.debug("%s %d/%d", phase, current, total)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    content_only = args.output is None
    return CrawlConfig(
        output_root=Path(args.output).resolve() if args.output else Path("output"),
        wait_after_load=max(args.wait, 0) / 1000.0,
        wait_for_selector=args.selector,
        include_background_images=args.background,
        content_only=content_only,
        navigation_timeout=args.timeout,
        progress=_log_progress,
    )


def _report(url: str, result: ConversionResult, args: argparse.Namespace, stdout: TextIO) -> None:
    if args.output is None:
        stdout.write(result.markdown)
        stdout.flush()
        return
    if args.quiet:
        record = {
            "status": "success",
            "url": url,
            "markdown": str(result.output_path),
            "images": {
                "directory": str(result.images_dir) if result.images_dir else None,
                "count": result.success_count,
                "failed": result.failed_source_urls,
            },
        }
        stdout.write(json.dumps(record) + "\n")
        return
    logger.info("Markdown: %s", result.output_path)
    logger.info("Images: %s (%d files)", result.images_dir, result.success_count)
    for failed in result.failed_source_urls:
        logger.warning("Image failed to download: %s", failed)


def process_urls(
    urls: Iterable[str],
    args: argparse.Namespace,
    stdout: Optional[TextIO] = None,
) -> int:
    """Convert each URL in turn; returns the number of failed jobs."""
    if stdout is None:
        stdout = sys.stdout
    config = build_config(args)
    failures = 0
    for url in urls:
        try:
            result = run(url, config)
        except FetmdError as exc:
            failures += 1
            if args.quiet or args.output is None:
                sys.stderr.write(json.dumps({"status": "error", "url": url, "error": str(exc)}) + "\n")
            else:
                logger.error("Failed to convert %s: %s", url, exc)
            continue
        _report(url, result, args, stdout)
    return failures


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO
    if (args.quiet or args.output is None) and not args.verbose:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    urls = list(args.urls)
    if args.pipe:
        urls.extend(read_urls(sys.stdin))
    if not urls:
        logger.error("Please provide a URL or pipe URLs on stdin with --pipe")
        sys.exit(2)

    overall_start = time.perf_counter()
    failures = process_urls(urls, args)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        time.perf_counter() - overall_start,
        len(urls) - failures,
        len(urls),
        failures,
    )
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
