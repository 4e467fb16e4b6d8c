#!/usr/bin/env python3
"""
Store Asset Extractor - Entry Point

This module is the command-line entry point. ``extract`` runs a batch of
listing URLs through the pipeline and writes one zip per app; ``format``
fits a single local image into every store size.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from prometheus_client import start_http_server

from storeassets.compositor import format_image
from storeassets.config import LogLevel, Settings, load_settings
from storeassets.context import AppContext
from storeassets.errors import ImageDecodeError
from storeassets.export import write_archive, write_images
from storeassets.models.job import JobStatus
from storeassets.tasks import submit_batch

# Set up structured logger
logger = structlog.get_logger()


def setup_logging(settings: Settings) -> None:
    """Set up structured logging based on configuration."""
    log_level = settings.metrics.log_level.value

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.metrics.structured_logging
            else structlog.dev.ConsoleRenderer()
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Set log level on the standard library root logger so that
    # libraries using logging propagate correctly.
    numeric_level = getattr(logging, log_level, logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    logging.getLogger().setLevel(numeric_level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    logger.info("Logging initialized", level=log_level)


def read_urls(args: argparse.Namespace) -> List[str]:
    """Collect URLs from the command line and an optional input file."""
    urls = list(args.urls or [])
    if args.input:
        urls.extend(Path(args.input).read_text(encoding="utf-8").splitlines())
    return urls


async def run_extract(settings: Settings, urls: List[str], output_dir: Path) -> int:
    """Extract assets for ``urls``. Returns the number of failed jobs."""
    async with AppContext(settings) as app_context:
        board = submit_batch(app_context, urls)
        updates = board.subscribe()

        while True:
            job = await updates.get()
            if job is None:
                break
            if job.status_message:
                logger.info(job.status_message, url=job.source_url, status=job.status.value)

        failed = 0
        for job in board.jobs:
            if job.status == JobStatus.SUCCEEDED:
                path = write_archive(job, output_dir)
                logger.info(
                    "Assets extracted",
                    app_name=job.app_name,
                    url=job.source_url,
                    archive=str(path),
                    note=job.status_message,
                )
            else:
                failed += 1
                logger.error("Extraction failed", url=job.source_url, error=job.error_message)
        return failed


def run_format(image_path: Path, output_dir: Path) -> int:
    """Fit one local image into every catalog size."""
    try:
        rendered = format_image(image_path.read_bytes())
    except (OSError, ImageDecodeError) as e:
        logger.error("Cannot format image", path=str(image_path), error=str(e))
        return 1
    write_images(rendered, output_dir, image_path.stem)
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Store Asset Extractor - Pull icons and screenshots from app listing pages"
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=None,
        help="Set the log level"
    )
    parser.add_argument(
        "--output",
        help="Output directory (defaults to OUTPUT_DIR setting)",
        default=None
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser("extract", help="Extract assets from listing URLs")
    extract_parser.add_argument("urls", nargs="*", help="Listing page URLs")
    extract_parser.add_argument(
        "--input",
        help="File with one URL per line",
        default=None
    )

    format_parser = subparsers.add_parser("format", help="Resize a local image to all store sizes")
    format_parser.add_argument("image", help="Path to the source image")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    try:
        args = parse_args(argv)
        settings = load_settings()

        if args.log_level:
            settings.metrics.log_level = LogLevel(args.log_level)
        setup_logging(settings)

        if settings.metrics.prometheus_enabled:
            start_http_server(settings.metrics.prometheus_port)
            logger.info("Prometheus metrics server started", port=settings.metrics.prometheus_port)

        output_dir = Path(args.output) if args.output else settings.output_dir

        if args.command == "format":
            return run_format(Path(args.image), output_dir)

        urls = read_urls(args)
        if not any(u.strip() for u in urls):
            logger.error("No URLs given")
            return 2
        failed = asyncio.run(run_extract(settings, urls, output_dir))
        return 1 if failed else 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    except Exception as e:
        logger.exception("Unhandled exception", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
