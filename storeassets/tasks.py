"""
Task definitions for the store asset extractor.

This module contains the extraction pipeline for one listing URL and the
batch loop around it. Jobs in a batch run strictly one after another, and
within a job every fetch and render is awaited before the next starts, to
keep the load on the shared proxies low.
"""
import asyncio
from functools import partial
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

import structlog
from prometheus_client import Counter

from storeassets import DEFAULT_APP_NAME
from storeassets.compositor import render_bytes
from storeassets.errors import (
    AllAssetsUnusable,
    FetchExhausted,
    NoAssetsFound,
    StoreAssetsError,
)
from storeassets.extractor.listing_parser import extract
from storeassets.jobs import JobBoard
from storeassets.models.asset import (
    ICON_SPECS,
    SCREENSHOT_SPECS,
    AssetGroup,
    AssetType,
    ResizeSpec,
)
from storeassets.models.job import ExtractionJob, JobStatus
from storeassets.models.listing import SiteFamily

if TYPE_CHECKING:
    from storeassets.context import AppContext

# Set up structured logger
logger = structlog.get_logger()

# Define metrics
JOBS_PROCESSED_TOTAL = Counter(
    'extraction_jobs_processed_total', 'Total number of extraction jobs processed', ['status']
)
ASSETS_PROCESSED_TOTAL = Counter(
    'assets_processed_total', 'Total number of source images processed', ['asset_type', 'outcome']
)

PAGE_LOAD_FAILED = "Unable to load the website content. It may be blocked or unavailable."
NO_ASSETS_FOUND = "No assets found. Ensure the URL is correct."
ASSETS_UNUSABLE = "Found image URLs but failed to load them. The website might be blocking us."
SCREENSHOTS_DISCARDED = "Screenshots were too small or blocked."


async def process_asset(
    app_context: 'AppContext',
    url: str,
    asset_type: AssetType,
    specs: Sequence[ResizeSpec],
) -> Optional[AssetGroup]:
    """
    Fetch and render one source image.

    Any failure only drops this asset: it is logged and None is returned.
    """
    try:
        data = await app_context.fetcher.fetch_image(url)

        loop = asyncio.get_running_loop()
        rendered = await loop.run_in_executor(
            app_context.thread_pool,
            partial(render_bytes, data, asset_type, specs, app_context.settings.compositor),
        )
    except Exception as e:
        logger.warning(
            "Failed to process asset",
            url=url,
            asset_type=asset_type.value,
            error_type=type(e).__name__,
            error=str(e),
        )
        ASSETS_PROCESSED_TOTAL.labels(asset_type=asset_type.value, outcome="failed").inc()
        return None

    if not rendered:
        ASSETS_PROCESSED_TOTAL.labels(asset_type=asset_type.value, outcome="discarded").inc()
        return None

    ASSETS_PROCESSED_TOTAL.labels(asset_type=asset_type.value, outcome="rendered").inc()
    return AssetGroup(original_url=url, asset_type=asset_type, rendered_images=rendered)


async def _run_job(app_context: 'AppContext', board: JobBoard, job: ExtractionJob) -> ExtractionJob:
    settings = app_context.settings

    board.update(job.id, JobStatus.FETCHING_PAGE, status_message="Fetching page...")
    html = await app_context.fetcher.fetch_html(job.source_url)

    data = extract(html, job.source_url, SiteFamily.from_url(job.source_url), settings.parser)
    if data.is_empty:
        raise NoAssetsFound(NO_ASSETS_FOUND)

    app_name = data.app_name or DEFAULT_APP_NAME
    board.update(
        job.id,
        JobStatus.PROCESSING_ASSETS,
        app_name=app_name,
        status_message="Processing images...",
    )

    groups: List[AssetGroup] = []

    if data.icon_url:
        icon = await process_asset(app_context, data.icon_url, AssetType.ICON, ICON_SPECS)
        if icon:
            groups.append(icon)

    screenshot_count = 0
    total = len(data.screenshot_urls)
    for i, url in enumerate(data.screenshot_urls, start=1):
        board.update(job.id, status_message=f"Processing screenshot {i}/{total}...")
        group = await process_asset(app_context, url, AssetType.SCREENSHOT, SCREENSHOT_SPECS)
        if group:
            groups.append(group)
            screenshot_count += 1

    if not groups:
        raise AllAssetsUnusable(ASSETS_UNUSABLE)

    advisory = SCREENSHOTS_DISCARDED if total and not screenshot_count else None
    return board.update(
        job.id,
        JobStatus.SUCCEEDED,
        asset_groups=groups,
        status_message=advisory,
    )


async def process_job(app_context: 'AppContext', board: JobBoard, job_id: str) -> ExtractionJob:
    """
    Run one job to a terminal state.

    Errors never propagate out of a job; they become its error message.
    """
    job = board.get(job_id)
    logger.info("Processing job", job_id=job.id, url=job.source_url)

    try:
        result = await _run_job(app_context, board, job)
    except FetchExhausted as e:
        logger.warning("Listing page could not be loaded", url=job.source_url, error=str(e))
        result = _fail(board, job_id, PAGE_LOAD_FAILED)
    except StoreAssetsError as e:
        logger.warning("Extraction failed", url=job.source_url, error=str(e))
        result = _fail(board, job_id, str(e))
    except Exception as e:
        logger.exception("Unexpected error processing job", url=job.source_url, error=str(e))
        result = _fail(board, job_id, f"Extraction failed: {e}")

    JOBS_PROCESSED_TOTAL.labels(status=result.status.value).inc()
    logger.info(
        "Job finished",
        job_id=result.id,
        status=result.status.value,
        app_name=result.app_name,
        asset_groups=len(result.asset_groups),
    )
    return result


def _fail(board: JobBoard, job_id: str, message: str) -> ExtractionJob:
    current = board.get(job_id)
    if current.status.is_terminal:
        return current
    return board.update(
        job_id,
        JobStatus.FAILED,
        error_message=message,
        status_message=None,
        asset_groups=[],
    )


async def process_batch(app_context: 'AppContext', board: JobBoard) -> None:
    """Process every job on ``board`` sequentially, then close the board."""
    logger.info("Processing batch", jobs=len(board))
    try:
        for job in board.jobs:
            await process_job(app_context, board, job.id)
    finally:
        board.close()
    logger.info("Batch complete")


def submit_batch(app_context: 'AppContext', urls: Iterable[str]) -> JobBoard:
    """
    Start processing ``urls`` in the background.

    Returns:
        JobBoard: Live job list; await ``board.wait()`` for the final state
    """
    board = JobBoard(urls)
    app_context.create_task(process_batch(app_context, board))
    return board


async def run_batch(app_context: 'AppContext', urls: Iterable[str]) -> List[ExtractionJob]:
    """Process ``urls`` and return the final job snapshots."""
    board = JobBoard(urls)
    await process_batch(app_context, board)
    return list(board.jobs)
