"""
Writing rendered assets to disk.

``write_archive`` packs a finished job into one zip per app; ``write_images``
writes loose PNGs, as used by the manual formatter.
"""
import re
import zipfile
from pathlib import Path
from typing import Iterable, List, Tuple

import structlog

from storeassets.models.asset import AssetType, RenderedImage
from storeassets.models.job import ExtractionJob, JobStatus

logger = structlog.get_logger()

DEFAULT_ARCHIVE_NAME = "assets"
# Job id characters used to tell apart archives of apps with the same name
ARCHIVE_ID_LENGTH = 8


def safe_name(name: str) -> str:
    """File-system friendly version of an app name."""
    cleaned = re.sub(r"[^A-Za-z0-9\s_-]", "", name or "").strip()
    cleaned = re.sub(r"\s+", "_", cleaned)
    return cleaned or DEFAULT_ARCHIVE_NAME


def archive_entries(job: ExtractionJob) -> List[Tuple[str, bytes]]:
    """
    File names and contents for every rendition of a job.

    Icons are named ``icon-<w>x<h>.png``; screenshots are numbered in
    discovery order, ``screenshot-<n>-<w>x<h>.png``.
    """
    entries = []
    screenshot_index = 0
    for group in job.asset_groups:
        if group.asset_type == AssetType.ICON:
            prefix = AssetType.ICON.file_prefix
        else:
            screenshot_index += 1
            prefix = f"{AssetType.SCREENSHOT.file_prefix}-{screenshot_index}"
        for image in group.rendered_images:
            entries.append((image.filename(prefix), image.pixel_data))
    return entries


def write_archive(job: ExtractionJob, output_dir: Path) -> Path:
    """
    Write a succeeded job to ``<output_dir>/<app>.zip``.

    An existing archive is never replaced; the job id is appended to the
    file name instead, e.g. ``app_assets-1a2b3c4d.zip``.

    Raises:
        ValueError: If the job has no assets
    """
    if job.status != JobStatus.SUCCEEDED:
        raise ValueError(f"Job {job.id} has no assets to archive ({job.status.value})")

    name = safe_name(job.app_name)
    output_dir.mkdir(parents=True, exist_ok=True)
    archive_path = output_dir / f"{name}.zip"
    if archive_path.exists():
        archive_path = output_dir / f"{name}-{job.id[:ARCHIVE_ID_LENGTH]}.zip"

    entries = archive_entries(job)
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for filename, data in entries:
            archive.writestr(f"{name}/{filename}", data)

    logger.info("Archive written", path=str(archive_path), files=len(entries))
    return archive_path


def write_images(images: Iterable[RenderedImage], output_dir: Path, prefix: str) -> List[Path]:
    """Write each rendition as ``<prefix>-<w>x<h>.png`` under ``output_dir``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for image in images:
        path = output_dir / image.filename(prefix)
        path.write_bytes(image.pixel_data)
        paths.append(path)
    logger.info("Images written", directory=str(output_dir), files=len(paths))
    return paths
