"""
Central re-exports for the store asset extractor data models.

This module exposes the canonical models from their dedicated modules to
provide stable import paths as "storeassets.models" without redefining types.
"""
from .asset import (
    ICON_SPECS,
    SCREENSHOT_SPECS,
    AssetGroup,
    AssetType,
    RenderedImage,
    ResizeSpec,
)
from .job import ExtractionJob, JobStatus
from .listing import ExtractedData, SiteFamily

__all__ = [
    "ICON_SPECS",
    "SCREENSHOT_SPECS",
    "AssetGroup",
    "AssetType",
    "RenderedImage",
    "ResizeSpec",
    "ExtractionJob",
    "JobStatus",
    "ExtractedData",
    "SiteFamily",
]
