"""
Extractor package for the store asset extractor.

This package recovers the app name, icon URL and screenshot URLs from app
listing pages. Site-specific gallery markup is tried first, then generic
gallery patterns, then scored heuristics over every image on the page.

The main components are:
- Selector catalogs for each supported site family
- Metadata extraction (JSON-LD, app name)
- Icon and screenshot discovery
- The listing parser that ties them together
"""
from storeassets.extractor.image_extractor import (
    ScreenshotCollector,
    extract_icon_url,
    extract_screenshot_urls,
    largest_from_srcset,
    score_icon_candidate,
    to_absolute,
)
from storeassets.extractor.listing_parser import extract
from storeassets.extractor.metadata import (
    clean_app_name,
    extract_app_name,
    extract_jsonld_app,
)

__all__ = [
    "ScreenshotCollector",
    "extract_icon_url",
    "extract_screenshot_urls",
    "largest_from_srcset",
    "score_icon_candidate",
    "to_absolute",
    "extract",
    "clean_app_name",
    "extract_app_name",
    "extract_jsonld_app",
]
