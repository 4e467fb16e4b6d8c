"""
Listing page parser.

Turns the HTML of an app listing page into an :class:`ExtractedData`:
app name, icon URL and up to ``max_screenshots`` screenshot URLs. The
parser never raises; anything it cannot find is simply left empty and the
caller decides whether that is an error.
"""
from typing import Optional

import structlog

from storeassets.config import ParserConfig
from storeassets.extractor.image_extractor import (
    extract_icon_url,
    extract_screenshot_urls,
    to_absolute,
)
from storeassets.extractor.metadata import extract_app_name, extract_jsonld_app
from storeassets.models.listing import ExtractedData, SiteFamily
from storeassets.normalizer import normalize
from storeassets.parser.html_parser import parse_html
from storeassets.utils import unique

# Set up structured logger
logger = structlog.get_logger()


def extract(
    html: str,
    source_url: str,
    site_family: Optional[SiteFamily] = None,
    config: Optional[ParserConfig] = None,
) -> ExtractedData:
    """
    Extract the app name, icon and screenshots from a listing page.

    Args:
        html: Page HTML
        source_url: URL the page was fetched from
        site_family: Family of the page; derived from ``source_url`` if omitted
        config: Parser configuration

    Returns:
        ExtractedData: Whatever could be recovered from the page
    """
    config = config or ParserConfig()
    site_family = site_family or SiteFamily.from_url(source_url)

    try:
        parser = parse_html(html)

        app_name, icon_url = extract_jsonld_app(parser)
        if not app_name:
            app_name = extract_app_name(parser)
        if not icon_url:
            icon_url = extract_icon_url(parser, site_family, config.scoring)

        screenshot_urls = extract_screenshot_urls(parser, source_url, site_family, config)

        # The icon keeps the URL found in the page; the fetcher derives the
        # high-resolution variant itself and falls back to this one.
        # Screenshots are compared in their high-resolution form.
        icon_absolute = to_absolute(icon_url, source_url)
        icon_normalized = normalize(icon_absolute) if icon_absolute else None
        if icon_normalized:
            screenshot_urls = [s for s in screenshot_urls if normalize(s) != icon_normalized]

        screenshot_urls = unique(to_absolute(s, source_url) for s in screenshot_urls)
        screenshot_urls = [s for s in screenshot_urls if s][: config.max_screenshots]

        logger.info(
            "Listing page parsed",
            url=source_url,
            site_family=site_family.value,
            app_name=app_name,
            has_icon=bool(icon_absolute),
            screenshots=len(screenshot_urls),
        )
        return ExtractedData(
            app_name=app_name,
            icon_url=icon_absolute or None,
            screenshot_urls=screenshot_urls,
        )

    except Exception as e:
        logger.error("Error parsing listing page", url=source_url, error=str(e))
        return ExtractedData()
