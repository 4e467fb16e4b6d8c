"""
Image extractor module for the store asset extractor.

This module finds the app icon and the screenshot gallery in a listing
page. Targeted selectors are tried first; when they find nothing, a
"vacuum" pass scores every <img> on the page using class, alt and URL hints.
"""
import re
from typing import Callable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

import structlog

from storeassets.config import ParserConfig, ScoringWeights
from storeassets.extractor.selectors import (
    CDN_SWEEP_EXCLUDE,
    CDN_SWEEP_MIN_WIDTH,
    FAVICON_MARKER,
    GENERIC_GALLERY_ATTRIBUTES,
    GENERIC_GALLERY_SELECTORS,
    ICON_IMAGE_ATTRIBUTES,
    ICON_SELECTORS,
    OG_IMAGE_SELECTOR,
    SCREENSHOT_CLASS_HINTS,
    SCREENSHOT_URL_HINTS,
    SCREENSHOT_URL_REJECT,
    SITE_GALLERIES,
    VACUUM_ICON_ATTRIBUTES,
    VACUUM_SCREENSHOT_ATTRIBUTES,
)
from storeassets.models.listing import SiteFamily
from storeassets.parser.html_parser import HTMLElement, HTMLParser
from storeassets.utils import first_match

# Set up structured logger
logger = structlog.get_logger()

UNUSABLE_SCHEMES = ("data:", "javascript:", "blob:", "about:")


def to_absolute(path: Optional[str], page_url: str) -> str:
    """
    Resolve a URL found in markup against the page it came from.

    Returns an empty string for URLs that cannot be fetched (data URIs,
    script links, empty values).
    """
    if not path:
        return ""
    path = path.strip()
    if not path or path.lower().startswith(UNUSABLE_SCHEMES):
        return ""
    if path.startswith("//"):
        return f"https:{path}"
    if path.startswith(("http://", "https://")):
        return path

    try:
        resolved = urljoin(page_url, path)
    except ValueError:
        return ""
    if urlparse(resolved).scheme not in ("http", "https"):
        return ""
    return resolved


def largest_from_srcset(srcset: Optional[str]) -> Optional[str]:
    """
    Pick the largest candidate from a responsive ``srcset`` attribute.

    Candidates are compared by their width (``640w``) or density (``2x``)
    descriptor; a candidate without one counts as ``1x``. On ties the later
    candidate wins, since sets are conventionally listed smallest first.
    """
    if not srcset:
        return None

    best_url = None
    best_size = -1.0
    for candidate in srcset.split(","):
        parts = candidate.strip().split()
        if not parts:
            continue
        size = 1.0
        if len(parts) > 1:
            descriptor = parts[1].lower()
            try:
                size = float(descriptor[:-1]) if descriptor[-1] in "wx" else 1.0
            except (ValueError, IndexError):
                size = 1.0
        if size >= best_size:
            best_size = size
            best_url = parts[0]
    return best_url


def parse_dimension(value: Optional[str]) -> Optional[int]:
    """Parse a width/height attribute such as ``"512"`` or ``"48px"``."""
    if not value:
        return None
    match = re.match(r"\s*(\d+)", value)
    return int(match.group(1)) if match else None


def image_source(
    element: HTMLElement,
    attributes: Sequence[str],
    use_srcset: bool = True,
) -> Optional[str]:
    """Best source URL of an element: srcset first, then ``attributes`` in order."""
    if use_srcset:
        best = largest_from_srcset(element.get("srcset"))
        if best:
            return best
    return first_match(attributes, lambda attr: element.get(attr))


def element_url(element: HTMLElement) -> Optional[str]:
    """URL carried by an icon candidate, depending on its tag."""
    if element.name == "meta":
        return element.get("content")
    if element.name == "link":
        return element.get("href")
    return image_source(element, ICON_IMAGE_ATTRIBUTES)


def _hint_text(img: HTMLElement, include_alt: bool = True) -> str:
    parts = [img.classes]
    if include_alt:
        parts.append(img.get("alt", "") or "")
    parent = img.parent
    parts.append(parent.classes if parent else "")
    return " ".join(parts).lower()


def score_icon_candidate(img: HTMLElement, weights: ScoringWeights) -> int:
    """
    Heuristic icon score for an <img>.

    Positive signals are icon/logo hints and a square shape; screenshot,
    avatar and rating-star hints count against it.
    """
    hints = _hint_text(img)
    score = 0
    if "icon" in hints:
        score += weights.icon_hint
    if "logo" in hints:
        score += weights.logo_hint

    width = parse_dimension(img.get("width")) or 0
    height = parse_dimension(img.get("height")) or 0
    if width > weights.square_min_width and width == height:
        score += weights.square_shape

    if "screenshot" in hints:
        score += weights.screenshot_hint
    if "avatar" in hints:
        score += weights.avatar_hint
    if "star" in hints:
        score += weights.star_hint
    return score


def vacuum_icon(parser: HTMLParser, weights: ScoringWeights) -> Optional[str]:
    """Score every <img> and return the best icon candidate scoring above zero."""
    best_src = None
    best_score = 0
    for img in parser.select("img"):
        src = image_source(img, VACUUM_ICON_ATTRIBUTES)
        if not src or src.strip().lower().startswith("data:"):
            continue
        score = score_icon_candidate(img, weights)
        if score > best_score:
            best_score = score
            best_src = src

    if best_src:
        logger.debug("Icon found by vacuum heuristic", url=best_src, score=best_score)
    return best_src


def extract_icon_url(
    parser: HTMLParser,
    site_family: SiteFamily,
    weights: Optional[ScoringWeights] = None,
) -> Optional[str]:
    """
    Find the app icon URL without structured metadata.

    Known icon containers are probed in order, then every image is scored.
    Favicons are only used when nothing else turns up.

    Args:
        parser: HTMLParser object
        site_family: Family of the listing page
        weights: Scoring weights for the vacuum pass

    Returns:
        Optional[str]: Icon URL as found in the markup, None if not found
    """
    weights = weights or ScoringWeights()
    favicons: List[str] = []

    def _probe(selector: str) -> Optional[str]:
        if site_family == SiteFamily.GOOGLE_PLAY and selector == OG_IMAGE_SELECTOR:
            return None
        element = parser.select_one(selector)
        if element is None:
            return None
        url = element_url(element)
        if url and FAVICON_MARKER in url.lower():
            favicons.append(url)
            return None
        return url

    icon = first_match(ICON_SELECTORS, _probe) or vacuum_icon(parser, weights)
    if not icon and favicons:
        logger.debug("Falling back to favicon as icon", url=favicons[0])
        icon = favicons[0]
    return icon


class ScreenshotCollector:
    """Accumulates absolute, unique screenshot URLs in discovery order."""

    def __init__(self, page_url: str):
        self.page_url = page_url
        self.urls: List[str] = []

    def __len__(self) -> int:
        return len(self.urls)

    def collect(self, url: Optional[str]) -> bool:
        """Add ``url`` if it is usable and new. Returns True when added."""
        absolute = to_absolute(url, self.page_url)
        if not absolute:
            return False
        lowered = absolute.lower()
        if any(marker in lowered for marker in SCREENSHOT_URL_REJECT):
            return False
        if absolute in self.urls:
            return False
        self.urls.append(absolute)
        return True


def collect_site_gallery(
    parser: HTMLParser,
    collector: ScreenshotCollector,
    site_family: SiteFamily,
) -> None:
    """Collect screenshots from the family's known gallery markup."""
    gallery = SITE_GALLERIES.get(site_family)
    if gallery is None:
        return

    if gallery.link_selectors:
        for link in parser.select(", ".join(gallery.link_selectors)):
            collector.collect(link.get("href"))

    if not collector.urls and gallery.image_selectors:
        for img in parser.select(", ".join(gallery.image_selectors)):
            src = image_source(img, gallery.image_attributes, gallery.use_srcset)
            if not src:
                continue
            if gallery.url_must_contain and gallery.url_must_contain not in src:
                continue
            collector.collect(src)

    if not collector.urls and gallery.cdn_sweep and gallery.url_must_contain:
        for img in parser.select("img"):
            src = img.get("src") or ""
            if gallery.url_must_contain not in src or CDN_SWEEP_EXCLUDE in src:
                continue
            width = parse_dimension(img.get("width"))
            if width is None or width > CDN_SWEEP_MIN_WIDTH:
                collector.collect(src)


def collect_generic_gallery(parser: HTMLParser, collector: ScreenshotCollector) -> None:
    """Collect from common lightbox and gallery markup."""
    for selector in GENERIC_GALLERY_SELECTORS:
        for element in parser.select(selector):
            for attribute in GENERIC_GALLERY_ATTRIBUTES:
                collector.collect(element.get(attribute))


def vacuum_screenshots(parser: HTMLParser, collector: ScreenshotCollector) -> None:
    """Collect any <img> whose classes or URL look like a screenshot."""
    for img in parser.select("img"):
        src = image_source(img, VACUUM_SCREENSHOT_ATTRIBUTES)
        if not src:
            continue
        hints = _hint_text(img, include_alt=False)
        if any(hint in hints for hint in SCREENSHOT_CLASS_HINTS):
            collector.collect(src)
        elif any(hint in src for hint in SCREENSHOT_URL_HINTS):
            collector.collect(src)


def extract_screenshot_urls(
    parser: HTMLParser,
    page_url: str,
    site_family: SiteFamily,
    config: Optional[ParserConfig] = None,
) -> List[str]:
    """
    Find screenshot URLs, from the most to the least specific markup.

    The site family's gallery is always tried. The generic gallery tier and
    the vacuum tier only run while fewer than ``config.min_screenshots``
    URLs have been found.

    Args:
        parser: HTMLParser object
        page_url: URL of the listing page, for resolving relative URLs
        site_family: Family of the listing page
        config: Parser configuration

    Returns:
        List[str]: Absolute screenshot URLs in discovery order
    """
    config = config or ParserConfig()
    collector = ScreenshotCollector(page_url)

    tiers: List[Callable[[], None]] = [
        lambda: collect_site_gallery(parser, collector, site_family),
        lambda: collect_generic_gallery(parser, collector),
        lambda: vacuum_screenshots(parser, collector),
    ]
    for index, tier in enumerate(tiers):
        if index > 0 and len(collector) >= config.min_screenshots:
            break
        tier()

    logger.debug(
        "Screenshot candidates collected",
        site_family=site_family.value,
        count=len(collector),
    )
    return collector.urls
