"""
Selector catalogs for listing pages.

These are plain data so a new site family only needs a new entry here,
not new control flow in the extractor.
"""
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from storeassets.models.listing import SiteFamily

JSONLD_SELECTOR = 'script[type="application/ld+json"]'

# schema.org types that describe an installable app
APP_SCHEMA_TYPES = (
    "SoftwareApplication",
    "MobileApplication",
    "VideoGame",
    "WebApplication",
)

APP_NAME_SELECTORS: Tuple[str, ...] = (
    'h1[itemprop="name"]',
    "h1 span",
    "h1",
    ".app-title",
    ".title-like",
)

ICON_SELECTORS: Tuple[str, ...] = (
    ".app_header .icon img",
    ".icon img",
    ".logo img",
    ".app-icon img",
    ".da-icon img",
    ".dt-app-icon img",
    ".iconbox img",
    'img[itemprop="image"]',
    'img[alt="Icon image"]',
    'link[rel="apple-touch-icon"]',
    'meta[property="og:image"]',
)

# On Google Play og:image is the feature graphic, not the icon
OG_IMAGE_SELECTOR = 'meta[property="og:image"]'

FAVICON_MARKER = "favicon"

# Attribute preference for <img> elements, after the responsive source set
ICON_IMAGE_ATTRIBUTES: Tuple[str, ...] = ("data-original", "data-src", "src", "href")
VACUUM_ICON_ATTRIBUTES: Tuple[str, ...] = ("data-original", "src")
VACUUM_SCREENSHOT_ATTRIBUTES: Tuple[str, ...] = ("data-original", "data-src", "src")


class GallerySelectors(BaseModel):
    """Where a site family keeps its screenshot gallery."""
    model_config = ConfigDict(frozen=True)

    # Anchors whose href points at the full-size image
    link_selectors: Tuple[str, ...] = ()
    # Images inside the gallery, tried when the links produced nothing
    image_selectors: Tuple[str, ...] = ()
    image_attributes: Tuple[str, ...] = ("data-src", "src")
    use_srcset: bool = False
    # Gallery images must point at this CDN
    url_must_contain: Optional[str] = None
    # Last family-specific sweep over every <img> on that CDN
    cdn_sweep: bool = False


SITE_GALLERIES: Dict[SiteFamily, GallerySelectors] = {
    SiteFamily.GOOGLE_PLAY: GallerySelectors(
        image_selectors=("button img", "[data-screenshot-item] img"),
        image_attributes=("data-src", "src"),
        use_srcset=True,
        url_must_contain="googleusercontent",
        cdn_sweep=True,
    ),
    SiteFamily.APK_COMBO: GallerySelectors(
        link_selectors=("#gallery-screenshots a", ".screenshots-list a"),
        image_selectors=("#gallery-screenshots img", ".screenshots-list img"),
        image_attributes=("data-src", "src"),
    ),
    SiteFamily.APK_PURE: GallerySelectors(
        link_selectors=(
            ".screen-pswp a",
            ".mp-screenshot a",
            ".screenshot-item a",
            ".scroll-snapshot a",
            "a[data-fancybox]",
        ),
        image_selectors=(
            ".screen-pswp img",
            ".mp-screenshot img",
            ".screenshot-item img",
            ".scroll-snapshot img",
        ),
        image_attributes=("data-original", "data-full-src", "src"),
    ),
    SiteFamily.GENERIC: GallerySelectors(),
}

# Google Play CDN sweep: size-suffixed URLs ("=s64") are icons and avatars
CDN_SWEEP_EXCLUDE = "=s"
CDN_SWEEP_MIN_WIDTH = 100

GENERIC_GALLERY_SELECTORS: Tuple[str, ...] = (
    "[data-fancybox] > img",
    ".gallery a",
    ".screenshots a",
    ".lightbox",
    "[data-lightbox]",
)
GENERIC_GALLERY_ATTRIBUTES: Tuple[str, ...] = ("href", "data-original", "src")

SCREENSHOT_CLASS_HINTS: Tuple[str, ...] = ("screen", "gallery", "shot")
SCREENSHOT_URL_HINTS: Tuple[str, ...] = ("screen", "mktg")

# Collected screenshot URLs containing these are never screenshots
SCREENSHOT_URL_REJECT: Tuple[str, ...] = ("avatar", "logo")
