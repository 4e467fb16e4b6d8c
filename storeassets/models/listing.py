"""
Models describing a parsed listing page.
"""
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from storeassets.utils import unique


class SiteFamily(str, Enum):
    """
    Origin platform of a listing page.

    Each family has its own screenshot gallery markup; everything else is
    handled by the generic tiers.
    """
    GOOGLE_PLAY = "google_play"
    APK_COMBO = "apk_combo"
    APK_PURE = "apk_pure"
    GENERIC = "generic"

    @classmethod
    def from_url(cls, url: str) -> "SiteFamily":
        """
        Classify a listing URL.

        Args:
            url: Listing page URL

        Returns:
            The matching SiteFamily, or GENERIC if the host is not recognised
        """
        try:
            host = (urlparse(url).hostname or "").lower()
        except ValueError:
            return cls.GENERIC

        if host == "play.google.com":
            return cls.GOOGLE_PLAY
        if host == "apkcombo.com" or host.endswith(".apkcombo.com"):
            return cls.APK_COMBO
        if host == "apkpure.com" or host.endswith(".apkpure.com"):
            return cls.APK_PURE
        return cls.GENERIC


class ExtractedData(BaseModel):
    """Result of parsing one listing page."""
    app_name: Optional[str] = None
    icon_url: Optional[str] = None
    screenshot_urls: List[str] = Field(default_factory=list)

    @field_validator("screenshot_urls")
    @classmethod
    def dedupe_screenshot_urls(cls, v: List[str]) -> List[str]:
        """Drop empty and repeated URLs, keeping discovery order."""
        return unique(url for url in v if url)

    @property
    def is_empty(self) -> bool:
        """True when there is nothing worth downloading."""
        return not self.icon_url and not self.screenshot_urls
