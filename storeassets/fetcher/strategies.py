"""
Fetch strategies and response acceptance rules.

A strategy pairs a URL variant (e.g. the normalized high-resolution URL or
the original one) with a proxy endpoint that rewrites it into the URL that
is actually requested.
"""
import time
from typing import Callable, Iterable, List, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict

from storeassets.config import ProxyEndpoint
from storeassets.utils import unique

Acceptance = Callable[[httpx.Response], bool]


class FetchStrategy(BaseModel):
    """One (URL variant, proxy transform) attempt."""
    model_config = ConfigDict(frozen=True)

    url_variant: str
    endpoint: ProxyEndpoint

    @property
    def identity(self) -> tuple:
        """Key used to drop duplicate attempts."""
        return (self.url_variant, self.endpoint.name, self.endpoint.template)

    def request_url(self, timestamp: Optional[int] = None) -> str:
        """Apply the endpoint's transform to the URL variant."""
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        return (
            self.endpoint.template
            .replace("{url}", quote(self.url_variant, safe=""))
            .replace("{raw_url}", self.url_variant)
            .replace("{timestamp}", str(timestamp))
        )


def dedupe_strategies(strategies: Iterable[FetchStrategy]) -> List[FetchStrategy]:
    """Remove repeated (variant, transform) pairs, keeping the first occurrence."""
    seen = set()
    result = []
    for strategy in strategies:
        if strategy.identity in seen:
            continue
        seen.add(strategy.identity)
        result.append(strategy)
    return result


def page_strategies(url: str, proxies: Sequence[ProxyEndpoint]) -> List[FetchStrategy]:
    """Strategies for a listing page: the URL through every HTML proxy in order."""
    return dedupe_strategies(FetchStrategy(url_variant=url, endpoint=p) for p in proxies)


def image_strategies(
    variants: Sequence[str],
    endpoints: Sequence[ProxyEndpoint],
) -> List[FetchStrategy]:
    """
    Strategies for a binary image.

    The first variant (normally the high-resolution rewrite) goes through the
    regular endpoints; the remaining variants are fallbacks and go through
    every endpoint, including the ``fallback_only`` ones.

    Args:
        variants: URL variants in order of preference
        endpoints: Configured image endpoints

    Returns:
        List[FetchStrategy]: De-duplicated, ordered strategies
    """
    variants = unique(v for v in variants if v)
    if not variants:
        return []

    preferred, fallbacks = variants[0], variants[1:]
    strategies = [
        FetchStrategy(url_variant=preferred, endpoint=e)
        for e in endpoints
        if not e.fallback_only
    ]
    fallback_variants = fallbacks or [preferred]
    for variant in fallback_variants:
        strategies.extend(FetchStrategy(url_variant=variant, endpoint=e) for e in endpoints)
    return dedupe_strategies(strategies)


def accept_image(min_bytes: int) -> Acceptance:
    """Accept responses that declare an image type and carry at least ``min_bytes``."""
    def _accept(response: httpx.Response) -> bool:
        content_type = response.headers.get("content-type", "").lower()
        if "image" not in content_type:
            return False
        return len(response.content) >= min_bytes
    return _accept


def accept_html(min_chars: int) -> Acceptance:
    """Accept responses whose decoded text is longer than ``min_chars``."""
    def _accept(response: httpx.Response) -> bool:
        return len(response.text) > min_chars
    return _accept
