"""
HTTP client module for the store asset extractor.

This module provides the resource fetcher, which walks an ordered list of
fetch strategies (proxy endpoints applied to URL variants) and returns the
first response that passes an acceptance check. It uses httpx for making
HTTP requests.

Individual proxies are unreliable and rate limited independently, so a
failing strategy is never retried; the next one is tried instead.
"""
import time
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Dict, Optional, Sequence

import httpx
import structlog

from storeassets.config import FetcherConfig
from storeassets.errors import FetchExhausted
from storeassets.fetcher.strategies import (
    Acceptance,
    FetchStrategy,
    accept_html,
    accept_image,
    image_strategies,
    page_strategies,
)
from storeassets.normalizer import normalize

# Set up structured logger
logger = structlog.get_logger()

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,image/avif,image/webp,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

# Never forwarded to a target origin
STRIPPED_HEADERS = ("referer", "cookie", "authorization")


def _cookieless_jar() -> CookieJar:
    """Cookie jar that refuses every cookie, including those set by redirect hops."""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class ResourceFetcher:
    """
    Fetches listing pages and images through fallback strategies.

    The fetcher owns one httpx.AsyncClient and should be used as an async
    context manager.
    """

    def __init__(
        self,
        config: FetcherConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Fetcher configuration (endpoints, thresholds, timeout)
            transport: Optional httpx transport, mainly for tests
            default_headers: Extra headers sent with every request
        """
        self.config = config

        headers = {**DEFAULT_HEADERS, "User-Agent": config.user_agent}
        if default_headers:
            headers.update(default_headers)
        self.default_headers = {
            k: v for k, v in headers.items() if k.lower() not in STRIPPED_HEADERS
        }

        self.client = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            headers=self.default_headers,
            cookies=_cookieless_jar(),
            transport=transport,
        )

    async def __aenter__(self) -> "ResourceFetcher":
        """Enter the async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _attempt(
        self,
        strategy: FetchStrategy,
        acceptance: Acceptance,
    ) -> Optional[httpx.Response]:
        """Run one strategy. Returns the response if accepted, None otherwise."""
        request_url = strategy.request_url()

        start_time = time.time()
        response = await self.client.get(request_url)
        elapsed = time.time() - start_time

        if not response.is_success:
            logger.debug(
                "Fetch strategy returned error status",
                endpoint=strategy.endpoint.name,
                url=strategy.url_variant,
                status_code=response.status_code,
            )
            return None

        if not acceptance(response):
            logger.debug(
                "Fetch strategy response rejected",
                endpoint=strategy.endpoint.name,
                url=strategy.url_variant,
                content_type=response.headers.get("content-type"),
                size=len(response.content),
            )
            return None

        logger.debug(
            "Fetch strategy succeeded",
            endpoint=strategy.endpoint.name,
            url=strategy.url_variant,
            status_code=response.status_code,
            elapsed_seconds=elapsed,
        )
        return response

    async def fetch_response(
        self,
        strategies: Sequence[FetchStrategy],
        acceptance: Acceptance,
    ) -> httpx.Response:
        """
        Return the first accepted response from ``strategies``.

        Args:
            strategies: Ordered strategies to try
            acceptance: Predicate a successful response must also satisfy

        Returns:
            httpx.Response: The first accepted response

        Raises:
            FetchExhausted: If every strategy failed or was rejected
        """
        last_error = ""
        for strategy in strategies:
            try:
                response = await self._attempt(strategy, acceptance)
            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__
                logger.debug(
                    "Fetch strategy failed",
                    endpoint=strategy.endpoint.name,
                    url=strategy.url_variant,
                    error=last_error,
                )
                continue

            if response is not None:
                return response

        target = strategies[0].url_variant if strategies else ""
        logger.warning(
            "All fetch strategies failed",
            url=target,
            attempts=len(strategies),
            last_error=last_error or None,
        )
        raise FetchExhausted(target, len(strategies), last_error)

    async def fetch(
        self,
        strategies: Sequence[FetchStrategy],
        acceptance: Acceptance,
    ) -> bytes:
        """Return the body of the first accepted response."""
        response = await self.fetch_response(strategies, acceptance)
        return response.content

    async def fetch_html(self, url: str) -> str:
        """
        Fetch a listing page's HTML.

        Raises:
            FetchExhausted: If no proxy returned a usable page
        """
        strategies = page_strategies(url, self.config.html_proxies)
        response = await self.fetch_response(
            strategies, accept_html(self.config.min_html_chars)
        )
        return response.text

    async def fetch_image(self, url: str) -> bytes:
        """
        Fetch an image, preferring its high-resolution variant.

        Raises:
            FetchExhausted: If no endpoint returned a usable image
        """
        strategies = image_strategies([normalize(url), url], self.config.image_endpoints)
        return await self.fetch(strategies, accept_image(self.config.min_image_bytes))
