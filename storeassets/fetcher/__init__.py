"""
Fetcher package for the store asset extractor.

This package retrieves listing pages and images through an ordered chain of
proxy and CDN endpoints, stopping at the first response that passes an
acceptance check.

The main components are:
- Fetch strategies (URL variant + endpoint transform) and acceptance rules
- The resource fetcher that walks the strategy chain
"""
from storeassets.fetcher.http_client import ResourceFetcher
from storeassets.fetcher.strategies import (
    FetchStrategy,
    accept_html,
    accept_image,
    dedupe_strategies,
    image_strategies,
    page_strategies,
)

__all__ = [
    "ResourceFetcher",
    "FetchStrategy",
    "accept_html",
    "accept_image",
    "dedupe_strategies",
    "image_strategies",
    "page_strategies",
]
