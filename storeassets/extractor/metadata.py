"""
App metadata extraction for listing pages.

The app name and icon are read from schema.org JSON-LD when the page
provides it, with CSS selector fallbacks for the name.
"""
import html
import json
import re
from typing import Any, Iterator, List, Optional, Tuple

import bleach
import structlog

from storeassets.extractor.selectors import (
    APP_NAME_SELECTORS,
    APP_SCHEMA_TYPES,
    JSONLD_SELECTOR,
)
from storeassets.parser.html_parser import HTMLParser
from storeassets.utils import first_match

# Set up structured logger
logger = structlog.get_logger()


def _iter_jsonld_items(data: Any) -> Iterator[dict]:
    """Yield every object in a JSON-LD payload, flattening lists and @graph."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_jsonld_items(item)
    elif isinstance(data, dict):
        yield data
        if "@graph" in data:
            yield from _iter_jsonld_items(data["@graph"])


def _is_app_type(item: dict) -> bool:
    item_type = item.get("@type")
    types = item_type if isinstance(item_type, list) else [item_type]
    return any(t in APP_SCHEMA_TYPES for t in types if isinstance(t, str))


def _first_image(value: Any) -> Optional[str]:
    """Return the first image URL from a schema.org ``image`` value."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_jsonld_app(parser: HTMLParser) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract the app name and image from JSON-LD blocks.

    Args:
        parser: HTMLParser object

    Returns:
        Tuple[Optional[str], Optional[str]]: App name and image URL
    """
    name = None
    image = None

    for script in parser.select(JSONLD_SELECTOR):
        script_content = script.get_text(strip=True)
        if not script_content:
            continue
        try:
            data = json.loads(script_content)
        except ValueError as e:
            logger.debug("Skipping malformed JSON-LD block", error=str(e))
            continue

        for item in _iter_jsonld_items(data):
            if not _is_app_type(item):
                continue
            if name is None and isinstance(item.get("name"), str):
                name = clean_app_name(item["name"])
            if image is None:
                image = _first_image(item.get("image"))

        if name and image:
            break

    return name, image


def clean_app_name(raw: str) -> Optional[str]:
    """Strip markup and collapse whitespace in an app name."""
    text = html.unescape(bleach.clean(raw, tags=[], strip=True))
    text = re.sub(r"\s+", " ", text).strip()
    return text or None


def extract_app_name(parser: HTMLParser, selectors: List[str] = None) -> Optional[str]:
    """
    Extract the app name from the first selector with non-empty text.

    Args:
        parser: HTMLParser object
        selectors: Selectors in order of preference

    Returns:
        Optional[str]: App name if found, None otherwise
    """
    def _probe(selector: str) -> Optional[str]:
        element = parser.select_one(selector)
        if element is None:
            return None
        return clean_app_name(element.get_text())

    return first_match(selectors or APP_NAME_SELECTORS, _probe)
