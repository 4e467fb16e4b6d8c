"""
HTML parsing abstraction layer using BeautifulSoup.

Listing pages come from sites we do not control, so the extractor only
talks to this small query interface: ``select_one`` / ``select`` with CSS
selectors, plus attribute and text access on the returned elements.
Selector errors and odd markup never raise; they just produce no match.
"""
from typing import Any, List, Optional, Union

import structlog
from bs4 import BeautifulSoup
from bs4.element import Tag

# Set up structured logger
logger = structlog.get_logger()


class HTMLElement:
    """Thin wrapper around a BeautifulSoup tag."""

    def __init__(self, element: Tag):
        """Initialize with a BeautifulSoup tag."""
        self._element = element

    @property
    def name(self) -> str:
        """Get the lowercase tag name."""
        return (self._element.name or "").lower()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get an attribute value as a string.

        Multi-valued attributes such as ``class`` are joined with spaces.
        """
        value: Any = self._element.get(key)
        if value is None:
            return default
        if isinstance(value, (list, tuple)):
            return " ".join(value)
        return str(value)

    @property
    def classes(self) -> str:
        """The class attribute as a single string."""
        return self.get("class", "") or ""

    @property
    def parent(self) -> Optional["HTMLElement"]:
        """Get the parent element."""
        parent = self._element.parent
        if isinstance(parent, Tag) and parent.name != "[document]":
            return HTMLElement(parent)
        return None

    def get_text(self, strip: bool = False) -> str:
        """Get all text content from this element and children."""
        # <script> bodies are a single string child
        text = self._element.string
        if text is None:
            text = self._element.get_text()
        text = str(text)
        return text.strip() if strip else text

    def select(self, selector: str) -> List["HTMLElement"]:
        """Select descendants using CSS selector syntax."""
        return _select(self._element, selector)

    def __str__(self) -> str:
        """Return HTML representation."""
        return str(self._element)


def _select(root: Tag, selector: str) -> List[HTMLElement]:
    try:
        return [HTMLElement(el) for el in root.select(selector)]
    except Exception as e:
        logger.debug("Error in select()", selector=selector, error=str(e))
        return []


class HTMLParser:
    """
    Main HTML parser class.

    Provides a simple, clean API for HTML parsing with CSS selectors.
    """

    def __init__(self, content: Union[str, bytes]):
        """
        Initialize the parser with HTML content.

        Args:
            content: HTML content as string or bytes
        """
        if isinstance(content, bytes):
            content = content.decode("utf-8", errors="replace")

        self.root: Optional[BeautifulSoup]
        try:
            self.root = BeautifulSoup(content or "", "html.parser")
        except Exception as e:
            logger.warning("Error parsing HTML", error=str(e))
            self.root = None

    def select(self, selector: str) -> List[HTMLElement]:
        """Select elements using CSS selector syntax."""
        if self.root is None:
            return []
        return _select(self.root, selector)

    def select_one(self, selector: str) -> Optional[HTMLElement]:
        """Select the first element matching the CSS selector."""
        results = self.select(selector)
        return results[0] if results else None


def parse_html(content: Union[str, bytes]) -> HTMLParser:
    """
    Parse HTML content and return a parser object.

    This is the main entry point for HTML parsing.

    Args:
        content: HTML content as string or bytes

    Returns:
        HTMLParser: A parser object that can be used to query the HTML
    """
    return HTMLParser(content)
