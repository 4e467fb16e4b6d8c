"""HTML parsing package."""
from storeassets.parser.html_parser import HTMLElement, HTMLParser, parse_html

__all__ = ["HTMLElement", "HTMLParser", "parse_html"]
