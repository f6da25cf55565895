"""seo_scout.parser: sitemap XML and page HTML parsing."""

from seo_scout.parser.html_parser import extract_metadata
from seo_scout.parser.sitemap_parser import parse_sitemap

__all__ = ["extract_metadata", "parse_sitemap"]
