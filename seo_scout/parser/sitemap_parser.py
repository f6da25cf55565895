# File: seo_scout/parser/sitemap_parser.py
"""seo_scout.parser.sitemap_parser: parsing of sitemap.xml / sitemap index documents."""

from __future__ import annotations

import gzip
from typing import List, Optional

from lxml import etree

from seo_scout.exceptions import SitemapParseError
from seo_scout.models import IndexEntry, SitemapNode, UrlEntry

_GZIP_MAGIC = b"\x1f\x8b"


class UnknownSitemapFormat(SitemapParseError):
    """Well-formed XML whose root is neither <urlset> nor <sitemapindex>."""


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _loc_of(element: etree._Element) -> Optional[str]:
    loc = element.find("{*}loc")
    if loc is None or not isinstance(loc.text, str):
        return None
    text = loc.text.strip()
    return text or None


def maybe_decompress(body: bytes) -> bytes:
    """Inflate ``.xml.gz`` bodies that arrive without Content-Encoding."""
    if body.startswith(_GZIP_MAGIC):
        try:
            return gzip.decompress(body)
        except (OSError, EOFError) as exc:
            raise SitemapParseError(f"corrupt gzip body: {exc}") from exc
    return body


def parse_sitemap(xml_content: bytes) -> List[SitemapNode]:
    """Parse a sitemap body into :class:`UrlEntry` / :class:`IndexEntry` nodes.

    Args:
        xml_content: raw bytes of sitemap.xml (plain or gzip).

    Returns:
        ``UrlEntry`` per ``<urlset><url><loc>`` or ``IndexEntry`` per
        ``<sitemapindex><sitemap><loc>``. Entries without a usable ``<loc>``
        are skipped.

    Raises:
        SitemapParseError: the body is not well-formed XML, or its root
        element is not a recognised sitemap shape.

    Example:
    ```python
    from seo_scout.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', 'rb') as f:
        nodes = parse_sitemap(f.read())
    ```
    """
    body = maybe_decompress(xml_content)
    parser = etree.XMLParser(ns_clean=True, resolve_entities=False, no_network=True, huge_tree=True)
    try:
        root = etree.fromstring(body, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapParseError(str(exc)) from exc
    if root is None:
        raise SitemapParseError("empty document")

    kind = _local_name(root)
    if kind == "urlset":
        return [UrlEntry(loc) for loc in map(_loc_of, root.iterfind("{*}url")) if loc]
    if kind == "sitemapindex":
        return [IndexEntry(loc) for loc in map(_loc_of, root.iterfind("{*}sitemap")) if loc]
    raise UnknownSitemapFormat(f"unrecognised root element <{kind}>")


__all__ = ["parse_sitemap", "maybe_decompress", "UnknownSitemapFormat"]
