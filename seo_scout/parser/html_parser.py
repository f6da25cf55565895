# === FILE: seo_scout/parser/html_parser.py ===
"""HTML parsing utilities for SEOScout.

Only the ``<head>`` fields that the SEO checks look at are extracted:

* title: document ``<title>`` text.
* description / keywords / news_keywords: ``<meta name="…" content="…">``.
* Open Graph: ``<meta property="og:…" content="…">`` for site_name, title,
  description and image.

Every value is stripped of surrounding whitespace; a missing tag gives ``""``.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from seo_scout.models import Metadata

__all__: Sequence[str] = ("extract_metadata",)


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> str:
    tag = soup.find("meta", attrs={attr: value})
    if not isinstance(tag, Tag):
        return ""
    content = tag.get("content")
    if isinstance(content, list):
        content = " ".join(content)
    return (content or "").strip()


def extract_metadata(html: Union[str, bytes]) -> Metadata:
    """Parse *html* and return its :class:`~seo_scout.models.Metadata`."""
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if isinstance(title_tag, Tag) else ""

    return Metadata(
        title=title,
        description=_meta_content(soup, "name", "description"),
        keywords=_meta_content(soup, "name", "keywords"),
        news_keywords=_meta_content(soup, "name", "news_keywords"),
        og_site_name=_meta_content(soup, "property", "og:site_name"),
        og_title=_meta_content(soup, "property", "og:title"),
        og_description=_meta_content(soup, "property", "og:description"),
        og_image=_meta_content(soup, "property", "og:image"),
    )
