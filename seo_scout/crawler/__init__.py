"""seo_scout.crawler: sitemap expansion, page fetching and batch scheduling."""

from seo_scout.crawler.fetcher import FetchWorker, classify_issues
from seo_scout.crawler.scheduler import AdaptiveDelay, BatchScheduler
from seo_scout.crawler.sitemap import SitemapExpander

__all__ = ["FetchWorker", "classify_issues", "AdaptiveDelay", "BatchScheduler", "SitemapExpander"]
