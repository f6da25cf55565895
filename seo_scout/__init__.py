"""
SEOScout package initializer.
Defines package version and exposes the crawl entry points.
"""
__version__ = "0.1.0"

from seo_scout.config import CrawlerConfig, load_config
from seo_scout.engine import SiteAuditor, run_audit

__all__ = ["__version__", "CrawlerConfig", "load_config", "SiteAuditor", "run_audit"]
