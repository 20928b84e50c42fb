"""
Focused web crawler: fetches the most query-relevant known page next,
scoring every discovered link by its anchor text, URL and surrounding words.
"""
from focuscrawl.core import (
    SEARCH_LIMIT,
    CrawlConfigError,
    CrawlResult,
    CrawlState,
    CrawlStats,
    PageResult,
    crawl,
)
from focuscrawl.fetch import FetchConfig, Fetcher
from focuscrawl.frontier import Frontier, FrontierEntry
from focuscrawl.links import Link, iter_links
from focuscrawl.robots import RobotsChecker
from focuscrawl.scoring import make_queries, score
from focuscrawl.storage import PageStore

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "CrawlConfigError",
    "CrawlResult",
    "CrawlState",
    "CrawlStats",
    "PageResult",
    "SEARCH_LIMIT",
    "FetchConfig",
    "Fetcher",
    "Frontier",
    "FrontierEntry",
    "Link",
    "iter_links",
    "RobotsChecker",
    "make_queries",
    "score",
    "PageStore",
]
