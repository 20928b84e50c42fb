"""
Crawl loop and result data structures.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import AbstractSet, List, Optional

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from focuscrawl.fetch import FetchConfig, Fetcher
from focuscrawl.frontier import Frontier
from focuscrawl.links import iter_links
from focuscrawl.robots import RobotsChecker
from focuscrawl.scoring import make_queries, score, tokenize
from focuscrawl.storage import PageStore
from focuscrawl.urls import normalize_url

logger = logging.getLogger(__name__)

# Absolute max pages per run
SEARCH_LIMIT = 20


class CrawlConfigError(ValueError):
    """Invalid run configuration, detected before anything is fetched."""


class CrawlState(str, Enum):
    RUNNING = "running"
    BUDGET_EXHAUSTED = "budget_exhausted"
    FRONTIER_EMPTY = "frontier_empty"


@dataclass(slots=True)
class PageResult:
    """What happened to one URL taken off the frontier."""
    url: str
    score: int
    anchor: str = ""
    fetched_at: Optional[str] = None
    allowed: bool = True
    content_bytes: int = 0
    title: Optional[str] = None
    links_found: int = 0
    stored_as: Optional[str] = None


@dataclass(slots=True)
class CrawlStats:
    """Counters collected during the crawl for summary output."""
    pages_attempted: int = 0
    pages_fetched: int = 0
    empty_fetches: int = 0
    robots_blocked: int = 0
    store_errors: int = 0
    links_found: int = 0
    links_accepted: int = 0
    links_bumped: int = 0
    links_discarded: int = 0

    def record_fetch(self, content: bytes) -> None:
        self.pages_attempted += 1
        if content:
            self.pages_fetched += 1
        else:
            self.empty_fetches += 1


@dataclass(slots=True)
class CrawlResult:
    """Outcome of a crawl: terminal state, per-page results and counters."""
    start_url: str
    queries: List[str]
    max_pages: int
    state: CrawlState = CrawlState.RUNNING
    pages: List[PageResult] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    known_urls: int = 0


def utc_now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def parse_title(html: str) -> Optional[str]:
    """Extract the page title from HTML."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(html, "lxml")
    if soup.title and soup.title.string:
        return soup.title.string.strip() or None
    return None


def decode_page(content: bytes) -> str:
    """Decode fetched bytes as UTF-8, replacing undecodable sequences."""
    return content.decode("utf-8", errors="replace")


def absorb_links(
    frontier: Frontier,
    page_url: str,
    page: str,
    queries: AbstractSet[str],
    stats: CrawlStats,
) -> int:
    """
    Score every link on ``page`` and feed it to the frontier.

    New URLs are offered to ``accept``; URLs seen before are bumped, which
    only has an effect while they are still queued. Returns the number of
    links found on the page.
    """
    found = 0
    words = tokenize(page)
    for link in iter_links(page):
        found += 1
        logger.debug("URL String %s with anchor %s", link.url, link.anchor)

        target = normalize_url(link.url, base=page_url)
        if target is None:
            stats.links_discarded += 1
            continue

        link_score = score(link.url, link.anchor, page, queries, words=words)
        if frontier.is_known(target):
            if frontier.bump(target, link_score):
                stats.links_bumped += 1
        elif frontier.accept(target, link.anchor, link_score):
            stats.links_accepted += 1
        else:
            stats.links_discarded += 1

    stats.links_found += found
    return found


def crawl(
    start_url: str,
    queries: AbstractSet[str],
    max_pages: int = SEARCH_LIMIT,
    fetcher: Optional[Fetcher] = None,
    robots: Optional[RobotsChecker] = None,
    store: Optional[PageStore] = None,
    config: Optional[FetchConfig] = None,
) -> CrawlResult:
    """
    Crawl from a seed URL, always fetching the most relevant known page next.

    Args:
        start_url: The URL to start crawling from.
        queries: Query terms links are scored against (case-insensitive).
        max_pages: Page budget; capped at SEARCH_LIMIT. Robots-refused
                   URLs use up budget too.
        fetcher: Page fetcher (defaults to an HTTP Fetcher built from config).
        robots: Robots checker (defaults to one sharing the fetcher's session).
        store: Where fetched pages are written; None skips persistence.
        config: Transport settings for the default fetcher and robots checker.

    Returns:
        CrawlResult with the terminal state and one PageResult per URL taken
        off the frontier.

    Raises:
        CrawlConfigError: the seed URL is malformed or max_pages < 1.
    """
    seed = normalize_url(start_url)
    if not seed:
        raise CrawlConfigError(f"Invalid start URL: {start_url}")
    if max_pages < 1:
        raise CrawlConfigError(f"Page budget must be at least 1, got {max_pages}")
    max_pages = min(max_pages, SEARCH_LIMIT)
    queries = make_queries(queries)

    config = config or FetchConfig()
    fetcher = fetcher or Fetcher(config)
    if robots is None:
        robots = RobotsChecker(fetcher.session, timeout_s=config.timeout_s)

    frontier = Frontier()
    frontier.add_seed(seed)
    result = CrawlResult(start_url=seed, queries=sorted(queries), max_pages=max_pages)
    stats = result.stats

    logger.info("Starting search: initial URL %s", seed)
    logger.info("Maximum number of pages: %d", max_pages)

    iterations = 0
    while result.state is CrawlState.RUNNING:
        entry = frontier.pop_max()
        if entry is None:
            result.state = CrawlState.FRONTIER_EMPTY
            break

        iterations += 1
        url = entry.url
        page_result = PageResult(
            url=url,
            score=entry.score,
            anchor=entry.anchor,
            fetched_at=utc_now_iso(),
        )
        result.pages.append(page_result)
        logger.info("[%d/%d] %s (score %d)", iterations, max_pages, url, entry.score)

        if not robots.is_allowed(url):
            page_result.allowed = False
            stats.robots_blocked += 1
        else:
            content = fetcher.fetch(url)
            stats.record_fetch(content)
            if content:
                _process_page(frontier, url, content, queries, store, page_result, stats)

        if iterations >= max_pages:
            result.state = CrawlState.BUDGET_EXHAUSTED
        elif frontier.is_empty():
            result.state = CrawlState.FRONTIER_EMPTY

    result.known_urls = len(frontier.known)
    logger.info("Search complete (%s); %d URLs known", result.state.value, result.known_urls)
    return result


def _process_page(
    frontier: Frontier,
    url: str,
    content: bytes,
    queries: AbstractSet[str],
    store: Optional[PageStore],
    page_result: PageResult,
    stats: CrawlStats,
) -> None:
    page_result.content_bytes = len(content)

    if store is not None:
        try:
            page_result.stored_as = str(store.store(url, content))
        except (OSError, ValueError) as e:
            stats.store_errors += 1
            logger.warning("Couldn't store %s: %s", url, e)

    page = decode_page(content)
    page_result.title = parse_title(page)
    page_result.links_found = absorb_links(frontier, url, page, queries, stats)
