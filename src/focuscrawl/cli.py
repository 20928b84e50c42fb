"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from focuscrawl.core import SEARCH_LIMIT, CrawlConfigError, CrawlResult, crawl
from focuscrawl.fetch import DEFAULT_TIMEOUT_S, DEFAULT_USER_AGENT, FetchConfig, Fetcher
from focuscrawl.robots import RobotsChecker
from focuscrawl.scoring import make_queries
from focuscrawl.storage import PageStore

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def print_summary(result: CrawlResult) -> None:
    """Print crawl summary to stderr."""
    stats = result.stats
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Stopped because:        {result.state.value}\n")
    sys.stderr.write(f"Pages taken:            {len(result.pages)}/{result.max_pages}\n")
    sys.stderr.write(f"Pages downloaded:       {stats.pages_fetched}\n")
    sys.stderr.write(f"Empty downloads:        {stats.empty_fetches}\n")
    sys.stderr.write(f"Blocked by robots.txt:  {stats.robots_blocked}\n")
    sys.stderr.write(f"Links found:            {stats.links_found}\n")
    sys.stderr.write(f"Known URLs:             {result.known_urls}\n\n")

    if stats.store_errors:
        sys.stderr.write(f"Pages not saved:        {stats.store_errors}\n\n")

    for page in result.pages:
        marker = "⊘" if not page.allowed else ("→" if page.content_bytes else "✗")
        sys.stderr.write(f"  {marker} [{page.score}] {page.url}\n")
    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the crawler CLI."""
    parser = argparse.ArgumentParser(
        prog="focuscrawl",
        description="Crawl from a start URL, always following the links most relevant to the query.",
        allow_abbrev=False,
    )
    parser.add_argument("-u", dest="start_url", required=True, help="Start URL (e.g. http://example.com/index.html)")
    parser.add_argument("-q", dest="queries", nargs="+", default=[], help="Query terms (space separated)")
    parser.add_argument(
        "-m", dest="max_pages", type=int, default=SEARCH_LIMIT,
        help=f"Maximum pages to download, at most {SEARCH_LIMIT} (default: {SEARCH_LIMIT})",
    )
    parser.add_argument("-docs", dest="docs", default="docs", help="Directory for downloaded pages (default: docs)")
    parser.add_argument("-t", dest="trace", action="store_true", help="Print trace output and a summary")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--proxy", help="HTTP(S) proxy URL, e.g. http://webcache:8080")
    parser.add_argument("--out", help="Write a JSON crawl report to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    return parser


def configure_logging(trace: bool) -> None:
    """Send log records to stderr, at DEBUG level when tracing."""
    logging.basicConfig(
        level=logging.DEBUG if trace else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    # Keep urllib3 connection chatter out of the trace
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.max_pages < 1:
        parser.error("-m must be at least 1")

    configure_logging(args.trace)

    config = FetchConfig.with_proxy(
        args.proxy,
        timeout_s=args.timeout,
        user_agent=args.user_agent,
    )
    fetcher = Fetcher(config)
    robots = RobotsChecker(fetcher.session, timeout_s=config.timeout_s)

    try:
        result = crawl(
            start_url=args.start_url,
            queries=make_queries(args.queries),
            max_pages=args.max_pages,
            fetcher=fetcher,
            robots=robots,
            store=PageStore(args.docs),
            config=config,
        )
    except CrawlConfigError as e:
        parser.error(str(e))
    finally:
        fetcher.session.close()

    if args.trace:
        print_summary(result)

    if args.out:
        payload = asdict(result)
        json_text = json.dumps(payload, ensure_ascii=False, indent=2 if args.pretty else None)
        if args.out == "-":
            print(json_text)
        else:
            output_path = Path(args.out)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json_text, encoding="utf-8")
            if args.trace:
                sys.stderr.write(f"Results written to: {output_path}\n")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
