"""
Crawl Loop Tests

Tests for the fetch / score / re-prioritize loop using in-memory collaborators.
"""

import pytest

from focuscrawl.core import SEARCH_LIMIT, CrawlConfigError, CrawlState, crawl, parse_title
from focuscrawl.storage import PageStore

SEED = "http://example.com/index.html"


def url(name):
    return f"http://example.com/{name}"


# ==========================================
# Configuration errors
# ==========================================


def test_malformed_seed_aborts_before_fetch(make_web, make_robots):
    web, robots = make_web(), make_robots()
    with pytest.raises(CrawlConfigError):
        crawl("not a url", {"foo"}, fetcher=web, robots=robots)
    assert web.fetched == []
    assert robots.checked == []


def test_config_error_is_value_error(make_web, make_robots):
    with pytest.raises(ValueError):
        crawl("ftp://example.com/a.html", set(), fetcher=make_web(), robots=make_robots())


def test_zero_budget_rejected(make_web, make_robots):
    with pytest.raises(CrawlConfigError):
        crawl(SEED, set(), max_pages=0, fetcher=make_web(), robots=make_robots())


def test_budget_capped_at_search_limit(make_web, make_robots):
    result = crawl(SEED, set(), max_pages=1000, fetcher=make_web(), robots=make_robots())
    assert result.max_pages == SEARCH_LIMIT


# ==========================================
# Termination
# ==========================================


def test_budget_of_one_consumed_by_robots_refusal(make_web, make_robots):
    web = make_web({SEED: '<a href="a.html">A</a>'})
    robots = make_robots(blocked={SEED})
    result = crawl(SEED, {"a"}, max_pages=1, fetcher=web, robots=robots)

    assert result.state is CrawlState.BUDGET_EXHAUSTED
    assert robots.checked == [SEED]
    assert web.fetched == []
    assert len(result.pages) == 1
    assert result.pages[0].allowed is False
    assert result.stats.robots_blocked == 1


def test_budget_of_one_fetches_once(make_web, make_robots):
    web = make_web({SEED: '<a href="a.html">A</a><a href="b.html">B</a>'})
    result = crawl(SEED, {"a"}, max_pages=1, fetcher=web, robots=make_robots())

    assert result.state is CrawlState.BUDGET_EXHAUSTED
    assert web.fetched == [SEED]
    assert result.known_urls == 3


def test_frontier_exhaustion(make_web, make_robots):
    web = make_web({SEED: "<p>no links here</p>"})
    result = crawl(SEED, {"foo"}, max_pages=5, fetcher=web, robots=make_robots())

    assert result.state is CrawlState.FRONTIER_EMPTY
    assert web.fetched == [SEED]
    assert [page.url for page in result.pages] == [SEED]


def test_empty_content_skips_extraction(make_web, make_robots):
    web = make_web()
    result = crawl(SEED, {"foo"}, max_pages=5, fetcher=web, robots=make_robots())

    assert result.state is CrawlState.FRONTIER_EMPTY
    assert result.stats.empty_fetches == 1
    assert result.pages[0].content_bytes == 0
    assert result.pages[0].links_found == 0


# ==========================================
# Relevance ordering
# ==========================================


def test_most_relevant_link_fetched_first(make_web, make_robots):
    web = make_web({
        SEED: '<a href="other.html">Other</a> <a href="solar.html">Solar power</a>',
    })
    result = crawl(SEED, {"solar"}, max_pages=10, fetcher=web, robots=make_robots())

    assert web.fetched == [SEED, url("solar.html"), url("other.html")]
    assert [page.score for page in result.pages] == [0, 90, 0]
    assert result.state is CrawlState.FRONTIER_EMPTY


def test_rediscovered_link_is_bumped(make_web, make_robots):
    web = make_web({
        SEED: '<a href="a.html">alpha</a><a href="b.html">beta</a><a href="b.html">solar</a>',
    })
    result = crawl(SEED, {"solar"}, max_pages=10, fetcher=web, robots=make_robots())

    assert web.fetched == [SEED, url("b.html"), url("a.html")]
    assert result.pages[1].score == 50
    assert result.stats.links_accepted == 2
    assert result.stats.links_bumped == 1


def test_links_from_later_pages_reprioritize(make_web, make_robots):
    web = make_web({
        SEED: '<a href="a.html">solar</a><a href="b.html">wind</a><a href="c.html">rain</a>',
        url("a.html"): '<a href="c.html">solar farms</a>',
    })
    crawl(SEED, {"solar"}, max_pages=10, fetcher=web, robots=make_robots())

    # c.html gains 50 while still queued and overtakes b.html
    assert web.fetched == [SEED, url("a.html"), url("c.html"), url("b.html")]


def test_dequeued_url_never_revisited(make_web, make_robots):
    web = make_web({
        SEED: '<a href="a.html">solar</a>',
        url("a.html"): '<a href="index.html">solar home</a><a href="a.html">solar again</a>',
    })
    result = crawl(SEED, {"solar"}, max_pages=10, fetcher=web, robots=make_robots())

    assert web.fetched == [SEED, url("a.html")]
    assert result.state is CrawlState.FRONTIER_EMPTY
    assert result.known_urls == 2
    assert result.stats.links_bumped == 0


def test_robots_refusal_uses_budget(make_web, make_robots):
    web = make_web({SEED: '<a href="a.html">solar</a><a href="b.html">other</a>'})
    robots = make_robots(blocked={url("a.html")})
    result = crawl(SEED, {"solar"}, max_pages=2, fetcher=web, robots=robots)

    assert web.fetched == [SEED]
    assert [page.url for page in result.pages] == [SEED, url("a.html")]
    assert result.state is CrawlState.BUDGET_EXHAUSTED


def test_non_page_and_malformed_links_discarded(make_web, make_robots):
    web = make_web({
        SEED: (
            '<a href="mailto:me@example.com">mail</a>'
            '<a href="photo.jpg">photo</a>'
            '<a href="page.html">page</a>'
        ),
    })
    result = crawl(SEED, {"x"}, max_pages=10, fetcher=web, robots=make_robots())

    assert result.stats.links_found == 3
    assert result.stats.links_discarded == 2
    assert result.stats.links_accepted == 1
    assert web.fetched == [SEED, url("page.html")]


def test_links_resolved_against_current_page(make_web, make_robots):
    web = make_web({
        SEED: '<a href="docs/guide.html">guide</a>',
        url("docs/guide.html"): '<a href="../top.html">top</a>',
    })
    crawl(SEED, set(), max_pages=10, fetcher=web, robots=make_robots())

    assert web.fetched == [SEED, url("docs/guide.html"), url("top.html")]


def test_seed_is_normalized(make_web, make_robots):
    web = make_web()
    result = crawl("HTTP://Example.COM", set(), fetcher=web, robots=make_robots())
    assert result.start_url == "http://example.com/"
    assert web.fetched == ["http://example.com/"]


# ==========================================
# Persistence and report
# ==========================================


def test_pages_are_stored(tmp_path, make_web, make_robots):
    web = make_web({SEED: "<title>Home</title><a href='x'>none</a>"})
    result = crawl(SEED, set(), fetcher=web, robots=make_robots(), store=PageStore(tmp_path))

    stored = tmp_path / "index.html"
    assert stored.read_bytes() == web.pages[SEED]
    assert result.pages[0].stored_as == str(stored)
    assert result.pages[0].title == "Home"


def test_store_failure_does_not_stop_extraction(make_web, make_robots):
    class BrokenStore:
        def store(self, url, content):
            raise OSError("disk full")

    web = make_web({SEED: '<a href="a.html">A</a>'})
    result = crawl(SEED, set(), fetcher=web, robots=make_robots(), store=BrokenStore())

    assert result.stats.store_errors == 1
    assert result.pages[0].stored_as is None
    assert web.fetched == [SEED, url("a.html")]


def test_parse_title():
    assert parse_title("<html><head><title>  My Title </title></head></html>") == "My Title"
    assert parse_title("<p>untitled</p>") is None


def test_mixed_case_queries_keep_relevance_order(make_web, make_robots):
    web = make_web({SEED: '<a href="a.html">other</a><a href="b.html">Solar</a>'})
    result = crawl(SEED, {"Solar"}, max_pages=10, fetcher=web, robots=make_robots())

    assert web.fetched == [SEED, url("b.html"), url("a.html")]
    assert result.queries == ["solar"]
    assert result.pages[1].score == 50


def test_nul_in_link_name_does_not_stop_crawl(tmp_path, make_web, make_robots):
    bad = "http://example.com/a\x00.html"
    web = make_web({SEED: '<a href="a\x00.html">x</a>', bad: "<p>hi</p>"})
    result = crawl(SEED, set(), fetcher=web, robots=make_robots(), store=PageStore(tmp_path))

    assert web.fetched == [SEED, bad]
    assert result.state is CrawlState.FRONTIER_EMPTY
    assert (tmp_path / "a_.html").read_bytes() == b"<p>hi</p>"


def test_store_value_error_is_not_fatal(make_web, make_robots):
    class RejectingStore:
        def store(self, url, content):
            raise ValueError("embedded null byte")

    web = make_web({SEED: '<a href="a.html">A</a>'})
    result = crawl(SEED, set(), fetcher=web, robots=make_robots(), store=RejectingStore())

    assert result.stats.store_errors == 1
    assert web.fetched == [SEED, url("a.html")]


def test_page_results_carry_anchor(make_web, make_robots):
    web = make_web({SEED: '<a href="a.html">Solar farms</a>'})
    result = crawl(SEED, {"solar"}, fetcher=web, robots=make_robots())

    assert result.pages[0].anchor == ""
    assert result.pages[1].anchor == "Solar farms"


def test_import_leaves_global_warning_filters_alone():
    import warnings

    from bs4 import MarkupResemblesLocatorWarning

    assert not any(f[2] is MarkupResemblesLocatorWarning for f in warnings.filters)
