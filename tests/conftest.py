"""
Test fixtures: an in-memory web and robots policy for crawl-loop tests.
"""

import pytest


class FakeWeb:
    """Serves canned page bytes; unknown URLs fetch as empty content."""

    def __init__(self, pages=None):
        self.pages = {url: body.encode() if isinstance(body, str) else body for url, body in (pages or {}).items()}
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        return self.pages.get(url, b"")


class FakeRobots:
    def __init__(self, blocked=()):
        self.blocked = set(blocked)
        self.checked = []

    def is_allowed(self, url):
        self.checked.append(url)
        return url not in self.blocked


@pytest.fixture
def make_web():
    return FakeWeb


@pytest.fixture
def make_robots():
    return FakeRobots
