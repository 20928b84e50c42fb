"""
Robots exclusion check.

The robots.txt file is treated as applying to every crawler: its text is
split on ``Disallow:`` and a URL is refused when any trimmed segment starts
with the URL's path.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from focuscrawl.urls import url_path

logger = logging.getLogger(__name__)

DISALLOW = "Disallow:"


def robots_url_for(url: str) -> Optional[str]:
    """Location of the robots.txt governing ``url``, or None if there is no usable host."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host or any(ch.isspace() or ch in "/?#@" for ch in host):
        return None
    return f"http://{host}/robots.txt"


def is_disallowed(robots_text: str, path: str) -> bool:
    """True if a ``Disallow:`` segment of ``robots_text`` starts with ``path``."""
    return any(
        segment.strip().startswith(path)
        for segment in robots_text.split(DISALLOW)
    )


class RobotsChecker:
    """
    Decides whether a URL may be fetched.

    Fails closed when no robots.txt URL can be formed for the host, and
    fails open when robots.txt cannot be retrieved (network error, 404, ...).
    The robots.txt text is cached per host for the lifetime of the checker.
    """

    def __init__(self, session: requests.Session, timeout_s: float = 15.0):
        self.session = session
        self.timeout_s = timeout_s
        # robots.txt URL -> text, None when unavailable
        self._cache: Dict[str, Optional[str]] = {}

    def is_allowed(self, url: str) -> bool:
        """True unless robots.txt for the URL's host disallows its path."""
        robots_url = robots_url_for(url)
        if robots_url is None:
            logger.debug("No valid robots.txt location for %s; refusing", url)
            return False

        if robots_url not in self._cache:
            self._cache[robots_url] = self._load(robots_url)
        robots_text = self._cache[robots_url]
        if robots_text is None:
            return True

        path = url_path(url)
        if is_disallowed(robots_text, path):
            logger.debug("Disallowed by %s: %s", robots_url, url)
            return False
        return True

    def _load(self, robots_url: str) -> Optional[str]:
        """robots.txt text, or None when it cannot be retrieved."""
        try:
            resp = self.session.get(robots_url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            logger.debug("Robots fetch error for %s: %s", robots_url, e)
            return None
        if resp.status_code != 200:
            logger.debug("No robots.txt at %s (HTTP %s)", robots_url, resp.status_code)
            return None
        return resp.text
