"""
URL normalization shared by the frontier and the crawl loop.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

ALLOWED_SCHEMES: frozenset[str] = frozenset(("http", "https"))


def normalize_url(url: str, base: Optional[str] = None) -> Optional[str]:
    """
    Normalize URL for deduplication and comparison.

    - Joins relative URLs against base
    - Drops fragments (#...)
    - Normalizes scheme/host case
    - Removes default ports (:80, :443)
    - Keeps querystrings (they matter for uniqueness)

    Returns None when the result is not an absolute http(s) URL.
    """
    if not url:
        return None

    try:
        joined, _ = urldefrag(urljoin(base, url) if base else url)
        parsed = urlparse(joined)
        port = parsed.port
    except ValueError:
        # Bad port numbers and malformed IPv6 hosts
        return None

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return None

    hostname = (parsed.hostname or "").lower()
    if not hostname or any(ch.isspace() for ch in hostname):
        return None

    scheme = parsed.scheme.lower()
    if (scheme == "http" and port == 80) or (scheme == "https" and port == 443):
        netloc = hostname
    elif port:
        netloc = f"{hostname}:{port}"
    else:
        netloc = hostname

    return urlunparse((
        scheme,
        netloc,
        parsed.path or "/",
        parsed.params,
        parsed.query,
        ""  # No fragment
    ))


def url_file(url: str) -> str:
    """Path plus query string, the part matched by the page-suffix filter."""
    parsed = urlparse(url)
    path = parsed.path
    if parsed.params:
        path = f"{path};{parsed.params}"
    return f"{path}?{parsed.query}" if parsed.query else path


def url_path(url: str) -> str:
    """Path component of a URL ("/" when empty)."""
    return urlparse(url).path or "/"
