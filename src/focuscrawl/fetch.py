"""
HTTP page fetching with a byte cap.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

# Max size of a downloaded page, in bytes
MAX_PAGE_BYTES = 20000
DEFAULT_USER_AGENT = "FocusCrawl/1.0"
DEFAULT_TIMEOUT_S = 15.0
CHUNK_SIZE = 4096


@dataclass(slots=True)
class FetchConfig:
    """Transport settings, handed to the fetcher instead of living in process globals."""
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    max_bytes: int = MAX_PAGE_BYTES
    proxies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def with_proxy(cls, proxy: Optional[str], **kwargs) -> "FetchConfig":
        """Build a config routing both http and https through one proxy URL."""
        proxies = {"http": proxy, "https": proxy} if proxy else {}
        return cls(proxies=proxies, **kwargs)


def build_session(config: FetchConfig) -> requests.Session:
    """Create an HTTP session carrying the configured identity and proxies."""
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    if config.proxies:
        session.proxies.update(config.proxies)
        # Ignore HTTP_PROXY and friends so the explicit config wins
        session.trust_env = False
    return session


class Fetcher:
    """
    Downloads page bytes, truncated at ``config.max_bytes``.

    Any failure (network error, HTTP error status, non-text content) is
    reported as empty content.
    """

    def __init__(self, config: Optional[FetchConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or FetchConfig()
        self.session = session or build_session(self.config)

    def fetch(self, url: str) -> bytes:
        """Page bytes up to the configured cap, or b"" on any failure."""
        logger.debug("Downloading %s", url)
        try:
            with self.session.get(
                url,
                timeout=self.config.timeout_s,
                allow_redirects=True,
                stream=True,
            ) as resp:
                if resp.status_code >= 400:
                    logger.debug("HTTP %s for %s", resp.status_code, url)
                    return b""

                content_type = (resp.headers.get("content-type") or "").lower()
                if content_type and "text" not in content_type:
                    logger.debug("Skipped non-text content (%s) at %s", content_type, url)
                    return b""

                return self._read_capped(resp)
        except requests.RequestException as e:
            logger.debug("Couldn't open %s: %s", url, e)
            return b""

    def _read_capped(self, resp: requests.Response) -> bytes:
        """Read the streamed body into a buffer, stopping at max_bytes."""
        buffer = bytearray()
        limit = self.config.max_bytes
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            buffer.extend(chunk[:limit - len(buffer)])
            if len(buffer) >= limit:
                break
        return bytes(buffer)
