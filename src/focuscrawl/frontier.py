"""
Priority-ordered URL frontier.
"""
from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple

from focuscrawl.urls import url_file

logger = logging.getLogger(__name__)

# Accepted page suffixes (matched case-sensitively)
PAGE_SUFFIXES: tuple[str, ...] = ("htm", "html")


@dataclass(slots=True)
class FrontierEntry:
    """A queued URL and its accumulated relevance score."""
    url: str
    score: int
    discovered_at: int
    anchor: str = ""


# Heap items: (-score, discovered_at, url). Superseded items stay in the
# heap and are skipped on pop when they no longer match _queued.
_HeapItem = Tuple[int, int, str]


class Frontier:
    """
    URLs discovered but not yet fetched, highest score first.

    Ties go to the URL discovered earliest. Every URL ever accepted is kept
    in ``known`` (URL -> discovery counter) so it is never queued twice.
    """

    def __init__(self) -> None:
        """Create an empty frontier."""
        self.known: Dict[str, int] = {}
        self._queued: Dict[str, FrontierEntry] = {}
        self._heap: List[_HeapItem] = []
        self._counter = count()

    def __len__(self) -> int:
        return len(self._queued)

    def __contains__(self, url: object) -> bool:
        return url in self._queued

    def __iter__(self) -> Iterator[FrontierEntry]:
        """Queued entries in pop order (does not consume the frontier)."""
        return iter(sorted(self._queued.values(), key=lambda e: (-e.score, e.discovered_at)))

    def is_empty(self) -> bool:
        """True when no URL is queued."""
        return not self._queued

    def is_known(self, url: str) -> bool:
        """True if the URL was ever accepted, queued or not."""
        return url in self.known

    def score_of(self, url: str) -> Optional[int]:
        """Current score of a queued URL, or None if it is not queued."""
        entry = self._queued.get(url)
        return entry.score if entry else None

    def add_seed(self, url: str) -> bool:
        """Queue the start URL at score 0 without the page-suffix check."""
        if url in self.known:
            return False
        self._insert(url, "", 0)
        return True

    def accept(self, url: str, anchor: str, score: int) -> bool:
        """
        Queue a newly discovered URL.

        Returns False (and changes nothing) if the URL is already known or
        does not end in ``htm``/``html``.
        """
        if url in self.known:
            return False
        if not url_file(url).endswith(PAGE_SUFFIXES):
            return False
        self._insert(url, anchor, score)
        logger.debug("Found new URL %s (score %d)", url, score)
        return True

    def bump(self, url: str, score: int) -> bool:
        """
        Add ``score`` to a queued URL and move it up accordingly.

        Returns False when the URL is not queued (never seen, or already
        popped) or when ``score`` is 0.
        """
        if score < 0:
            raise ValueError(f"Score delta must be non-negative, got {score}")
        entry = self._queued.get(url)
        if entry is None or score == 0:
            return False
        entry.score += score
        heapq.heappush(self._heap, (-entry.score, entry.discovered_at, url))
        logger.debug("Bumped %s by %d to %d", url, score, entry.score)
        return True

    def pop_max(self) -> Optional[FrontierEntry]:
        """Remove and return the highest-priority entry, or None when empty."""
        while self._heap:
            neg_score, _, url = heapq.heappop(self._heap)
            entry = self._queued.get(url)
            if entry is not None and entry.score == -neg_score:
                del self._queued[url]
                self._compact()
                return entry
        return None

    def _insert(self, url: str, anchor: str, score: int) -> None:
        """Record a first discovery and queue it."""
        discovered_at = next(self._counter)
        self.known[url] = discovered_at
        entry = FrontierEntry(url=url, score=score, discovered_at=discovered_at, anchor=anchor)
        self._queued[url] = entry
        heapq.heappush(self._heap, (-score, discovered_at, url))

    def _compact(self) -> None:
        """Rebuild the heap once stale items outnumber live ones."""
        if len(self._heap) > 2 * len(self._queued) + 16:
            self._heap = [(-e.score, e.discovered_at, e.url) for e in self._queued.values()]
            heapq.heapify(self._heap)
