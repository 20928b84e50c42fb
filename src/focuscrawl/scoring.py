"""
Link relevance scoring.

A candidate link earns points per query term, at the single highest tier
the term reaches:

1. Anchor text contains the term (50)
2. Link URL contains the term (40, may stack with the anchor tier)
3. Term appears within five words of the link in the page text (4)
4. Term appears anywhere in the page text (1)

Scores are integers used only to order the frontier.
"""
from __future__ import annotations

import re
from typing import AbstractSet, Iterable, List, Optional

ANCHOR_SCORE = 50
URL_SCORE = 40
PROXIMITY_SCORE = 4
PAGE_SCORE = 1

# Words on either side of the link reference
PROXIMITY_WINDOW = 5

_SEPARATORS = str.maketrans({ch: " " for ch in '/=",()'})
_WHITESPACE_RE = re.compile(r"\s+")


def make_queries(terms: Iterable[str] | str) -> frozenset[str]:
    """Build the run's query set: lower-cased, whitespace-split, no empties."""
    if isinstance(terms, str):
        terms = [terms]
    return frozenset(
        word.lower()
        for term in terms
        for word in term.split()
        if word
    )


def _is_word(token: str) -> bool:
    return all(ch.isalnum() or ch == "." for ch in token)


def tokenize(page: str) -> List[str]:
    """
    Split page text into lower-case words.

    Separators ``/ = " , ( )`` become spaces; tokens containing anything
    other than letters, digits and dots are dropped, as is ``href``.
    """
    text = _WHITESPACE_RE.sub(" ", page.lower().translate(_SEPARATORS)).strip()
    if not text:
        return []
    return [tok for tok in text.split(" ") if tok != "href" and _is_word(tok)]


def score(
    url: str,
    anchor: str,
    page: str,
    queries: AbstractSet[str],
    words: Optional[List[str]] = None,
) -> int:
    """
    Score a link found on ``page`` against the query terms.

    Args:
        url: The link target as written in the page.
        anchor: The link's anchor text.
        page: Full text of the page holding the link.
        queries: Query terms, matched case-insensitively.
        words: ``tokenize(page)``, when the caller already has it.

    Returns:
        Non-negative relevance score.
    """
    queries = frozenset(q.lower() for q in queries if q)
    if not queries:
        return 0

    total = 0
    counted: set[str] = set()
    anchor_lc = anchor.lower()
    url_lc = url.lower()

    for query in queries:
        if query in anchor_lc:
            total += ANCHOR_SCORE
            counted.add(query)
        if query in url_lc:
            total += URL_SCORE
            counted.add(query)

    remaining = set(queries) - counted
    if not remaining:
        return total

    if words is None:
        words = tokenize(page)

    near: set[str] = set()
    try:
        i = words.index(url_lc)
    except ValueError:
        i = -1
    if i != -1:
        window = words[max(0, i - PROXIMITY_WINDOW):min(i + PROXIMITY_WINDOW, len(words) - 1) + 1]
        near = remaining.intersection(window)
        total += PROXIMITY_SCORE * len(near)

    total += PAGE_SCORE * len((remaining - near).intersection(words))
    return total
