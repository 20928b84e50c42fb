"""
Anchor-tag scanning.

Links are found with plain string searches rather than an HTML parser:
relevance scores are defined in terms of this exact scan, so a conformant
parser would change which links (and anchors) are seen.
"""
from __future__ import annotations

import string
from typing import Iterator, NamedTuple

# Keeps offsets aligned with the page text, unlike str.lower()
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


class Link(NamedTuple):
    """A raw link target and its anchor text, as written in the page."""
    url: str
    anchor: str


def iter_links(page: str) -> Iterator[Link]:
    """
    Yield (url, anchor) pairs for each ``<a href="...">text<`` in document order.

    Tag and attribute names are matched case-insensitively; the URL and
    anchor are sliced from the page as written. Fragments are dropped from
    the URL. Malformed tags are skipped.
    """
    lc_page = page.translate(_ASCII_LOWER)
    index = 0

    while (index := lc_page.find("<a", index)) != -1:
        end_angle = lc_page.find(">", index)
        if end_angle == -1:
            # No later tag can be closed either
            return

        href = lc_page.find("href", index)
        if href != -1 and href < end_angle:
            open_quote = lc_page.find('"', href)
            if open_quote != -1 and open_quote < end_angle:
                start = open_quote + 1
                close_quote = lc_page.find('"', start)
                if close_quote != -1 and close_quote < end_angle:
                    end = close_quote
                    hatch = lc_page.find("#", start, close_quote)
                    if hatch != -1:
                        end = hatch

                    next_tag = page.find("<", end_angle + 1)
                    if next_tag == -1:
                        next_tag = len(page)
                    yield Link(page[start:end], page[end_angle + 1:next_tag])

        index = end_angle
