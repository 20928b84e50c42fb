"""
On-disk page persistence: one file per fetched page.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"


def filename_for(url: str) -> str:
    """Final path segment of ``url`` (``index.html`` for directory URLs), NUL-free."""
    name = urlparse(url).path.rsplit("/", 1)[-1].replace("\x00", "_")
    if name in ("", ".", ".."):
        return INDEX_FILENAME
    return name


class PageStore:
    """
    Writes pages into a directory, named by their last path segment.

    Distinct URLs sharing a last segment overwrite each other.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def store(self, url: str, content: bytes) -> Path:
        """Write ``content`` under the URL's file name and return the path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename_for(url)
        path.write_bytes(content)
        logger.debug("Stored %s as %s", url, path)
        return path
