"""Simple reusable helper functions shared by the front-ends."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

__all__ = ["slugify", "default_filename", "save_bytes_file"]

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Return a file-system-safe slug version of *text*.

    Removes non-alphanumeric chars, converts whitespace/dashes to underscores,
    and lower-cases the result.
    """
    text = re.sub(r"[^\w\s-]", "", text).strip().lower()
    return re.sub(r"[-\s]+", "_", text)


def default_filename(source: str, extension: str) -> str:
    """Derive an output file name from the last path segment of *source*.

    >>> default_filename("https://example.org/docs/My Page.html", ".md")
    'my_page.md'
    """
    segment = urlparse(source or "").path.rstrip("/").rsplit("/", 1)[-1]
    stem = segment.rsplit(".", 1)[0] if "." in segment else segment
    return f"{slugify(stem) or 'document'}{extension}"


def save_bytes_file(path: Union[str, Path], data: bytes) -> None:
    """Write *data* to *path*, creating parent directories as needed."""
    path = Path(path)
    try:
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("I/O: wrote path=%s bytes=%d", path, len(data))
    except OSError:
        logger.error("I/O FAIL: write path=%s", path, exc_info=True)
        raise
