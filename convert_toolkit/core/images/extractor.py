"""Best-effort discovery of image references in normalised markup.

The scan is regex based: it looks for ``<img ...>`` tag spans and, inside
each span, for a ``src`` attribute. It is not a parser; image elements without
a usable ``src`` are skipped silently.
"""

from __future__ import annotations

import re
from typing import Set

__all__ = ["extract_image_links"]

_IMG_TAG = re.compile(r"<img\b(.*?)>", re.DOTALL | re.IGNORECASE)
# ``src`` must not be the tail of another attribute name (data-src, srcset...)
_SRC_ATTR = re.compile(r"""(?<![\w:-])src\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)


def extract_image_links(content: str) -> Set[str]:
    """Return the set of distinct ``src`` values of ``<img>`` elements.

    Values are returned exactly as they appear in *content* (entities are not
    decoded) so that they can later be replaced textually.
    """
    links: Set[str] = set()
    if not content:
        return links

    for img_match in _IMG_TAG.finditer(content):
        src_match = _SRC_ATTR.search(img_match.group(1))
        if src_match is None:
            continue
        value = src_match.group(1) if src_match.group(1) is not None else src_match.group(2)
        if value and value.strip():
            links.add(value)
    return links
