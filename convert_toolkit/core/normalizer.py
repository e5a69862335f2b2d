"""HTML → well-formed XHTML normalisation.

The lenient :mod:`lxml.html` parser repairs the markup; the repaired tree is
then moved under an ``<html>`` root declaring XHTML as *default* namespace and
serialised with the XML method. Downstream stages (image extraction, XSLT)
therefore receive well-formed text with unprefixed tag names.
"""

from __future__ import annotations

import logging
import re

from lxml import etree as ET
from lxml import html as lxml_html

from convert_toolkit.core.exceptions import NormalizationError

logger = logging.getLogger(__name__)

__all__ = ["normalize_html", "XHTML_NAMESPACE"]

XHTML_NAMESPACE = "http://www.w3.org/1999/xhtml"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
_XML_NAME = re.compile(r"^[^\W\d][\w.\-]*$")


def normalize_html(raw: bytes | str, *, source: str | None = None) -> str:
    """Return *raw* HTML as an XHTML document string.

    Raises
    ------
    NormalizationError
        If the input is empty or cannot be parsed at all.
    """
    if not raw or not raw.strip():
        raise NormalizationError("Document is empty", source=source)

    try:
        document = lxml_html.document_fromstring(raw)
    except (ET.ParserError, ValueError) as exc:
        raise NormalizationError(f"HTML could not be parsed: {exc}", source=source, cause=exc) from exc

    root = _to_xhtml(document)
    xhtml = ET.tostring(root, method="xml", encoding="unicode")
    logger.debug("Normalize: %d chars of XHTML produced", len(xhtml))
    return xhtml


def _to_xhtml(document) -> ET._Element:
    root = ET.Element(f"{{{XHTML_NAMESPACE}}}html", nsmap={None: XHTML_NAMESPACE})
    for key, value in _clean_attributes(document.attrib.items()):
        root.set(key, value)
    root.text = document.text
    for child in list(document):
        root.append(child)

    # Children now sit below the default namespace declaration, so the
    # renamed tags serialise without a prefix.
    for element in root.iter():
        tag = element.tag
        if not isinstance(tag, str):
            continue
        if not tag.startswith("{"):
            # prefixed HTML tags such as <o:p> keep their local name
            element.tag = f"{{{XHTML_NAMESPACE}}}{tag.rsplit(':', 1)[-1]}"
        if element is not root and element.attrib:
            attributes = _clean_attributes(element.attrib.items())
            element.attrib.clear()
            for key, value in attributes:
                element.set(key, value)
    return root


def _clean_attributes(items) -> list[tuple[str, str]]:
    """Map HTML attribute names onto names that are legal in XML.

    ``xml:lang`` and friends move into the XML namespace, other prefixes
    (``v:shapes``) are stripped unless the local name is already taken, and
    names XML cannot express at all (``@click``, ``:href``) are dropped.
    """
    items = list(items)
    taken = {key for key, _ in items if ":" not in key}
    cleaned: list[tuple[str, str]] = []
    for key, value in items:
        if key.startswith("{"):
            cleaned.append((key, value))
            continue
        if key == "xmlns" or key.startswith("xmlns:"):
            continue
        prefix, colon, local = key.rpartition(":")
        if prefix == "xml" and _XML_NAME.match(local):
            cleaned.append((f"{{{XML_NAMESPACE}}}{local}", value))
            continue
        if (colon and (not prefix or local in taken)) or not _XML_NAME.match(local):
            logger.debug("Normalize: dropped attribute %r", key)
            continue
        taken.add(local)
        cleaned.append((local, value))
    return cleaned
