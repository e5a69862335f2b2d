"""XSLT transformation driver with fan-out support.

Stylesheets are applied with :mod:`lxml`'s libxslt binding. Besides the
primary result a stylesheet can produce any number of additional named
outputs through the extension element ``document`` of the namespace
:data:`OUTPUT_NAMESPACE`::

    <xsl:stylesheet version="1.0"
        xmlns:xsl="http://www.w3.org/1999/XSL/Transform"
        xmlns:out="urn:convert-toolkit:output"
        extension-element-prefixes="out">
      <xsl:template match="/">
        <xsl:for-each select="//chapter">
          <out:document href="chapters/{@id}.xhtml" method="xml">
            <xsl:copy-of select="."/>
          </out:document>
        </xsl:for-each>
      </xsl:template>
    </xsl:stylesheet>

Attributes of ``out:document``:

``href``
    Output name. ``{@name}`` is replaced by the attribute *name* of the
    current input node, ``{seq}`` by the 1-based ordinal of the request.
``method``
    ``xml`` (default), ``html`` or ``text``.
``compression``
    ``stored`` keeps an archive entry uncompressed.
``omit-xml-declaration``
    ``yes`` suppresses the XML declaration of ``xml`` outputs.

Each request is handed to the :class:`OutputResolver` of the output target;
the driver does not know whether it ends up in an archive or is refused.
"""

from __future__ import annotations

import copy
import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union
from xml.sax.saxutils import escape

from lxml import etree as ET

from convert_toolkit.core.exceptions import (
    ConversionError,
    OutputResolutionError,
    ParameterError,
    TransformationError,
)
from convert_toolkit.core.transform.resolvers import OutputResolver, ResolvedOutput
from convert_toolkit.core.transform.targets import OutputTarget

logger = logging.getLogger(__name__)

__all__ = ["XslTransformation", "OUTPUT_NAMESPACE"]

OUTPUT_NAMESPACE = "urn:convert-toolkit:output"

_PARAM_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")
# keyword arguments of XSLT.__call__ itself
_RESERVED_PARAMS = {"profile_run"}
_HREF_PLACEHOLDER = re.compile(r"\{(seq|@[A-Za-z_][\w.\-]*)\}")
_SERIALIZATION_KEYS = ("method", "compression", "omit-xml-declaration")
_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

StylesheetSource = Union[str, Path, bytes]


class _FanOutElement(ET.XSLTExtension):
    """Extension element routing its content to a resolved output."""

    def __init__(self, resolver: OutputResolver, base: Optional[str]) -> None:
        super().__init__()
        self.resolver = resolver
        self.base = base
        self.requests = 0
        self.outputs: List[ResolvedOutput] = []
        self.error: Optional[ConversionError] = None

    def execute(self, context, self_node, input_node, output_parent):
        self.requests += 1
        try:
            href = _expand_href(self_node.get("href"), input_node, self.requests)
            properties = {key: self_node.get(key) for key in _SERIALIZATION_KEYS
                          if self_node.get(key) is not None}
            # Children first: nested requests complete before this one opens.
            results = self.process_children(context)
            payload = _serialize_results(
                results,
                properties.get("method", "xml"),
                xml_declaration=properties.get("omit-xml-declaration", "no") != "yes",
            )
            output = self.resolver.resolve(href, self.base, properties)
            output.write(payload)
            self.resolver.close(output)
        except ConversionError as exc:
            self._remember(exc)
            raise
        except Exception as exc:
            self._remember(TransformationError(f"Fan-out output failed: {exc}", cause=exc))
            raise

        self.outputs.append(output)
        logger.debug("Transform: fan-out #%d %s (%d bytes)", self.requests, href, output.bytes_written)

    def _remember(self, exc: ConversionError) -> None:
        if self.error is None:
            self.error = exc


class XslTransformation:
    """A compiled-on-demand stylesheet plus its parameters."""

    def __init__(self, stylesheet: StylesheetSource, *, name: Optional[str] = None) -> None:
        if isinstance(stylesheet, bytes):
            self.name = name or "<inline stylesheet>"
        else:
            self.name = name or str(stylesheet)
        self._stylesheet = _load_stylesheet(stylesheet, self.name)
        self.parameters: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def set_parameters(self, parameters: Mapping[str, str]) -> None:
        """Validate and store string parameters for the next run."""
        validated: Dict[str, str] = {}
        for key, value in (parameters or {}).items():
            if not isinstance(key, str) or not _PARAM_NAME.match(key) or key in _RESERVED_PARAMS:
                raise ParameterError(f"Invalid stylesheet parameter name {key!r}", source=self.name)
            if value is None:
                raise ParameterError(f"Stylesheet parameter {key!r} has no value", source=self.name)
            validated[key] = str(value)
        self.parameters = validated

    def transform(self, content: Union[str, bytes], target: OutputTarget, *,
                  base: Optional[str] = None) -> int:
        """Apply the stylesheet to *content* and write into *target*.

        Returns the number of fan-out outputs produced. Any failure raises a
        :class:`ConversionError`; *target* must then be considered garbage.
        """
        document = _parse_document(content, self.name)
        extension = _FanOutElement(target.resolver().new_instance(), base)

        try:
            xslt = ET.XSLT(
                self._stylesheet,
                extensions={(OUTPUT_NAMESPACE, "document"): extension},
                access_control=ET.XSLTAccessControl.DENY_WRITE,
            )
        except ET.XSLTError as exc:
            raise TransformationError(f"Stylesheet could not be compiled: {exc}", source=self.name,
                                      log_entries=_log_lines(exc), cause=exc) from exc
        # newer libxslt records some compile errors without failing the build
        compile_errors = xslt.error_log.filter_from_errors()
        if compile_errors:
            raise TransformationError(
                f"Stylesheet could not be compiled: {compile_errors[0].message}",
                source=self.name,
                log_entries=_log_lines(xslt),
            )

        params = {key: ET.XSLT.strparam(value) for key, value in self.parameters.items()}
        logger.info("Transform: applying %s with %d parameter(s)", self.name, len(params))
        try:
            result = xslt(document, **params)
        except Exception as exc:
            # lxml re-raises extension errors either as-is or as XSLTApplyError
            if extension.error is not None and extension.error is not exc:
                raise extension.error from exc
            if isinstance(exc, ConversionError):
                raise
            raise TransformationError(f"Stylesheet failed: {exc}", source=self.name,
                                      log_entries=_log_lines(xslt), cause=exc) from exc
        if extension.error is not None:
            raise extension.error

        target.write_primary(bytes(result))
        logger.info("Transform: done, %d fan-out output(s)", len(extension.outputs))
        return len(extension.outputs)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_stylesheet(stylesheet: StylesheetSource, name: str) -> ET._ElementTree:
    parser = ET.XMLParser(resolve_entities=False, no_network=True)
    try:
        if isinstance(stylesheet, bytes):
            return ET.ElementTree(ET.fromstring(stylesheet, parser))
        return ET.parse(str(stylesheet), parser)
    except (OSError, ET.XMLSyntaxError) as exc:
        raise TransformationError(f"Stylesheet could not be read: {exc}", source=name, cause=exc) from exc


def _parse_document(content: Union[str, bytes], name: str) -> ET._ElementTree:
    if isinstance(content, str):
        content = content.encode("utf-8")
    parser = ET.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        return ET.ElementTree(ET.fromstring(content, parser))
    except ET.XMLSyntaxError as exc:
        raise TransformationError(f"Input document is not well-formed: {exc}", source=name,
                                  cause=exc) from exc


def _expand_href(template: Optional[str], input_node, seq: int) -> str:
    if not template or not template.strip():
        raise OutputResolutionError("Fan-out element without href attribute")

    def _substitute(match: re.Match) -> str:
        token = match.group(1)
        if token == "seq":
            return str(seq)
        value = input_node.get(token[1:]) if input_node is not None else None
        if not value:
            raise OutputResolutionError(
                f"href {template!r}: current node has no {token} attribute", href=template
            )
        return value

    return _HREF_PLACEHOLDER.sub(_substitute, template.strip())


def _serialize_results(results: list, method: str, *, xml_declaration: bool = True) -> bytes:
    method = (method or "xml").lower()
    if method == "xhtml":
        method = "xml"
    if method not in ("xml", "html", "text"):
        raise TransformationError(f"Unsupported output method {method!r}")

    parts: List[str] = []
    for item in results:
        if isinstance(item, str):
            parts.append(item if method == "text" else escape(item))
        else:
            # result nodes are read-only proxies; serialise a writable copy
            parts.append(ET.tostring(copy.deepcopy(item), method=method, encoding="unicode"))
    text = "".join(parts)
    if method == "xml" and xml_declaration:
        text = _XML_DECLARATION + text
    return text.encode("utf-8")


def _log_lines(source) -> List[str]:
    error_log = getattr(source, "error_log", None)
    if error_log is None:
        return []
    return [f"{entry.line}:{entry.column}: {entry.message}" for entry in error_log]
