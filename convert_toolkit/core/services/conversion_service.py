"""High-level conversion service: source URL in, converted document out.

Entry-point for any front-end (CLI, HTTP glue, tests). One call runs the
whole pipeline for one request::

    fetch source -> normalise to XHTML -> [extract + inline images]
        -> XSLT (+ fan-out into a ZIP archive when the mode asks for it)

The result is assembled in memory and returned only when every stage
succeeded; on failure a :class:`ConversionError` propagates and nothing is
returned.
"""

from __future__ import annotations

import dataclasses
import io
import logging
from typing import Callable, Mapping, Optional

import requests

from convert_toolkit.config import ConfigManager
from convert_toolkit.core.exceptions import ConversionError
from convert_toolkit.core.images import ImageInliner, extract_image_links
from convert_toolkit.core.models import FetchConfig, ModeConfig
from convert_toolkit.core.normalizer import normalize_html
from convert_toolkit.core.request import ConversionRequest, ConversionResult
from convert_toolkit.core.retrieval import decode_source_url, fetch_source
from convert_toolkit.core.transform import ArchiveOutput, OutputTarget, StreamOutput, XslTransformation
from convert_toolkit.version import get_app_version

logger = logging.getLogger(__name__)

__all__ = ["ConversionService"]


class ConversionService:
    """Business-logic façade with no transport dependencies.

    *session_factory* creates the HTTP session used for one request (source
    and image downloads share it); tests pass a factory returning a mock.
    """

    def __init__(self, config: Optional[ConfigManager] = None,
                 session_factory: Callable[[], requests.Session] = requests.Session) -> None:
        self.config = config or ConfigManager()
        self.session_factory = session_factory

    # ---------------------------------------------------------------------
    # PUBLIC API
    # ---------------------------------------------------------------------
    def convert(self, request: ConversionRequest) -> ConversionResult:
        """Run the full pipeline for *request*.

        Raises
        ------
        MissingParameterError
            When ``source`` or ``fname`` is absent.
        ConversionError
            For any fatal retrieval, normalisation or transformation failure.
        """
        request.validate()
        mode = self.config.get_mode_config(request.mode)
        fetch = self._fetch_config()
        source = decode_source_url(request.source)
        logger.info("Convert: source=%s mode=%s", source, mode.name)

        session = self.session_factory()
        try:
            raw = fetch_source(source, request.token, session=session, config=fetch)
            return self.convert_document(
                raw,
                mode,
                request.xsl_parameters,
                filename=request.fname,
                base_url=source,
                session=session,
            )
        except ConversionError as exc:
            logger.error("Convert FAIL: %s", exc)
            raise
        finally:
            # image downloads abandoned at the batch deadline may still hold this
            # session after it is closed; whatever they return is discarded
            session.close()

    def convert_document(self, raw: bytes | str, mode: ModeConfig,
                         parameters: Optional[Mapping[str, str]] = None, *,
                         filename: Optional[str] = None,
                         base_url: Optional[str] = None,
                         session: Optional[requests.Session] = None) -> ConversionResult:
        """Convert already retrieved *raw* HTML according to *mode*.

        *base_url* resolves relative image references; *session* is used for
        image downloads (a private one is created when omitted).
        """
        content = normalize_html(raw, source=base_url)

        inlined = 0
        if mode.process_images:
            references = extract_image_links(content)
            logger.info("Convert: %d image reference(s) found", len(references))
            if references:
                inliner = ImageInliner(session=session, config=self._fetch_config())
                outcome = inliner.inline(content, references, base_url=base_url)
                content = outcome.content
                inlined = outcome.count

        stylesheet = self.config.resolve_stylesheet(mode.xsl)
        transformation = XslTransformation(stylesheet)
        transformation.set_parameters(parameters or {})

        buffer = io.BytesIO()
        target: OutputTarget
        if mode.zip_output:
            target = ArchiveOutput(buffer, primary_entry=mode.primary_entry)
        else:
            target = StreamOutput(buffer)
        transformation.transform(content, target, base=base_url)
        target.close()

        result = ConversionResult(
            content=buffer.getvalue(),
            media_type=mode.mime_type,
            filename=filename or f"document{mode.extension}",
            mode=mode.name,
            entries=target.entries,
            inlined=inlined,
        )
        logger.info("Convert: done file=%s bytes=%d entries=%d images=%d",
                    result.filename, len(result.content), len(result.entries), inlined)
        return result

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------
    def _fetch_config(self) -> FetchConfig:
        fetch = self.config.get_fetch_config()
        if "/" not in fetch.user_agent:
            fetch = dataclasses.replace(fetch, user_agent=f"{fetch.user_agent}/{get_app_version()}")
        return fetch
