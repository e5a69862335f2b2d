"""Concurrent download of document images and their inlining as data URIs.

Flow for one request:

1. :meth:`ImageInliner.fetch_all` dispatches one task per distinct reference
   on a bounded thread pool and waits for all of them (join barrier, capped
   by ``batch_timeout``). Workers only *return* bytes; the calling thread is
   the single writer of the result map.
2. :func:`detect_media_type` inspects the bytes (never the URL extension).
3. :func:`rewrite_references` replaces every literal occurrence of each
   fetched reference with its ``data:`` URI in one pass.

Failed downloads are logged and leave the original reference in place.
"""

from __future__ import annotations

import base64
import html
import io
import logging
import re
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Iterable, Mapping, Optional
from urllib.parse import urljoin

import requests
from PIL import Image, UnidentifiedImageError

from convert_toolkit.core.models import FetchConfig, ImagePayload, InlineOutcome

logger = logging.getLogger(__name__)

__all__ = [
    "ImageInliner",
    "detect_media_type",
    "encode_data_uri",
    "rewrite_references",
]

DEFAULT_MEDIA_TYPE = "application/octet-stream"
_SVG_SNIFF = re.compile(rb"^(?:<\?xml[^>]*>\s*)?(?:<!--.*?-->\s*)*(?:<!DOCTYPE\s+svg[^>]*>\s*)?<svg[\s>]",
                        re.IGNORECASE | re.DOTALL)


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def detect_media_type(data: bytes) -> str:
    """Return a best-guess media type for *data* based on its content."""
    if not data:
        return DEFAULT_MEDIA_TYPE
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
        fmt = None

    if fmt:
        mime = Image.MIME.get(fmt.upper())
        if mime:
            return mime
    if _SVG_SNIFF.match(data[:2048].lstrip()):
        return "image/svg+xml"
    return DEFAULT_MEDIA_TYPE


def encode_data_uri(payload: ImagePayload) -> str:
    """Return ``data:<media type>;base64,<payload>`` for *payload*."""
    encoded = base64.b64encode(payload.data).decode("ascii")
    return f"data:{payload.media_type};base64,{encoded}"


def rewrite_references(content: str, inlined: Mapping[str, str],
                       references: Iterable[str] = ()) -> str:
    """Replace every literal occurrence of each key of *inlined* in *content*.

    Replacement is purely textual. Keys are tried longest first in a single
    pass so a reference that is a substring of another one, or of an already
    inserted data URI, is never rewritten twice. *references* that were not
    inlined take part in the match and are written back unchanged, so a
    failed link keeps its text even when an inlined key occurs inside it.
    """
    if not inlined or not content:
        return content
    keys = sorted(set(inlined) | {ref for ref in references if ref}, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda match: inlined.get(match.group(0), match.group(0)), content)


# ---------------------------------------------------------------------------
# Fetch-and-inline engine
# ---------------------------------------------------------------------------

class ImageInliner:
    """Download referenced images and embed them into the document."""

    def __init__(self, session: Optional[requests.Session] = None,
                 config: Optional[FetchConfig] = None) -> None:
        self.config = config or FetchConfig()
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def inline(self, content: str, references: Iterable[str],
               base_url: Optional[str] = None) -> InlineOutcome:
        """Fetch *references*, encode them and rewrite *content*."""
        references = set(references)
        if not references:
            return InlineOutcome(content=content)

        payloads = self.fetch_all(references, base_url)
        inlined = {ref: encode_data_uri(payload) for ref, payload in payloads.items()}
        failed = {ref for ref in references if ref not in inlined and not _is_data_uri(ref)}

        outcome = InlineOutcome(
            content=rewrite_references(content, inlined, references),
            inlined=inlined,
            failed=failed,
        )
        logger.info("Inline: %d image(s) embedded, %d left as links", outcome.count, len(failed))
        return outcome

    def fetch_all(self, references: Iterable[str],
                  base_url: Optional[str] = None) -> Dict[str, ImagePayload]:
        """Download every fetchable reference concurrently.

        Returns a mapping limited to the references that were downloaded
        successfully. Blocks until every task has settled or the batch
        deadline passes; references still pending at the deadline are
        abandoned. Their threads are not interrupted: they keep running in the
        background, possibly against a session the caller has closed
        meanwhile, and whatever they return is discarded.
        """
        fetchable = sorted({ref for ref in references if ref and not _is_data_uri(ref)})
        payloads: Dict[str, ImagePayload] = {}
        if not fetchable:
            return payloads

        workers = min(self.config.max_workers, len(fetchable))
        logger.debug("Fetch: %d image(s) on %d worker(s)", len(fetchable), workers)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="image-fetch")
        try:
            futures = {executor.submit(self._fetch_one, ref, base_url): ref for ref in fetchable}
            done, not_done = wait(futures, timeout=self.config.batch_timeout)

            for future in done:
                ref = futures[future]
                try:
                    data = future.result()
                except Exception as exc:
                    logger.error("Fetch FAIL: %s (%s)", ref, exc, exc_info=True)
                    continue
                if data:
                    payloads[ref] = ImagePayload(ref, data, detect_media_type(data))

            for future in not_done:
                logger.error("Fetch FAIL: %s (batch deadline of %ss exceeded)",
                             futures[future], self.config.batch_timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return payloads

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _fetch_one(self, reference: str, base_url: Optional[str]) -> Optional[bytes]:
        url = resolve_reference(reference, base_url)
        try:
            response = self.session.get(
                url,
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent},
            )
            response.raise_for_status()
            data = response.content
        except requests.exceptions.RequestException as exc:
            logger.warning("Fetch FAIL: %s (%s)", url, exc)
            return None

        if not data:
            logger.warning("Fetch FAIL: %s (empty body)", url)
            return None
        logger.debug("Fetch OK: %s bytes=%d", url, len(data))
        return data


def resolve_reference(reference: str, base_url: Optional[str] = None) -> str:
    """Turn a markup reference into an absolute URL for downloading."""
    url = html.unescape(reference.strip())
    if base_url:
        url = urljoin(base_url, url)
    return url


def _is_data_uri(reference: str) -> bool:
    return reference.lstrip().lower().startswith("data:")
