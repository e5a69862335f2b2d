"""Download of the source HTML document."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from convert_toolkit.core.exceptions import RetrievalError
from convert_toolkit.core.models import FetchConfig

logger = logging.getLogger(__name__)

__all__ = ["fetch_source", "decode_source_url"]


def decode_source_url(source: str) -> str:
    """Return *source* URL-decoded once if it arrived percent-encoded.

    Query-string front-ends pass the source URL encoded; an already plain
    URL is returned unchanged.
    """
    source = (source or "").strip()
    if "://" not in source and "%3A" in source.upper():
        source = unquote(source)
    return source


def fetch_source(source: str, token: Optional[str] = None, *,
                 session: Optional[requests.Session] = None,
                 config: Optional[FetchConfig] = None) -> bytes:
    """Return the raw bytes of the document at *source*.

    *token*, when given, is sent as an OAuth bearer credential.

    Raises
    ------
    RetrievalError
        For invalid URLs, network failures and non-2xx responses.
    """
    config = config or FetchConfig()
    url = decode_source_url(source)
    if urlparse(url).scheme not in ("http", "https"):
        raise RetrievalError("Source must be an http(s) URL", source=url)

    headers = {"User-Agent": config.user_agent}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    http = session or requests
    logger.info("Fetch: source document %s", url)
    try:
        response = http.get(url, headers=headers, timeout=config.timeout)
    except requests.exceptions.Timeout as exc:
        raise RetrievalError("Request timeout while fetching source", source=url, cause=exc) from exc
    except requests.exceptions.RequestException as exc:
        raise RetrievalError(f"Request failed: {exc}", source=url, cause=exc) from exc

    if response.status_code != 200:
        raise RetrievalError(f"Failed to fetch source: HTTP {response.status_code}", source=url,
                             status_code=response.status_code)
    logger.debug("Fetch OK: %s bytes=%d", url, len(response.content))
    return response.content
