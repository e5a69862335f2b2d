"""Image discovery and inlining stages of the conversion pipeline."""

from __future__ import annotations

from .extractor import extract_image_links  # noqa: F401
from .inliner import ImageInliner, detect_media_type, encode_data_uri, rewrite_references  # noqa: F401

__all__: list[str] = [
    "extract_image_links",
    "ImageInliner",
    "detect_media_type",
    "encode_data_uri",
    "rewrite_references",
]
