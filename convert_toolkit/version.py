"""Application version detection.

``get_app_version()`` tries, in order: a ``version.txt`` next to the package
(written by release builds), the installed distribution metadata, and finally
``"vdev"``.
"""

from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Optional

__all__ = ["get_app_version", "DISTRIBUTION_NAME"]

DISTRIBUTION_NAME = "convert-toolkit"

_CACHED_VERSION: Optional[str] = None


def get_app_version() -> str:
    """Return the application version string (e.g. ``v1.2.3``)."""
    global _CACHED_VERSION
    if _CACHED_VERSION:
        return _CACHED_VERSION

    version_file = Path(__file__).resolve().parent.parent / "version.txt"
    try:
        text = version_file.read_text(encoding="ascii", errors="ignore").strip()
    except OSError:
        text = ""
    if not text:
        try:
            text = metadata.version(DISTRIBUTION_NAME)
        except metadata.PackageNotFoundError:
            text = ""

    if text:
        _CACHED_VERSION = text if text.startswith("v") else f"v{text}"
    else:
        _CACHED_VERSION = "vdev"
    return _CACHED_VERSION
