"""Append-only ZIP sink shared by every resolver of one conversion.

A ZIP stream can only have one member open for writing, so the sink keeps
track of the *current* entry and finalises it when the next one is opened or
when the archive is closed. All operations are serialised with a lock.
"""

from __future__ import annotations

import logging
import threading
import zipfile
from typing import BinaryIO, List, Optional

from convert_toolkit.core.exceptions import ArchiveEntryError

logger = logging.getLogger(__name__)

__all__ = ["ZipArchiveSink"]

# Fixed timestamp keeps archives byte-identical for identical input.
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ZipArchiveSink:
    """Sequential writer of named entries into a single ZIP stream."""

    def __init__(self, stream: BinaryIO, *, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._zip = zipfile.ZipFile(stream, mode="w", compression=compression)
        self._compression = compression
        self._lock = threading.RLock()
        self._handle = None
        self._current: Optional[str] = None
        self._token = 0
        self._closed = False
        self.entries: List[str] = []

    # ------------------------------------------------------------------
    # Entry lifecycle
    # ------------------------------------------------------------------
    def open_entry(self, name: str, *, stored: bool = False) -> int:
        """Start a new entry called *name* and return its write token.

        The previously open entry, if any, is finalised first.
        """
        entry_name = _clean_entry_name(name)
        with self._lock:
            if self._closed:
                raise ArchiveEntryError("Archive is already closed", entry_name)
            self._finish_current()

            info = zipfile.ZipInfo(entry_name, date_time=_ENTRY_DATE_TIME)
            info.compress_type = zipfile.ZIP_STORED if stored else self._compression
            info.external_attr = 0o644 << 16
            if entry_name in self.entries:
                logger.warning("Archive: duplicate entry name %s", entry_name)
            try:
                self._handle = self._zip.open(info, mode="w")
            except (OSError, ValueError, RuntimeError) as exc:
                raise ArchiveEntryError(f"Cannot open archive entry: {exc}", entry_name, exc) from exc

            self._token += 1
            self._current = entry_name
            self.entries.append(entry_name)
            logger.debug("Archive: opened entry #%d %s", len(self.entries), entry_name)
            return self._token

    def write(self, token: int, data: bytes) -> None:
        """Append *data* to the entry identified by *token*."""
        with self._lock:
            if self._closed or token != self._token or self._handle is None:
                raise ArchiveEntryError("Archive entry is no longer open for writing", self._current)
            try:
                self._handle.write(data)
            except (OSError, ValueError) as exc:
                raise ArchiveEntryError(f"Cannot write archive entry: {exc}", self._current, exc) from exc

    def close(self) -> None:
        """Finalise the current entry and the archive itself."""
        with self._lock:
            if self._closed:
                return
            self._finish_current()
            try:
                self._zip.close()
            except (OSError, ValueError) as exc:
                raise ArchiveEntryError(f"Cannot finalise archive: {exc}", cause=exc) from exc
            self._closed = True
            logger.debug("Archive: closed with %d entries", len(self.entries))

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _finish_current(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except (OSError, ValueError) as exc:
            raise ArchiveEntryError(f"Cannot finalise archive entry: {exc}", self._current, exc) from exc
        finally:
            self._handle = None
            self._current = None


def _clean_entry_name(name: str) -> str:
    entry_name = (name or "").replace("\\", "/").lstrip("/")
    parts = [part for part in entry_name.split("/") if part not in ("", ".")]
    if not parts or ".." in parts:
        raise ArchiveEntryError(f"Invalid archive entry name {name!r}", name)
    return "/".join(parts)
