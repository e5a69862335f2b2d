"""Output targets: where the primary result and fan-out outputs go.

:class:`StreamOutput` writes one document to a byte stream.
:class:`ArchiveOutput` wraps the stream in a ZIP sink and hands out a
:class:`ZipOutputResolver` so every fan-out output becomes an entry.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, List, Optional

from convert_toolkit.core.transform.archive import ZipArchiveSink
from convert_toolkit.core.transform.resolvers import (
    DirectOutputResolver,
    OutputResolver,
    ZipOutputResolver,
)

logger = logging.getLogger(__name__)

__all__ = ["OutputTarget", "StreamOutput", "ArchiveOutput"]


class OutputTarget:
    """Common interface of the two output targets."""

    def resolver(self) -> OutputResolver:
        raise NotImplementedError

    def write_primary(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Finalise the target after a successful transformation."""

    @property
    def entries(self) -> List[str]:
        return []


class StreamOutput(OutputTarget):
    """Single document written straight to *stream*."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def resolver(self) -> OutputResolver:
        return DirectOutputResolver()

    def write_primary(self, data: bytes) -> None:
        self.stream.write(data)


class ArchiveOutput(OutputTarget):
    """ZIP archive written to *stream*; fan-out outputs become entries.

    The primary transformation result is stored under *primary_entry* when
    one is configured and the result is not blank; otherwise it is dropped.
    """

    def __init__(self, stream: BinaryIO, primary_entry: Optional[str] = None) -> None:
        self.sink = ZipArchiveSink(stream)
        self.primary_entry = primary_entry

    def resolver(self) -> OutputResolver:
        return ZipOutputResolver(self.sink)

    def write_primary(self, data: bytes) -> None:
        if not data or not data.strip():
            return
        if not self.primary_entry:
            logger.debug("Archive: primary result dropped (%d bytes, no primary_entry)", len(data))
            return
        token = self.sink.open_entry(self.primary_entry)
        self.sink.write(token, data)

    def close(self) -> None:
        self.sink.close()

    @property
    def entries(self) -> List[str]:
        return list(self.sink.entries)
