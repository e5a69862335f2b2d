"""Output resolvers: turning fan-out requests into writable sinks.

A stylesheet may ask for additional named outputs while it runs. The
transformation driver forwards each request to an :class:`OutputResolver`
supplied by the caller and stays agnostic of where the bytes end up.

Two implementations are provided:

* :class:`DirectOutputResolver` – single-document modes. Every fan-out
  request is refused with :class:`OutputResolutionError`, which aborts the
  conversion.
* :class:`ZipOutputResolver` – archive modes. Every request becomes a new
  entry of one shared :class:`ZipArchiveSink`.
"""

from __future__ import annotations

import functools
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional

from convert_toolkit.core.exceptions import OutputResolutionError
from convert_toolkit.core.transform.archive import ZipArchiveSink

logger = logging.getLogger(__name__)

__all__ = [
    "ResolvedOutput",
    "OutputResolver",
    "DirectOutputResolver",
    "ZipOutputResolver",
]


@dataclass
class ResolvedOutput:
    """Writable sink bound to one fan-out output.

    *system_id* is a synthetic identifier used for diagnostics only; it is
    unrelated to the entry name (*href*).
    """

    href: str
    writer: Callable[[bytes], None] = field(repr=False)
    system_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    bytes_written: int = 0

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.writer(data)
        self.bytes_written += len(data)


class OutputResolver(ABC):
    """Capability handed to the transformation driver for fan-out outputs."""

    @abstractmethod
    def resolve(self, href: str, base: Optional[str],
                properties: Optional[Mapping[str, str]] = None) -> ResolvedOutput:
        """Return a sink for the sub-document *href* requested from *base*."""

    def close(self, output: ResolvedOutput) -> None:
        """Called once the driver finished writing *output*. No-op by default."""

    @abstractmethod
    def new_instance(self) -> "OutputResolver":
        """Return a fresh resolver writing to the same destination."""


class DirectOutputResolver(OutputResolver):
    """Resolver for single-document output: fan-out is an error."""

    def resolve(self, href: str, base: Optional[str],
                properties: Optional[Mapping[str, str]] = None) -> ResolvedOutput:
        logger.error("Transform: fan-out output %r refused in single-document mode", href)
        raise OutputResolutionError(
            f"Stylesheet requested additional output {href!r} but the selected mode "
            f"writes a single document (enable zip_output for multi-file modes)",
            href=href,
        )

    def new_instance(self) -> "DirectOutputResolver":
        return DirectOutputResolver()


class ZipOutputResolver(OutputResolver):
    """Route every fan-out request to a new entry of a shared ZIP sink."""

    def __init__(self, sink: ZipArchiveSink) -> None:
        self.sink = sink

    def resolve(self, href: str, base: Optional[str],
                properties: Optional[Mapping[str, str]] = None) -> ResolvedOutput:
        stored = (properties or {}).get("compression", "").lower() == "stored"
        token = self.sink.open_entry(href, stored=stored)
        output = ResolvedOutput(href=href, writer=functools.partial(self.sink.write, token))
        logger.debug("Archive: resolved %s (base=%s) as %s", href, base, output.system_id)
        return output

    def close(self, output: ResolvedOutput) -> None:
        # Entries are finalised when the next one opens or the sink closes.
        return None

    def new_instance(self) -> "ZipOutputResolver":
        return ZipOutputResolver(self.sink)
