"""Transformation stage: XSLT driver, output resolvers and output targets."""

from __future__ import annotations

from .archive import ZipArchiveSink  # noqa: F401
from .driver import OUTPUT_NAMESPACE, XslTransformation  # noqa: F401
from .resolvers import (  # noqa: F401
    DirectOutputResolver,
    OutputResolver,
    ResolvedOutput,
    ZipOutputResolver,
)
from .targets import ArchiveOutput, OutputTarget, StreamOutput  # noqa: F401

__all__: list[str] = [
    "ZipArchiveSink",
    "OUTPUT_NAMESPACE",
    "XslTransformation",
    "DirectOutputResolver",
    "OutputResolver",
    "ResolvedOutput",
    "ZipOutputResolver",
    "ArchiveOutput",
    "OutputTarget",
    "StreamOutput",
]
