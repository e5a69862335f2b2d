"""Shared data structures used across the conversion pipeline.

This module is intentionally free of network / XSLT code so that the
contained objects can be reused in any context (unit-tests, CLI, web glue).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Set

__all__ = [
    "ModeConfig",
    "FetchConfig",
    "ImagePayload",
    "InlineOutcome",
]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class ModeConfig:
    """Resolved configuration of one output mode.

    Attributes
    ----------
    name
        Mode identifier (``md``, ``epub``...); ``default`` for the fallback.
    mime_type
        Media type announced for the converted document.
    xsl
        Stylesheet file name or path, resolved by the config manager.
    process_images
        When *True* images are downloaded and embedded as ``data:`` URIs.
    zip_output
        When *True* fan-out outputs are multiplexed into one ZIP archive.
    extension
        File extension used when no output file name is given.
    primary_entry
        Archive entry receiving the primary transformation result in ZIP
        mode. ``None`` drops the primary result.
    """

    name: str = "default"
    mime_type: str = "text/html"
    xsl: str = "xhtml_identity.xsl"
    process_images: bool = False
    zip_output: bool = False
    extension: str = ".html"
    primary_entry: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "ModeConfig":
        extension = str(data.get("extension", cls.extension))
        if extension and not extension.startswith("."):
            extension = f".{extension}"
        return cls(
            name=name,
            mime_type=str(data.get("mime_type", cls.mime_type)),
            xsl=str(data.get("xsl", cls.xsl)),
            process_images=_as_bool(data.get("process_images", False)),
            zip_output=_as_bool(data.get("zip_output", False)),
            extension=extension,
            primary_entry=data.get("primary_entry") or None,
        )


@dataclass(frozen=True)
class FetchConfig:
    """Network settings for source and image retrieval."""

    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    max_workers: int = 8
    batch_timeout: float = 120.0
    user_agent: str = "convert-toolkit"

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FetchConfig":
        return cls(
            connect_timeout=float(data.get("connect_timeout", cls.connect_timeout)),
            read_timeout=float(data.get("read_timeout", cls.read_timeout)),
            max_workers=max(1, int(data.get("max_workers", cls.max_workers))),
            batch_timeout=float(data.get("batch_timeout", cls.batch_timeout)),
            user_agent=str(data.get("user_agent", cls.user_agent)),
        )


@dataclass(frozen=True)
class ImagePayload:
    """Bytes of one fetched image plus its detected media type."""

    reference: str
    data: bytes
    media_type: str = "application/octet-stream"


@dataclass
class InlineOutcome:
    """Result of one inlining pass over a document."""

    content: str
    inlined: Dict[str, str] = field(default_factory=dict)
    failed: Set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.inlined)
