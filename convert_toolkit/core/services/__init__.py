"""High-level orchestration services."""

from __future__ import annotations

from .conversion_service import ConversionService  # noqa: F401

__all__: list[str] = [
    "ConversionService",
]
