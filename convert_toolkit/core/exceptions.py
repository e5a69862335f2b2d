"""Conversion pipeline exception classes.

Every fatal condition of a conversion request is reported through a
:class:`ConversionError` subclass so front-ends (CLI, HTTP glue, tests) can
catch a single base type. Per-image retrieval problems are *not* errors; the
inliner logs them and leaves the reference untouched.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ConversionError",
    "RetrievalError",
    "NormalizationError",
    "TransformationError",
    "ParameterError",
    "OutputResolutionError",
    "ArchiveEntryError",
    "ConfigurationError",
    "MissingParameterError",
]


class ConversionError(Exception):
    """Base exception for all conversion-related errors.

    *source* names the document or resource being processed when the error
    occurred; *cause* keeps the underlying exception for logging.
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.source = source
        self.cause = cause

    def __str__(self) -> str:
        if self.source:
            return f"[{self.source}] {super().__str__()}"
        return super().__str__()


class RetrievalError(ConversionError):
    """Raised when the source document cannot be downloaded.

    Image downloads never raise this; they are best-effort.
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message, source, cause)
        self.status_code = status_code


class NormalizationError(ConversionError):
    """Raised when raw HTML cannot be turned into well-formed XHTML."""
    pass


class TransformationError(ConversionError):
    """Raised when the stylesheet cannot be compiled or applied."""

    def __init__(self, message: str, source: Optional[str] = None,
                 log_entries: Optional[list[str]] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message, source, cause)
        self.log_entries = log_entries or []


class ParameterError(TransformationError):
    """Raised for a malformed stylesheet parameter name or value."""
    pass


class OutputResolutionError(ConversionError):
    """Raised when a fan-out output request cannot be turned into a sink."""

    def __init__(self, message: str, href: Optional[str] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message, cause=cause)
        self.href = href


class ArchiveEntryError(ConversionError):
    """Raised when an archive entry cannot be opened or written.

    Archive integrity cannot be salvaged partially, so this is always fatal.
    """

    def __init__(self, message: str, entry_name: Optional[str] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message, cause=cause)
        self.entry_name = entry_name


class ConfigurationError(ConversionError):
    """Raised when a mode or stylesheet cannot be resolved from configuration."""
    pass


class MissingParameterError(ConversionError):
    """Raised when a request lacks one of the required parameters."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}")
