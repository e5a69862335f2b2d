"""Top-level package of convert_toolkit.

Front-ends (CLI, HTTP glue) should only depend on the public API exposed
here rather than importing internal modules directly.
"""

from .core.request import ConversionRequest, ConversionResult  # noqa: F401
from .core.services import ConversionService  # noqa: F401

__all__: list[str] = [
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
]
