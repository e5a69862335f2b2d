"""Request / response boundary objects.

Front-ends (HTTP glue, CLI) translate their input into a
:class:`ConversionRequest` and serve a :class:`ConversionResult`. Parameter
names follow the historical query-string interface::

    source=<URL>  fname=<file name>  token=<OAuth token>  mode=<md|epub|...>
    xslParam_<name>=<value>   (stylesheet parameter <name>)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from convert_toolkit.core.exceptions import MissingParameterError

__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "XSL_PARAM_PREFIX",
    "USAGE",
]

XSL_PARAM_PREFIX = "xslParam_"
REQUIRED_PARAMETERS = ("source", "fname")

USAGE = (
    "Required Parameters: source=[Source URL], fname=[Output Filename]\n"
    "Optional Parameters: token=[OAuth token] (provide if required by Source URL), "
    "mode=[md, epub, ...], xslParam_<XSLT Parameter Name>"
)


def _first(value: Any) -> Optional[str]:
    """Return the first value of a possibly multi-valued parameter."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    value = str(value)
    return value if value.strip() else None


@dataclass
class ConversionRequest:
    """Everything the pipeline needs to know about one conversion."""

    source: Optional[str] = None
    fname: Optional[str] = None
    token: Optional[str] = None
    mode: Optional[str] = None
    xsl_parameters: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "ConversionRequest":
        """Build a request from query-string style parameters.

        Values may be plain strings or lists (as produced by
        :func:`urllib.parse.parse_qs`); only the first value is used.
        """
        xsl_parameters: Dict[str, str] = {}
        for key, value in params.items():
            if key.startswith(XSL_PARAM_PREFIX) and len(key) > len(XSL_PARAM_PREFIX):
                first = _first(value)
                xsl_parameters[key[len(XSL_PARAM_PREFIX):]] = first if first is not None else ""
        return cls(
            source=_first(params.get("source")),
            fname=_first(params.get("fname")),
            token=_first(params.get("token")),
            mode=_first(params.get("mode")),
            xsl_parameters=xsl_parameters,
        )

    def missing_required(self) -> List[str]:
        return [name for name in REQUIRED_PARAMETERS if not getattr(self, name)]

    def validate(self) -> None:
        missing = self.missing_required()
        if missing:
            raise MissingParameterError(missing)


@dataclass
class ConversionResult:
    """Completed output of a successful conversion."""

    content: bytes
    media_type: str
    filename: str
    mode: str = "default"
    entries: List[str] = field(default_factory=list)
    inlined: int = 0

    def headers(self) -> Dict[str, str]:
        """Response headers for serving the result as a download."""
        safe_name = self.filename.replace('"', "").replace("\r", "").replace("\n", "")
        return {
            "Content-Type": f"{self.media_type}; charset=utf-8",
            "Content-Disposition": f'attachment; filename="{safe_name}"',
        }

    @property
    def is_archive(self) -> bool:
        return bool(self.entries)
