"""Command-line interface for convert_toolkit."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from convert_toolkit.config import ConfigManager
from convert_toolkit.core.exceptions import ConversionError, MissingParameterError
from convert_toolkit.core.request import USAGE, ConversionRequest
from convert_toolkit.core.retrieval import decode_source_url
from convert_toolkit.core.services import ConversionService
from convert_toolkit.core.utils import default_filename, save_bytes_file
from convert_toolkit.logging_config import setup_logging
from convert_toolkit.version import get_app_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONVERSION_ERROR = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="convert-toolkit",
        description="Convert a web HTML document with an XSLT output mode.",
        epilog=USAGE,
    )
    parser.add_argument("source", nargs="?", help="URL of the HTML document to convert")
    parser.add_argument("-o", "--output", dest="fname",
                        help="Output file name (default: derived from the source URL and mode)")
    parser.add_argument("--mode", default=None, help="Output mode (e.g. md, epub); default mode when omitted")
    parser.add_argument("--token", default=None, help="OAuth bearer token sent with the source request")
    parser.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Stylesheet parameter (repeatable)",
    )
    parser.add_argument("--list-modes", action="store_true", help="List configured output modes and exit")
    parser.add_argument("--verbose", action="store_true", help="Verbose progress logs")
    parser.add_argument("--version", action="version", version=f"convert-toolkit {get_app_version()}")
    return parser


def _parse_params(values: list[str]) -> dict[str, str] | None:
    params: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            return None
        params[name.strip()] = value
    return params


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else None)
    config = ConfigManager()

    if args.list_modes:
        for name in config.get_mode_names():
            mode = config.get_mode_config(name)
            print(f"{name}\t{mode.mime_type}\t{mode.xsl}")
        return EXIT_OK

    params = _parse_params(args.param)
    if params is None:
        print("Invalid --param value: expected NAME=VALUE", file=sys.stderr)
        return EXIT_USAGE

    fname = args.fname
    if args.source and not fname:
        fname = default_filename(decode_source_url(args.source), config.get_mode_config(args.mode).extension)

    request = ConversionRequest(
        source=args.source,
        fname=fname,
        token=args.token,
        mode=args.mode,
        xsl_parameters=params,
    )

    try:
        result = ConversionService(config).convert(request)
    except MissingParameterError as exc:
        print(f"{exc}\n{USAGE}", file=sys.stderr)
        return EXIT_USAGE
    except ConversionError as exc:
        print(f"Conversion failed: {exc}", file=sys.stderr)
        return EXIT_CONVERSION_ERROR

    output_path = Path(result.filename)
    try:
        save_bytes_file(output_path, result.content)
    except OSError as exc:
        print(f"Cannot write {output_path}: {exc}", file=sys.stderr)
        return EXIT_CONVERSION_ERROR

    summary = f"Wrote {output_path} ({len(result.content)} bytes, {result.media_type})"
    if result.entries:
        summary += f", {len(result.entries)} archive entries"
    if result.inlined:
        summary += f", {result.inlined} image(s) inlined"
    print(summary)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
