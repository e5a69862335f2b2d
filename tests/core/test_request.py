import pytest

from convert_toolkit.core.exceptions import MissingParameterError
from convert_toolkit.core.request import USAGE, ConversionRequest, ConversionResult


class TestConversionRequest:

    def test_from_mapping(self):
        request = ConversionRequest.from_mapping({
            "source": "https://example.org/a.html",
            "fname": "a.md",
            "token": "t0k",
            "mode": "md",
            "xslParam_title": "Hello",
            "xslParam_lang": "fr",
            "xslParam_": "ignored",
            "unrelated": "x",
        })
        assert request.source == "https://example.org/a.html"
        assert request.fname == "a.md"
        assert request.token == "t0k"
        assert request.mode == "md"
        assert request.xsl_parameters == {"title": "Hello", "lang": "fr"}
        request.validate()

    def test_query_string_lists(self):
        request = ConversionRequest.from_mapping({
            "source": ["https://example.org/a.html", "https://other"],
            "fname": ["a.html"],
            "mode": [],
            "xslParam_empty": [""],
        })
        assert request.source == "https://example.org/a.html"
        assert request.mode is None
        assert request.xsl_parameters == {"empty": ""}

    def test_missing_required(self):
        request = ConversionRequest.from_mapping({"fname": "  ", "token": "x"})
        assert request.missing_required() == ["source", "fname"]
        with pytest.raises(MissingParameterError) as exc_info:
            request.validate()
        assert str(exc_info.value) == "Missing required parameters: source, fname"

    def test_usage_lists_parameters(self):
        for name in ("source", "fname", "token", "mode", "xslParam_"):
            assert name in USAGE


class TestConversionResult:

    def test_headers(self):
        result = ConversionResult(b"x", "application/epub+zip", 'my "book".epub', entries=["mimetype"])
        assert result.headers() == {
            "Content-Type": "application/epub+zip; charset=utf-8",
            "Content-Disposition": 'attachment; filename="my book.epub"',
        }
        assert result.is_archive
