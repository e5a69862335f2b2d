import pytest

from convert_toolkit.core.utils import default_filename, save_bytes_file, slugify


def test_slugify():
    assert slugify("My Page - Draft!") == "my_page_draft"
    assert slugify("  spaced   out ") == "spaced_out"


@pytest.mark.parametrize("source, extension, expected", [
    ("https://example.org/docs/My Page.html", ".md", "my_page.md"),
    ("https://example.org/docs/guide/", ".epub", "guide.epub"),
    ("https://example.org", ".html", "document.html"),
    ("https://example.org/view?id=3", ".md", "view.md"),
])
def test_default_filename(source, extension, expected):
    assert default_filename(source, extension) == expected


def test_save_bytes_file_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "out.bin"
    save_bytes_file(target, b"\x00\x01")
    assert target.read_bytes() == b"\x00\x01"
