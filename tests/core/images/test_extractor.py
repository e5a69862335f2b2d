from convert_toolkit.core.images import extract_image_links


class TestExtractImageLinks:
    """Regex-based discovery of <img src> values."""

    def test_no_images(self):
        assert extract_image_links("<p>No pictures here</p>") == set()
        assert extract_image_links("") == set()

    def test_distinct_sources(self):
        content = (
            '<p><img src="a.png"/></p>'
            '<img alt="x" src="https://cdn.example.org/b.gif" />'
            '<img src="a.png">'
        )
        assert extract_image_links(content) == {"a.png", "https://cdn.example.org/b.gif"}

    def test_single_quotes_and_case(self):
        content = "<IMG SRC='pic.jpg'><img\n  class=\"wide\"\n  src=\"multi.png\"/>"
        assert extract_image_links(content) == {"pic.jpg", "multi.png"}

    def test_value_is_kept_verbatim(self):
        content = '<img src="show?id=1&amp;size=2"/>'
        assert extract_image_links(content) == {"show?id=1&amp;size=2"}

    def test_lookalike_attributes_ignored(self):
        content = '<img data-src="lazy.png" srcset="a.png 1x" src="real.png"/>'
        assert extract_image_links(content) == {"real.png"}

    def test_img_without_src_skipped(self):
        content = '<img alt="broken"/><img src=""/><img src="ok.png"/>'
        assert extract_image_links(content) == {"ok.png"}

    def test_other_tags_ignored(self):
        content = '<script src="app.js"></script><imgx src="no.png"/><iframe src="f.html"/>'
        assert extract_image_links(content) == set()
