import pytest
import requests

from convert_toolkit.core.exceptions import RetrievalError
from convert_toolkit.core.models import FetchConfig
from convert_toolkit.core.retrieval import decode_source_url, fetch_source

URL = "https://example.org/page.html"


class TestDecodeSourceUrl:

    def test_encoded_url_is_decoded(self):
        assert decode_source_url("https%3A%2F%2Fexample.org%2Fpage.html%3Fa%3D1") == URL + "?a=1"

    def test_plain_url_unchanged(self):
        assert decode_source_url(" https://example.org/a%20b.html ") == "https://example.org/a%20b.html"


class TestFetchSource:

    def test_ok(self, session_factory):
        session = session_factory({URL: b"<p>hi</p>"})
        config = FetchConfig(connect_timeout=2, read_timeout=3, user_agent="ua")
        assert fetch_source(URL, session=session, config=config) == b"<p>hi</p>"
        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == (2, 3)
        assert kwargs["headers"] == {"User-Agent": "ua"}

    def test_bearer_token(self, session_factory):
        session = session_factory({URL: b"x"})
        fetch_source(URL, "abc", session=session)
        assert session.get.call_args[1]["headers"]["Authorization"] == "Bearer abc"

    @pytest.mark.parametrize("source", ["ftp://example.org/x", "not a url", "", "file:///etc/passwd"])
    def test_rejects_non_http(self, source, session_factory):
        session = session_factory({})
        with pytest.raises(RetrievalError):
            fetch_source(source, session=session)
        session.get.assert_not_called()

    def test_status_error(self, session_factory):
        with pytest.raises(RetrievalError) as exc_info:
            fetch_source(URL, session=session_factory({URL: 401}))
        assert exc_info.value.status_code == 401
        assert URL in str(exc_info.value)

    def test_network_error(self, session_factory):
        session = session_factory({URL: requests.ConnectionError("down")})
        with pytest.raises(RetrievalError) as exc_info:
            fetch_source(URL, session=session)
        assert isinstance(exc_info.value.cause, requests.ConnectionError)
