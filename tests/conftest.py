"""Shared fixtures for the convert_toolkit test-suite.

Network access is never used: HTTP sessions are ``unittest.mock`` objects
serving canned responses, and image bytes are generated with Pillow.
"""

import io
import sys
from pathlib import Path
from typing import Dict, Union
from unittest.mock import MagicMock, Mock

import pytest
import requests
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from convert_toolkit.config import ConfigManager


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the user configuration directory at a temporary folder."""
    config_dir = tmp_path / "user_config"
    monkeypatch.setenv("CONVERT_TOOLKIT_CONFIG_DIR", str(config_dir))
    ConfigManager._instance = None
    yield config_dir
    ConfigManager._instance = None


def _image_bytes(fmt: str, color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture(scope="session")
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture(scope="session")
def gif_bytes() -> bytes:
    return _image_bytes("GIF", "blue")


def make_response(content: bytes = b"", status_code: int = 200) -> Mock:
    """Build a ``requests.Response`` stand-in."""
    response = Mock(spec=requests.Response)
    response.content = content
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


Route = Union[bytes, int, Exception]


def make_session(routes: Dict[str, Route]) -> MagicMock:
    """Mock session answering ``get(url)`` from *routes*.

    A route value is the body (``bytes``), an HTTP status code (``int``) or
    an exception raised by ``get``. Unknown URLs answer 404.
    """
    session = MagicMock(spec=requests.Session)

    def _get(url, *args, **kwargs):
        route = routes.get(url, 404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return make_response(b"", route)
        return make_response(route)

    session.get.side_effect = _get
    return session


@pytest.fixture
def session_factory():
    """Return :func:`make_session` so tests can declare their routes."""
    return make_session
