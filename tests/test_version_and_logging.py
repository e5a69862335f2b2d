import logging

from convert_toolkit import version
from convert_toolkit.logging_config import setup_logging


def test_version_is_prefixed(monkeypatch):
    monkeypatch.setattr(version, "_CACHED_VERSION", None)
    value = version.get_app_version()
    assert value.startswith("v")
    assert version.get_app_version() is value


def test_setup_logging_uses_log_dir(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("CONVERT_LOG_DIR", str(log_dir))
    monkeypatch.setenv("CONVERT_DEBUG_MODULES", "convert_toolkit.core.images.inliner")

    setup_logging()
    logging.getLogger("convert_toolkit.core.retrieval").info("hello file")
    for handler in logging.getLogger("convert_toolkit").handlers:
        handler.flush()

    assert (log_dir / "app.log").is_file()
    assert "hello file" in (log_dir / "app.log").read_text(encoding="utf-8")
    assert logging.getLogger("convert_toolkit.core.images.inliner").level == logging.DEBUG
