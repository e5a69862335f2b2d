"""Central logging configuration for convert_toolkit.

Import and call :func:`setup_logging` once at start-up (the CLI does).
"""

from __future__ import annotations

import logging
import logging.config
import os

from convert_toolkit.config import ConfigManager

__all__ = ["setup_logging"]

_MINIMAL_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | None = None) -> None:
    """Configure logging from ``logging.yml`` (packaged defaults + user overrides).

    *level*, when given, is applied to the console handler and the
    ``convert_toolkit`` logger after the configuration is loaded.
    """
    log_dir = os.environ.get("CONVERT_LOG_DIR", "logs")
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            handlers = logging_config.get("handlers") or {}
            if "file" in handlers:
                os.makedirs(log_dir, exist_ok=True)
                handlers["file"]["filename"] = log_file
            logging.config.dictConfig(logging_config)
            logging.getLogger("convert_toolkit").debug("Logging initialised from config files")
        else:
            _setup_minimal_logging()
    except (OSError, ValueError, TypeError, AttributeError, ImportError) as exc:
        _setup_minimal_logging()
        logging.getLogger("convert_toolkit").error("Error loading logging config: %s", exc)

    if level is not None:
        _apply_level(level)
    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Console-only logging used when the configuration is unusable."""
    minimal_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"simple": {"format": _MINIMAL_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": "INFO",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "convert_toolkit": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }
    logging.config.dictConfig(minimal_config)
    logging.getLogger("convert_toolkit").warning("Logging initialised with minimal fallback")


def _apply_level(level: int) -> None:
    package_logger = logging.getLogger("convert_toolkit")
    package_logger.setLevel(min(package_logger.level or level, level))
    for handler in package_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def _apply_debug_overrides() -> None:
    """Switch the loggers listed in ``CONVERT_DEBUG_MODULES`` to DEBUG.

    Example: ``CONVERT_DEBUG_MODULES=convert_toolkit.core.images.inliner,urllib3``
    """
    targets = [m.strip() for m in os.environ.get("CONVERT_DEBUG_MODULES", "").split(",") if m.strip()]
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(_MINIMAL_FORMAT))
            logger.addHandler(handler)
            logger.propagate = False
        logger.info("Debug override active for logger '%s'", name)
