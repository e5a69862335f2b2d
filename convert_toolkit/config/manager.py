"""Configuration loading and access helpers.

This module centralises all declarative settings (output modes, network
limits, logging). It loads YAML files packaged with *convert_toolkit* and
merges them with user overrides located in the user configuration directory.

On Windows: ``%LOCALAPPDATA%\\ConvertToolkit\\config\\*.yml``
On Unix: ``~/.convert_toolkit/*.yml``

``CONVERT_TOOLKIT_CONFIG_DIR`` overrides the directory on every platform.
Stylesheets named by a mode are looked up in ``<user dir>/templates`` before
the packaged ``templates`` folder.
"""

from __future__ import annotations

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from convert_toolkit.core.exceptions import ConfigurationError
from convert_toolkit.core.models import FetchConfig, ModeConfig

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager", "TEMPLATES_DIR"]

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_MODE = "default"


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("CONVERT_TOOLKIT_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "ConvertToolkit" / "config"
        return Path.home() / "AppData" / "Local" / "ConvertToolkit" / "config"
    return Path.home() / ".convert_toolkit"


def _read_packaged(filename: str) -> str:
    return pkg_resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")


def _ensure_user_configs_exist(user_config_dir: Path, default_filenames: Dict[str, str]) -> None:
    """Copy default config files to user directory if they don't exist."""
    try:
        user_config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Could not create user config directory %s: %s", user_config_dir, e)
        return

    for key, filename in default_filenames.items():
        user_config_path = user_config_dir / filename
        if user_config_path.exists():
            continue
        try:
            user_config_path.write_text(_read_packaged(filename), encoding='utf-8')
            logger.info("Created user config: %s", user_config_path)
        except (FileNotFoundError, OSError) as e:
            logger.warning("Could not copy default config %s: %s", filename, e)


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "modes": "modes.yml",
        "fetch": "fetch.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self.user_config_dir = _get_user_config_dir()
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    def get_fetch_config(self) -> FetchConfig:
        return FetchConfig.from_dict(self._data.get("fetch", {}))

    def get_mode_names(self) -> list[str]:
        return sorted((self._data.get("modes", {}).get("modes") or {}).keys())

    def get_mode_config(self, mode: Optional[str]) -> ModeConfig:
        """Return the configuration of *mode*, or the default one.

        An unknown or empty mode falls back to ``default`` (logged), which
        mirrors the historical ``config_<mode>.xml`` → ``config.xml`` lookup.
        """
        modes_cfg = self._data.get("modes", {})
        default = modes_cfg.get(DEFAULT_MODE) or {}
        named = modes_cfg.get("modes") or {}

        if mode and mode in named:
            merged = dict(default)
            merged.update(named[mode] or {})
            return ModeConfig.from_dict(mode, merged)
        if mode:
            logger.warning("Unknown mode %r, using default configuration", mode)
        return ModeConfig.from_dict(DEFAULT_MODE, default)

    def resolve_stylesheet(self, name: str) -> Path:
        """Locate the stylesheet *name* (absolute path, user or packaged template)."""
        candidate = Path(name).expanduser()
        if candidate.is_absolute():
            if candidate.is_file():
                return candidate
            raise ConfigurationError(f"Stylesheet not found: {candidate}")

        for directory in (self.user_config_dir / "templates", TEMPLATES_DIR):
            path = directory / name
            if path.is_file():
                logger.debug("Stylesheet %s resolved to %s", name, path)
                return path
        raise ConfigurationError(f"Stylesheet not found in templates: {name}")

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        _ensure_user_configs_exist(self.user_config_dir, self._DEFAULT_FILENAMES)

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged_data = yaml.safe_load(_read_packaged(filename)) or {}
                merged_cfg.update(packaged_data)
                status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                status = "invalid"

            # 2. load user overrides
            user_path = self.user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    _deep_update(merged_cfg, user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))


def _deep_update(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
