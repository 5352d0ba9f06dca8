#!/usr/bin/env python3
"""Configuration loader that reads from config.jsonc / config.json"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any


class ConfigurationError(Exception):
    """Raised when there's a configuration issue that prevents safe operation."""
    pass


DEFAULT_CONFIG: dict[str, Any] = {
    "rates": {
        "enabled": True,
        "currency_url": "https://api.frankfurter.app/latest?from=USD",
        "crypto_url": "https://api.coingecko.com/api/v3/simple/price?ids={coin_id}&vs_currencies=usd",
        "refresh_interval_s": 60,
        "timeout_s": 5,
        "fetch_workers": 4,
    },
    "css": {"em_size": 16.0, "rem_size": 16.0, "ppi": 96.0},
    "document": {"poll_interval_s": 2.0, "settle_timeout_s": 10.0},
    "logging": {"level": "WARNING", "file": False},
}

_COMMENT_PATTERN = re.compile(r"^\s*//.*$", re.MULTILINE)


class ConfigLoader:
    """Load configuration from config.jsonc, falling back to built-in defaults"""

    def __init__(self, config_path: str | Path | None = None) -> None:
        if config_path is None:
            config_path = self._find_config_file()

        self.config_file = str(config_path) if config_path else None
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_path is not None:
            self._merge(self._config, self._read(Path(config_path)))

        self.project_dir = str(Path(config_path).parent) if config_path else str(Path.cwd())
        self._validate()

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        """Read a JSONC file, stripping whole-line // comments"""
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

        content = _COMMENT_PATTERN.sub("", content)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Error decoding JSON from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")
        return data

    @classmethod
    def _merge(cls, base: dict[str, Any], override: dict[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value

    def _find_config_file(self) -> Path | None:
        """Find config file in multiple locations"""
        # Method 1: explicit environment override
        env_path = os.environ.get("LINECALC_CONFIG")
        if env_path:
            return Path(env_path)

        # Method 2: relative to source code (development mode)
        current = Path(__file__).parent.parent.parent.parent  # core -> linecalc -> src -> project root
        for filename in ["config.jsonc", "config.json"]:
            config_path = current / filename
            if config_path.exists():
                return config_path

        # Method 3: current working directory
        for filename in ["config.jsonc", "config.json"]:
            config_path = Path.cwd() / filename
            if config_path.exists():
                return config_path

        # Method 4: built-in defaults
        return None

    def _validate(self) -> None:
        for key in ("em_size", "rem_size", "ppi"):
            value = self.get(f"css.{key}")
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"css.{key} must be a positive number, got {value!r}")

        for key in ("refresh_interval_s", "timeout_s"):
            value = self.get(f"rates.{key}")
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"rates.{key} must be a positive number, got {value!r}")

        level = str(self.get("logging.level", "WARNING")).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"Unknown logging level: {level}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a value using dot notation (e.g., 'rates.timeout_s')"""
        value: Any = self._config

        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        return self._config[key]

    def set(self, key_path: str, value: Any) -> None:
        """Set a value using dot notation (e.g., 'rates.enabled')"""
        keys = key_path.split(".")
        target = self._config

        for key in keys[:-1]:
            if key not in target:
                target[key] = {}
            target = target[key]

        target[keys[-1]] = value

    @property
    def rates_enabled(self) -> bool:
        return bool(self.get("rates.enabled", True))

    @property
    def css_bases(self) -> dict[str, float]:
        return {key: float(self.get(f"css.{key}")) for key in ("em_size", "rem_size", "ppi")}

    @property
    def poll_interval(self) -> float:
        return float(self.get("document.poll_interval_s", 2.0))

    @property
    def settle_timeout(self) -> float:
        return float(self.get("document.settle_timeout_s", 10.0))

    @property
    def config(self) -> dict[str, Any]:
        return self._config

    def save(self, path: str | Path | None = None) -> None:
        """Validate, then save the current configuration as plain JSON"""
        self._validate()
        target = path or self.config_file
        if target is None:
            raise ConfigurationError("No config file path to save to")
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2)


_config_loader: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Get the global config loader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(config_path: str | Path | None = None) -> ConfigLoader:
    """Load configuration from a config file (alias for creating ConfigLoader)."""
    return ConfigLoader(config_path)


# ========================= CENTRALIZED LOGGING SETUP =========================


def setup_logging(
    module_name: str,
    log_level: str | None = None,
    include_console: bool | None = None,
    include_file: bool | None = None,
) -> logging.LoggerAdapter:
    """
    Setup standardized logging for linecalc modules.

    Args:
        module_name: Name of the module (usually __name__)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        include_console: Whether to log to console
        include_file: Whether to log to file

    Returns:
        Configured structured logger
    """
    from .logging import get_logger as get_structured_logger

    return get_structured_logger(
        name=module_name,
        log_level=log_level,
        include_console=include_console,
        include_file=include_file,
    )
