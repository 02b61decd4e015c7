"""
vcnotify.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for soft settings.  The bot token is a secret and
lives in ``.env`` (``DISCORD_TOKEN``), not here.

Usage::

    from vcnotify.config import load_config

    cfg = load_config()          # $VCNOTIFY_CONFIG or ./config.yaml
    print(cfg.data_path)         # config/pc_data.json
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"
CONFIG_PATH_ENV = "VCNOTIFY_CONFIG"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class VcNotifyConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Discord
    command_prefix: str = "!"

    # Persistence
    data_path: Path = Path("config/pc_data.json")

    # Logging
    log_level: str = "INFO"

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> VcNotifyConfig:
    """Read *path* and return a :class:`VcNotifyConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$VCNOTIFY_CONFIG``, then ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``log_level`` is not a standard logging level name.
    """
    config_path = Path(path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = VcNotifyConfig()
    log_level = str(raw.get("log_level", defaults.log_level)).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log_level {log_level!r} in {config_path}; "
            f"expected one of {', '.join(VALID_LOG_LEVELS)}"
        )

    return VcNotifyConfig(
        command_prefix=str(raw.get("command_prefix", defaults.command_prefix)),
        data_path=Path(raw.get("data_path", defaults.data_path)),
        log_level=log_level,
    )
