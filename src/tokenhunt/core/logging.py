"""
Logging configuration.

We use a YAML logging config (`src/tokenhunt/config/logging.yaml`) and then apply
runtime overrides: an explicit `level` (CLI `--log-level`) wins over settings
(`app.log_level`, which `TOKENHUNT_LOG_LEVEL` feeds).
"""

from __future__ import annotations

import copy
import logging.config

from tokenhunt.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system from the packaged YAML config."""
    # Copy: the loaded mapping is cached and dictConfig consumes what it is given.
    config = copy.deepcopy(get_logging_config())
    level = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
