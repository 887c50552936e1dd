"""
Logging setup for the API and CLI entrypoints.

The handler/formatter layout comes from the packaged `geomatch/config/logging.yaml`.
The level comes from, in order: the `level` argument (CLI `--log-level`),
`app.log_level` in settings (`GEOMATCH_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from geomatch.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged logging config; returns the effective level name."""
    effective = (level or get_settings().app.log_level).strip().upper()
    if not isinstance(logging.getLevelName(effective), int):
        raise ValueError(f"Unknown log level '{effective}'.")

    config = copy.deepcopy(get_logging_config())
    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        handler["level"] = effective

    logging.config.dictConfig(config)
    return effective
