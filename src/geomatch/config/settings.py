# src/geomatch/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/geomatch/config/defaults.yaml`, then optionally overridden by:
- a packaged environment profile selected by `GEOMATCH_ENV` (e.g. `local` -> `local.yaml`)
- an external YAML file via `GEOMATCH_CONFIG_PATH` (replaces the packaged defaults)
- environment variables (e.g., `GEOMATCH_EVENTS_CSV_PATH`, `GEOMATCH_METRIC`)
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field

from geomatch.core.env import load_dotenv_if_present

MetricName = Literal["haversine", "euclidean"]


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `geomatch.config`."""
    text = resources.files("geomatch.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _package_yaml_exists(filename: str) -> bool:
    return resources.files("geomatch.config").joinpath(filename).is_file()


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
            continue
        merged[key] = value
    return merged


class AppSettings(BaseModel):
    name: str = "GeoMatch"
    log_level: str = "INFO"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)


class EventsSettings(BaseModel):
    csv_path: str = "data/events.csv"


class MatchingSettings(BaseModel):
    metric: MetricName = "haversine"


class Settings(BaseModel):
    env: str | None = None
    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    events: EventsSettings = Field(default_factory=EventsSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Only the variables listed here are honored.
    """
    data = dict(data)

    log_level = os.getenv("GEOMATCH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    # CSV_FILE_PATH is the name older deployments use.
    csv_path = os.getenv("GEOMATCH_EVENTS_CSV_PATH") or os.getenv("CSV_FILE_PATH")
    if csv_path:
        data.setdefault("events", {})["csv_path"] = csv_path

    metric = os.getenv("GEOMATCH_METRIC")
    if metric:
        data.setdefault("matching", {})["metric"] = metric.strip().lower()

    host = os.getenv("GEOMATCH_HOST")
    if host:
        data.setdefault("server", {})["host"] = host

    port = os.getenv("GEOMATCH_PORT")
    if port:
        data.setdefault("server", {})["port"] = port

    return data


def load_settings(env: str | None = None) -> Settings:
    """Load and validate settings for an environment profile (uncached)."""
    load_dotenv_if_present()
    config_path = os.getenv("GEOMATCH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")

    env = env if env is not None else (os.getenv("GEOMATCH_ENV") or None)
    if env:
        profile = f"{env}.yaml"
        if not _package_yaml_exists(profile):
            raise ValueError(f"Unknown environment profile '{env}' (no packaged {profile}).")
        raw = _deep_merge(raw, _read_package_yaml(profile))
        raw["env"] = env

    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    return load_settings()


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached; callers must not mutate it)."""
    return _read_package_yaml("logging.yaml")
