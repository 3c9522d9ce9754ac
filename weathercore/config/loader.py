"""YAML config loader, runtime get/set and derived session objects."""

import hashlib
import json
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from weathercore.config.schema import WeatherConfig
from weathercore.ingest.met_client import MetClient
from weathercore.models.context import QueryContext


def load_config(path: str | Path) -> WeatherConfig:
    """Load and validate config from a YAML file. An empty file gives defaults."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return WeatherConfig(**raw)


def save_config(config: WeatherConfig, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = json.loads(config.model_dump_json())
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def config_hash(config: WeatherConfig) -> str:
    """Compute a deterministic SHA256 hash of the config."""
    data = config.model_dump_json(indent=None)
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def query_context(config: WeatherConfig) -> QueryContext:
    loc = config.location
    return QueryContext(
        latitude=loc.latitude,
        longitude=loc.longitude,
        elevation_meters=loc.elevation_meters,
        utc_offset_minutes=loc.utc_offset_minutes,
        cache_max_age=timedelta(hours=config.cache.max_age_hours),
        location_name=loc.name,
    )


def make_client(config: WeatherConfig) -> MetClient:
    ep = config.endpoints
    return MetClient(
        forecast_base=ep.forecast_base,
        astro_base=ep.astro_base,
        geonames_base=ep.geonames_base,
        geonames_username=ep.geonames_username,
        timezone_base=ep.timezone_base,
        user_agent=ep.user_agent,
        timeout=ep.timeout_seconds,
    )


def get_config_value(config: WeatherConfig, dotted_key: str) -> Any:
    """Read a value by dotted path, e.g. ``location.latitude``."""
    value: Any = config
    for part in dotted_key.split("."):
        if not isinstance(value, BaseModel) or part not in type(value).model_fields:
            raise KeyError(f"Config key not found: {dotted_key}")
        value = getattr(value, part)
    return value


def set_config_value(config: WeatherConfig, dotted_key: str, value: Any) -> WeatherConfig:
    """Return a re-validated copy of ``config`` with one value replaced.

    A string replacing a number is converted to that number's type, so
    ``schedule.tick_seconds=30`` from the command line stores an int.
    """
    *parents, leaf = dotted_key.split(".")
    data = json.loads(config.model_dump_json())
    section: Any = data
    for part in parents:
        if not isinstance(section, dict) or part not in section:
            raise KeyError(f"Config key not found: {dotted_key}")
        section = section[part]
    if not isinstance(section, dict) or leaf not in section:
        raise KeyError(f"Config key not found: {dotted_key}")

    current = section[leaf]
    if isinstance(value, str) and type(current) in (int, float):
        value = type(current)(value)
    section[leaf] = value
    return WeatherConfig(**data)
