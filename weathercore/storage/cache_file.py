"""Disk cache for forecast intervals, stored as a sectioned key=value file.

Layout::

    # weathercore cache file

    [info]
    location_name=...
    lat=...
    lon=...
    msl=...
    timezone=...
    timeslices=N
    cache_date=YYYY-MM-DDThh:mm:ssZ

    [timeslice0]
    start=...
    end=...
    ...

Fields absent from an interval are not written. A cache is only used when
its header matches the current query context and it is not too old.
"""

import configparser
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from weathercore.models.common import format_timestamp, parse_timestamp
from weathercore.models.context import QueryContext
from weathercore.models.forecast import ForecastInterval, LocationAttributes
from weathercore.store.timeseries import WeatherDataset

logger = logging.getLogger(__name__)

CACHE_HEADER = "# weathercore cache file"
INFO_GROUP = "info"

# cache key -> LocationAttributes field, in write order
_STRING_FIELDS: tuple[tuple[str, str], ...] = (
    ("altitude", "altitude"),
    ("latitude", "latitude"),
    ("longitude", "longitude"),
    ("temperature_value", "temperature_value"),
    ("temperature_unit", "temperature_unit"),
    ("wind_dir_deg", "wind_dir_deg"),
    ("wind_dir_name", "wind_dir_name"),
    ("wind_speed_mps", "wind_speed_mps"),
    ("wind_speed_beaufort", "wind_speed_beaufort"),
    ("humidity_value", "humidity_value"),
    ("humidity_unit", "humidity_unit"),
    ("pressure_value", "pressure_value"),
    ("pressure_unit", "pressure_unit"),
    ("clouds_percent[0]", "clouds_low"),
    ("clouds_percent[1]", "clouds_med"),
    ("clouds_percent[2]", "clouds_high"),
    ("clouds_percent[3]", "clouds_cloudiness"),
    ("fog_percent", "fog_percent"),
    ("precipitation_value", "precipitation_value"),
    ("precipitation_unit", "precipitation_unit"),
)


def _group(index: int) -> str:
    return f"timeslice{index}"


def _group_index(name: str) -> int | None:
    suffix = name.removeprefix("timeslice")
    if suffix == name or not (suffix.isascii() and suffix.isdigit()):
        return None
    return int(suffix)


def write(dataset: WeatherDataset, ctx: QueryContext, now: datetime) -> str:
    """Serialize the dataset's intervals for ``ctx``."""
    intervals = dataset.intervals
    lines = [
        CACHE_HEADER,
        "",
        f"[{INFO_GROUP}]",
        f"location_name={ctx.location_name}",
        f"lat={ctx.latitude}",
        f"lon={ctx.longitude}",
        f"msl={ctx.elevation_meters}",
        f"timezone={ctx.utc_offset_minutes}",
        f"timeslices={len(intervals)}",
        f"cache_date={format_timestamp(now)}",
        "",
    ]

    for i, interval in enumerate(intervals):
        attrs = interval.attributes
        lines.append(f"[{_group(i)}]")
        lines.append(f"start={format_timestamp(interval.start)}")
        lines.append(f"end={format_timestamp(interval.end)}")
        if interval.point is not None:
            lines.append(f"point={format_timestamp(interval.point)}")
        for key, field_name in _STRING_FIELDS:
            value = getattr(attrs, field_name)
            if value is not None:
                lines.append(f"{key}={value}")
        if attrs.symbol_id is not None:
            lines.append(f"symbol_id={attrs.symbol_id}")
        if attrs.symbol is not None:
            lines.append(f"symbol={attrs.symbol}")
        lines.append("")

    return "\n".join(lines)


def _read_interval(section: configparser.SectionProxy) -> ForecastInterval | None:
    start = parse_timestamp(section.get("start"))
    end = parse_timestamp(section.get("end"))
    if start is None or end is None:
        return None

    values: dict[str, str | int] = {}
    for key, field_name in _STRING_FIELDS:
        if key in section:
            values[field_name] = section[key]
    if "symbol" in section:
        values["symbol"] = section["symbol"]
    symbol_id = section.get("symbol_id", "")
    if symbol_id.lstrip("-").isdigit():
        values["symbol_id"] = int(symbol_id)

    return ForecastInterval(
        start=start,
        end=end,
        attributes=LocationAttributes(**values),
        point=parse_timestamp(section.get("point")),
    )


def read(text: str, ctx: QueryContext, now: datetime) -> WeatherDataset | None:
    """Rebuild a dataset seed from cache text, or None if the cache is rejected.

    ``current`` is left unset on the seed; it is recomputed on first use.
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        parser.read_string(text)
    except configparser.Error as e:
        logger.debug("Cache file is not readable: %s", e)
        return None

    if not parser.has_section(INFO_GROUP):
        logger.debug("Cache file has no [%s] group", INFO_GROUP)
        return None
    info = parser[INFO_GROUP]

    if any(key not in info for key in ("location_name", "lat", "lon")):
        logger.debug("Required values are missing in the cache file")
        return None
    try:
        msl = info.getint("msl")
        timezone = info.getint("timezone")
        num_timeslices = info.getint("timeslices")
    except ValueError as e:
        logger.debug("Cache file header is malformed: %s", e)
        return None
    if (
        num_timeslices is None
        or msl is None
        or timezone is None
        or info["lat"] != ctx.latitude
        or info["lon"] != ctx.longitude
        or msl != ctx.elevation_meters
        or timezone != ctx.utc_offset_minutes
        or num_timeslices < 1
    ):
        logger.debug(
            "Cache file values are missing or do not match the current location"
        )
        return None

    cache_date = parse_timestamp(info.get("cache_date"))
    if cache_date is None or now - cache_date > ctx.cache_max_age:
        logger.debug("Cache file is too old and will not be used")
        return None

    # only groups that exist are visited, whatever the header claims
    groups: list[tuple[int, str]] = []
    for name in parser.sections():
        index = _group_index(name)
        if index is not None and index < num_timeslices:
            groups.append((index, name))
    groups.sort()
    if len(groups) < num_timeslices:
        logger.debug(
            "Cache file declares %d groups, %d found", num_timeslices, len(groups)
        )

    seed = WeatherDataset()
    for _, group in groups:
        interval = _read_interval(parser[group])
        if interval is None:
            logger.debug("Group %s has no valid time range, skipping", group)
            continue
        seed.upsert(interval)

    return seed


def cache_filename(directory: str | Path, ctx: QueryContext) -> Path:
    return Path(directory) / (
        f"weatherdata_{ctx.latitude}_{ctx.longitude}_{ctx.elevation_meters}"
    )


def write_cache_file(
    directory: str | Path,
    dataset: WeatherDataset,
    ctx: QueryContext,
    now: datetime,
) -> Path | None:
    """Write the cache atomically. Failures are logged, never raised."""
    path = cache_filename(directory, ctx)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".weatherdata-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(write(dataset, ctx, now))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.warning("Error writing cache file %s: %s", path, e)
        return None
    logger.debug("Cache file %s has been written", path)
    return path


def read_cache_file(
    directory: str | Path, ctx: QueryContext, now: datetime
) -> WeatherDataset | None:
    path = cache_filename(directory, ctx)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Could not read cache file %s: %s", path, e)
        return None
    logger.debug("Reading cache file %s", path)
    return read(text, ctx, now)
