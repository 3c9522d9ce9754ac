"""XML document parsers for forecast, astronomical and lookup responses.

All functions here are pure: they take an already parsed element tree (or raw
bytes for ``parse_xml``) and return typed records. Malformed individual
entries are skipped rather than failing the whole document.
"""

import logging
from xml.etree import ElementTree as ET

from weathercore.models.common import EPOCH, parse_timestamp
from weathercore.models.forecast import (
    AstroSnapshot,
    ForecastInterval,
    LocationAttributes,
    TimezoneInfo,
)

logger = logging.getLogger(__name__)

MIN_VALID_ALTITUDE = -420.0

# element name -> ((attribute, field), ...)
_LOCATION_CHILDREN: dict[str, tuple[tuple[str, str], ...]] = {
    "temperature": (("unit", "temperature_unit"), ("value", "temperature_value")),
    "windDirection": (("deg", "wind_dir_deg"), ("name", "wind_dir_name")),
    "windSpeed": (("mps", "wind_speed_mps"), ("beaufort", "wind_speed_beaufort")),
    "humidity": (("unit", "humidity_unit"), ("value", "humidity_value")),
    "pressure": (("unit", "pressure_unit"), ("value", "pressure_value")),
    "cloudiness": (("percent", "clouds_cloudiness"),),
    "fog": (("percent", "fog_percent"),),
    "lowClouds": (("percent", "clouds_low"),),
    "mediumClouds": (("percent", "clouds_med"),),
    "highClouds": (("percent", "clouds_high"),),
    "precipitation": (("unit", "precipitation_unit"), ("value", "precipitation_value")),
}


def parse_xml(body: bytes | None) -> ET.Element | None:
    """Parse a response body into its root element, or None if unusable."""
    if not body:
        return None
    try:
        # Valid UTF-8 is parsed as such; the encoding header may lie.
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    try:
        if text is not None:
            return ET.fromstring(_strip_declaration(text))
        return ET.fromstring(body)
    except (ET.ParseError, ValueError) as e:
        logger.warning("Could not parse XML document: %s", e)
        return None


def _strip_declaration(text: str) -> str:
    text = text.lstrip("\ufeff")
    if text.lstrip().startswith("<?xml"):
        end = text.find("?>")
        if end != -1:
            return text[end + 2:]
    return text


def _is_truthy(value: str | None) -> bool:
    return value in ("true", "1")


def _children(node: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in node if child.tag == tag]


def parse_location(node: ET.Element) -> LocationAttributes:
    """Map a forecast ``location`` element onto LocationAttributes."""
    values: dict[str, str | int | None] = {
        "altitude": node.get("altitude"),
        "latitude": node.get("latitude"),
        "longitude": node.get("longitude"),
    }
    for child in node:
        if child.tag == "symbol":
            values["symbol"] = child.get("id")
            number = child.get("number")
            try:
                values["symbol_id"] = int(number) if number is not None else None
            except ValueError:
                logger.debug("Ignoring non-numeric symbol number %r", number)
            continue
        for attr, field_name in _LOCATION_CHILDREN.get(child.tag, ()):
            values[field_name] = child.get(attr)
    return LocationAttributes(**{k: v for k, v in values.items() if v is not None})


def parse_time(node: ET.Element) -> ForecastInterval | None:
    """Parse one forecast ``time`` element. Returns None if it must be skipped."""
    if (node.get("datatype") or "").lower() != "forecast":
        return None

    start = parse_timestamp(node.get("from"))
    end = parse_timestamp(node.get("to"))
    if start is None or end is None or start == EPOCH or end == EPOCH:
        logger.debug(
            "Skipping time element with bad range from=%r to=%r",
            node.get("from"), node.get("to"),
        )
        return None

    attributes = LocationAttributes()
    for location in _children(node, "location"):
        attributes = attributes.merged_with(parse_location(location))
    return ForecastInterval(start=start, end=end, attributes=attributes)


def parse_forecast(root: ET.Element | None) -> list[ForecastInterval]:
    """Extract forecast intervals from a ``weatherdata`` document.

    The result is a list of upserts to apply in order; a key repeated
    within the document overlays the earlier entry.
    """
    if root is None or root.tag != "weatherdata":
        return []

    intervals: list[ForecastInterval] = []
    for product in _children(root, "product"):
        if (product.get("class") or "").lower() != "pointdata":
            continue
        for time_node in _children(product, "time"):
            interval = parse_time(time_node)
            if interval is not None:
                intervals.append(interval)

    logger.debug("Parsed %d forecast intervals", len(intervals))
    return intervals


def _parse_body(node: ET.Element) -> dict:
    return {
        "never_rises": _is_truthy(node.get("never_rise")),
        "never_sets": _is_truthy(node.get("never_set")),
        "rise": parse_timestamp(node.get("rise")),
        "set": parse_timestamp(node.get("set")),
    }


def parse_astro(root: ET.Element | None) -> AstroSnapshot | None:
    """Extract sun and moon data from an ``astrodata`` document."""
    if root is None or root.tag != "astrodata":
        return None

    time_node = root.find("time")
    if time_node is None:
        return None
    location = time_node.find("location")
    if location is None:
        return None

    values: dict = {}
    sun = location.find("sun")
    if sun is not None:
        body = _parse_body(sun)
        values.update(
            sun_never_rises=body["never_rises"],
            sun_never_sets=body["never_sets"],
            sunrise=body["rise"],
            sunset=body["set"],
        )
    moon = location.find("moon")
    if moon is not None:
        body = _parse_body(moon)
        values.update(
            moon_never_rises=body["never_rises"],
            moon_never_sets=body["never_sets"],
            moonrise=body["rise"],
            moonset=body["set"],
            moon_phase=moon.get("phase"),
        )
    if not values:
        return None
    return AstroSnapshot(**values)


def parse_altitude(root: ET.Element | None) -> float | None:
    """Read the SRTM3 elevation from a ``geonames`` document."""
    if root is None or root.tag != "geonames":
        return None
    text = root.findtext("srtm3")
    try:
        altitude = float(text) if text is not None else None
    except ValueError:
        return None
    if altitude is None or altitude < MIN_VALID_ALTITUDE:
        return None
    return altitude


def parse_timezone(root: ET.Element | None) -> TimezoneInfo | None:
    """Read the UTC offset (in hours) from a ``timezone`` document."""
    if root is None or root.tag != "timezone":
        return None
    offset = root.findtext("offset")
    try:
        hours = float(offset) if offset is not None else None
    except ValueError:
        return None
    if hours is None:
        return None
    return TimezoneInfo(
        offset_minutes=round(hours * 60),
        suffix=root.findtext("suffix"),
        dst=root.findtext("dst"),
        localtime=root.findtext("localtime"),
        isotime=root.findtext("isotime"),
        utctime=root.findtext("utctime"),
    )
