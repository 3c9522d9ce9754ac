"""Builders for timestamps, intervals and forecast documents used across tests."""

from datetime import datetime

from weathercore.models.common import parse_timestamp
from weathercore.models.forecast import ForecastInterval, LocationAttributes


def ts(value: str) -> datetime:
    """Shorthand for a UTC timestamp in ``YYYY-MM-DDThh:mm:ssZ`` form."""
    parsed = parse_timestamp(value)
    assert parsed is not None, value
    return parsed


def interval(start: str, end: str, **attrs) -> ForecastInterval:
    return ForecastInterval(
        start=ts(start), end=ts(end), attributes=LocationAttributes(**attrs)
    )


def forecast_xml(*times: tuple[str, str, str]) -> bytes:
    """Build a minimal weatherdata document from (from, to, temperature) rows."""
    rows = "".join(
        f'<time datatype="forecast" from="{start}" to="{end}">'
        f'<location altitude="94" latitude="59.9100" longitude="10.7500">'
        f'<temperature id="TTT" unit="celsius" value="{temp}"/>'
        f"</location></time>"
        for start, end, temp in times
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<weatherdata><product class="pointData">{rows}</product></weatherdata>'
    ).encode()
