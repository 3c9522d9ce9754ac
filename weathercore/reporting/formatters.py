"""Output formatters for current conditions and astro data.

Values are printed exactly as the source reported them; no unit conversion.
"""

import json

from weathercore.models.common import format_timestamp
from weathercore.models.forecast import AstroSnapshot, ForecastInterval

# label, value field, unit field (or a fixed unit)
_LABELS: tuple[tuple[str, str, str | None, str], ...] = (
    ("T", "temperature_value", "temperature_unit", ""),
    ("P", "pressure_value", "pressure_unit", ""),
    ("WS", "wind_speed_mps", None, "m/s"),
    ("WB", "wind_speed_beaufort", None, "on the Beaufort scale"),
    ("WD", "wind_dir_name", None, ""),
    ("WD", "wind_dir_deg", None, "°"),
    ("H", "humidity_value", "humidity_unit", ""),
    ("CL", "clouds_low", None, "%"),
    ("CM", "clouds_med", None, "%"),
    ("CH", "clouds_high", None, "%"),
    ("C", "clouds_cloudiness", None, "%"),
    ("F", "fog_percent", None, "%"),
    ("R", "precipitation_value", "precipitation_unit", ""),
)


def _with_unit(value: str, unit: str) -> str:
    if not unit:
        return value
    if unit in ("°", "%"):
        return f"{value}{unit}"
    return f"{value} {unit}"


def format_conditions_text(
    current: ForecastInterval | None,
    astro: AstroSnapshot | None = None,
    night_time: bool = False,
) -> str:
    """Plain text block, one ``label: value`` line per reported field."""
    if current is None:
        return "No Data"

    attrs = current.attributes
    lines = [
        f"Conditions at {format_timestamp(current.point or current.start)} "
        f"(interval {format_timestamp(current.start)} - {format_timestamp(current.end)})",
    ]
    if attrs.symbol is not None:
        lines.append(f"Symbol: {attrs.symbol}{' (night)' if night_time else ''}")
    for label, value_field, unit_field, fixed_unit in _LABELS:
        value = getattr(attrs, value_field)
        if value is None:
            continue
        unit = (getattr(attrs, unit_field) or "") if unit_field else fixed_unit
        lines.append(f"{label}: {_with_unit(value, unit)}")

    if astro is not None:
        lines.append(_format_sun(astro))
        if astro.moon_phase:
            lines.append(f"Moon phase: {astro.moon_phase}")
    return "\n".join(lines)


def _format_sun(astro: AstroSnapshot) -> str:
    if astro.sun_never_rises:
        return "Sun: polar night, the sun does not rise"
    if astro.sun_never_sets:
        return "Sun: midnight sun, the sun does not set"
    return (
        f"Sunrise: {format_timestamp(astro.sunrise) or '-'} | "
        f"Sunset: {format_timestamp(astro.sunset) or '-'}"
    )


def conditions_dict(
    current: ForecastInterval | None,
    astro: AstroSnapshot | None = None,
    night_time: bool = False,
) -> dict:
    data: dict = {"current": None, "night_time": night_time, "astro": None}
    if current is not None:
        data["current"] = {
            "start": format_timestamp(current.start),
            "end": format_timestamp(current.end),
            "point": format_timestamp(current.point),
            **current.attributes.present(),
        }
    if astro is not None:
        data["astro"] = {
            "sun_never_rises": astro.sun_never_rises,
            "sun_never_sets": astro.sun_never_sets,
            "sunrise": format_timestamp(astro.sunrise),
            "sunset": format_timestamp(astro.sunset),
            "moon_never_rises": astro.moon_never_rises,
            "moon_never_sets": astro.moon_never_sets,
            "moonrise": format_timestamp(astro.moonrise),
            "moonset": format_timestamp(astro.moonset),
            "moon_phase": astro.moon_phase,
        }
    return data


def format_conditions_json(
    current: ForecastInterval | None,
    astro: AstroSnapshot | None = None,
    night_time: bool = False,
) -> str:
    """JSON block for programmatic consumption."""
    return json.dumps(conditions_dict(current, astro, night_time), indent=2)
