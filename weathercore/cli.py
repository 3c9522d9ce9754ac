"""CLI entry point for the weather data daemon."""

import argparse
import logging
from pathlib import Path

from pydantic import ValidationError

from weathercore.config.loader import (
    get_config_value,
    load_config,
    make_client,
    save_config,
    set_config_value,
)
from weathercore.config.schema import WeatherConfig
from weathercore.daemon import WeatherDaemon, build_scheduler, daemon_status, stop_daemon
from weathercore.reporting.formatters import format_conditions_json, format_conditions_text

DEFAULT_CONFIG = "weather.yaml"

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weathercore",
        description="Forecast and astronomical data fetcher with disk cache",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Run the polling daemon in the foreground")
    sub.add_parser("stop", help="Stop a running daemon")
    sub.add_parser("status", help="Show daemon status")

    current_p = sub.add_parser("current", help="Fetch once and print current conditions")
    current_p.add_argument("--json", action="store_true", help="Print JSON")
    current_p.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for responses"
    )

    lookup_p = sub.add_parser("lookup", help="Look up elevation and UTC offset")
    lookup_p.add_argument("--lat", type=float, required=True)
    lookup_p.add_argument("--lon", type=float, required=True)
    lookup_p.add_argument(
        "--write", action="store_true", help="Store the results in the config file"
    )

    config_p = sub.add_parser("config", help="Inspect or change the config file")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print the effective config as JSON")
    set_p = config_sub.add_parser("set", help="Set a config value")
    set_p.add_argument("keyvalue", help="dotted key and value, e.g. schedule.tick_seconds=60")
    set_p.add_argument(
        "--write", action="store_true", help="Save the change to the config file"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "stop":
        return stop_daemon()
    if args.command == "status":
        return daemon_status()

    try:
        config = _load(args.config)
    except ValidationError as e:
        print(f"Invalid config {args.config}:\n{e}")
        return 1

    if args.command == "run":
        return _cmd_run(config)
    elif args.command == "current":
        return _cmd_current(config, args)
    elif args.command == "lookup":
        return _cmd_lookup(config, args)
    elif args.command == "config":
        return _cmd_config(config, args)
    else:
        parser.print_help()
        return 1


def _load(path: str) -> WeatherConfig:
    if not Path(path).exists():
        logger.info("Config %s not found, using defaults", path)
        return WeatherConfig()
    return load_config(path)


def _cmd_run(config: WeatherConfig) -> int:
    if not config.location.latitude or not config.location.longitude:
        print("Error: location.latitude and location.longitude must be set")
        return 1
    WeatherDaemon(config).start()
    return 0


def _cmd_current(config: WeatherConfig, args) -> int:
    if not config.location.latitude or not config.location.longitude:
        print("Error: location.latitude and location.longitude must be set")
        return 1

    scheduler = build_scheduler(config)
    try:
        scheduler.load_cache()
        scheduler.tick()
        if not scheduler.wait(timeout=args.timeout):
            print("Warning: timed out waiting for responses")
        result = scheduler.collect()
        for error in result.errors:
            logger.warning("%s", error)

        dataset = scheduler.dataset
        night_time = scheduler.session.night_time
        if args.json:
            print(format_conditions_json(dataset.current, dataset.astro, night_time))
        else:
            print(format_conditions_text(dataset.current, dataset.astro, night_time))
        return 0 if dataset.current is not None else 1
    finally:
        scheduler.close()


def _cmd_lookup(config: WeatherConfig, args) -> int:
    client = make_client(config)
    elevation = client.lookup_elevation(args.lat, args.lon)
    tz = client.lookup_timezone(args.lat, args.lon)

    print(f"Elevation: {'unknown' if elevation is None else f'{elevation:.0f} m'}")
    print(f"UTC offset: {'unknown' if tz is None else f'{tz.offset_minutes} min'}")

    if args.write:
        updated = set_config_value(config, "location.latitude", f"{args.lat:.6f}")
        updated = set_config_value(updated, "location.longitude", f"{args.lon:.6f}")
        if elevation is not None:
            updated = set_config_value(updated, "location.elevation_meters", round(elevation))
        if tz is not None:
            updated = set_config_value(updated, "location.utc_offset_minutes", tz.offset_minutes)
        save_config(updated, args.config)
        print(f"Saved location to {args.config}")
    return 0 if elevation is not None or tz is not None else 1


def _cmd_config(config: WeatherConfig, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    if args.config_command != "set":
        print("Usage: weathercore config {show | set key=value [--write]}")
        return 1

    key, sep, value = args.keyvalue.partition("=")
    key = key.strip()
    if not sep or not key:
        print(f"Expected key=value, got {args.keyvalue!r}")
        return 1
    try:
        updated = set_config_value(config, key, value.strip())
    except (KeyError, ValueError, ValidationError) as e:
        print(f"Cannot set {key}: {e}")
        return 1

    print(f"{key} = {get_config_value(updated, key)}")
    if args.write:
        save_config(updated, args.config)
        print(f"Saved to {args.config}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
