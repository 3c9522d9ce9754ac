"""Polling daemon: ticks the update scheduler on a fixed interval.

Usage:
    weathercore run --config weather.yaml
    weathercore stop
    weathercore status
"""

import json
import logging
import os
import signal
import sys
import time
from datetime import timedelta
from pathlib import Path

from weathercore.config.loader import config_hash, make_client, query_context
from weathercore.config.schema import WeatherConfig
from weathercore.ingest.dispatcher import RequestDispatcher
from weathercore.models.common import utc_now_iso
from weathercore.models.reporting import SchedulerState, UpdateEvent
from weathercore.reporting.formatters import conditions_dict
from weathercore.scheduler import ScheduleSettings, UpdateScheduler

logger = logging.getLogger(__name__)

PID_DIR = Path("data")
PID_FILE = PID_DIR / "weathercore.pid"
STATE_FILE = PID_DIR / "weathercore_state.json"
LOG_DIR = Path("logs")
LOG_FILE_NAME = "weathercore.log"


def build_scheduler(config: WeatherConfig, on_update=None) -> UpdateScheduler:
    """Wire a scheduler, dispatcher and client from configuration."""
    settings = ScheduleSettings(
        data_max_age_minutes=config.schedule.data_max_age_minutes,
        conditions_interval_minutes=config.schedule.conditions_interval_minutes,
        retention=timedelta(hours=config.schedule.retention_hours),
    )
    return UpdateScheduler(
        query_context(config),
        RequestDispatcher(make_client(config)),
        cache_dir=config.cache.path,
        settings=settings,
        on_update=on_update,
    )


class WeatherDaemon:
    """Runs the scheduler tick loop with signal handling and state reporting."""

    def __init__(self, config: WeatherConfig, scheduler: UpdateScheduler | None = None):
        self.config = config
        self.interval = config.schedule.tick_seconds
        self.scheduler = scheduler or build_scheduler(config, self._on_update)
        self._running = False
        self._total_ticks = 0
        self._total_failures = 0
        self._total_updates = 0
        self._last_state = SchedulerState.IDLE
        self._last_event: UpdateEvent | None = None
        self._started_at: str | None = None

    def start(self) -> None:
        """Start the daemon loop."""
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        file_handler = self._setup_log_file()
        self._running = True
        self._started_at = utc_now_iso()

        ctx = self.scheduler.context
        logger.info(
            "Weather daemon up: %s (%s, %s, %d m) every %ds, pid %d",
            ctx.location_name or "unnamed location", ctx.latitude, ctx.longitude,
            ctx.elevation_meters, self.interval, os.getpid(),
        )
        print(f"Polling weather for {ctx.location_name or 'unnamed location'} every {self.interval}s")
        print(f"   pid {os.getpid()}, log {LOG_DIR / LOG_FILE_NAME}, stop with: weathercore stop")

        try:
            self.scheduler.load_cache()
            self._loop()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")
        finally:
            self._cleanup()
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()

    def _loop(self) -> None:
        while self._running:
            tick_start = time.monotonic()
            self._run_one_tick()
            self._save_state()

            # short sleeps keep SIGTERM handling responsive
            next_tick = tick_start + self.interval
            while self._running and time.monotonic() < next_tick:
                time.sleep(min(1.0, max(0.0, next_tick - time.monotonic())))

    def _run_one_tick(self) -> bool:
        """Execute a single scheduler tick. Returns True on success."""
        self._total_ticks += 1
        try:
            result = self.scheduler.tick()
        except Exception:
            self._total_failures += 1
            logger.exception("Tick #%d crashed", self._total_ticks)
            return False

        self._last_state = result.state
        if result.state != SchedulerState.IDLE:
            logger.info(
                "Tick #%d: %s (astro=%s forecast=%s conditions=%s)",
                self._total_ticks, result.state,
                result.astro_requested, result.forecast_requested,
                result.conditions_updated,
            )
        for error in result.errors:
            logger.warning("Tick #%d: %s", self._total_ticks, error)
        return True

    def _on_update(self, event: UpdateEvent) -> None:
        self._total_updates += 1
        self._last_event = event

    def _setup_log_file(self) -> logging.Handler:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / LOG_FILE_NAME)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        return file_handler

    def _setup_signals(self) -> None:
        """Handle SIGTERM and SIGINT for graceful shutdown."""
        def _request_stop(signum: int, frame: object) -> None:
            logger.info("%s received, finishing current tick", signal.Signals(signum).name)
            self._running = False

        for signum in (signal.SIGTERM, signal.SIGINT):
            signal.signal(signum, _request_stop)

    def _check_not_already_running(self) -> None:
        """Exit if another daemon owns the PID file; clear it if stale."""
        pid = _read_pid()
        if pid is None:
            PID_FILE.unlink(missing_ok=True)
            return
        alive = _process_alive(pid)
        if alive is False:
            logger.info("Removing stale PID file for pid %d", pid)
            PID_FILE.unlink(missing_ok=True)
            return
        if alive is None:
            print(f"A daemon may be running as pid {pid} (cannot signal it)")
        else:
            print(f"Weather daemon already running (pid {pid}), use: weathercore stop")
        sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(f"{os.getpid()}\n")

    def _save_state(self) -> None:
        """Persist daemon stats and the latest conditions for status reporting."""
        dataset = self.scheduler.dataset
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "interval": self.interval,
            "config_hash": config_hash(self.config),
            "location": self.scheduler.context.location_name,
            "total_ticks": self._total_ticks,
            "total_failures": self._total_failures,
            "total_updates": self._total_updates,
            "last_state": str(self._last_state),
            "intervals": len(dataset),
            "conditions": conditions_dict(
                dataset.current, dataset.astro, self.scheduler.session.night_time
            ),
            "last_update": utc_now_iso(),
        }
        PID_DIR.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        """Release the scheduler and remove the PID file on exit."""
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        self.scheduler.close()
        logger.info(
            "Daemon stopped: %d ticks (%d failed), %d updates",
            self._total_ticks, self._total_failures, self._total_updates,
        )
        print(f"Daemon stopped: {self._total_ticks} ticks ({self._total_failures} failed)")


def _read_pid() -> int | None:
    if not PID_FILE.exists():
        return None
    try:
        return int(PID_FILE.read_text().strip())
    except ValueError:
        return None


def _process_alive(pid: int) -> bool | None:
    """True if ``pid`` exists, False if not, None if we may not signal it."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return None
    return True


def stop_daemon(grace_seconds: int = 30) -> int:
    """Ask a running daemon to exit with SIGTERM, then SIGKILL after a grace period."""
    if not PID_FILE.exists():
        print("No weather daemon running (no PID file)")
        return 1
    pid = _read_pid()
    if pid is None:
        print(f"Removing unreadable PID file {PID_FILE}")
        PID_FILE.unlink(missing_ok=True)
        return 1

    if _process_alive(pid) is False:
        print(f"Weather daemon (pid {pid}) is gone, removing leftover files")
        PID_FILE.unlink(missing_ok=True)
        STATE_FILE.unlink(missing_ok=True)
        return 0

    print(f"Sending SIGTERM to weather daemon (pid {pid})")
    os.kill(pid, signal.SIGTERM)
    deadline = time.monotonic() + grace_seconds
    while time.monotonic() < deadline:
        time.sleep(1)
        if _process_alive(pid) is False:
            print("Weather daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print(f"Still running after {grace_seconds}s, sending SIGKILL")
    os.kill(pid, signal.SIGKILL)
    PID_FILE.unlink(missing_ok=True)
    return 0


def daemon_status() -> int:
    """Print the last state the daemon saved. Returns 1 if there is none."""
    if not STATE_FILE.exists():
        print("No weather daemon state found")
        pid = _read_pid()
        if pid is not None:
            alive = _process_alive(pid)
            print(f"  PID file points at {pid} ({'running' if alive else 'not running'})")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid")
    running = isinstance(pid, int) and bool(_process_alive(pid))
    current = (state.get("conditions") or {}).get("current") or {}

    rows = [
        ("PID", pid if pid is not None else "?"),
        ("Location", state.get("location") or "?"),
        ("Tick interval", f"{state.get('interval', '?')}s"),
        ("Started", state.get("started_at", "?")),
        ("Ticks", f"{state.get('total_ticks', 0)} ({state.get('total_failures', 0)} failed)"),
        ("Updates", state.get("total_updates", 0)),
        ("Stored intervals", state.get("intervals", 0)),
        ("Last state", state.get("last_state", "?")),
    ]
    if current:
        rows.append((
            "Current",
            f"{current.get('temperature_value', '?')} "
            f"{current.get('temperature_unit', '')} ({current.get('symbol', '?')})",
        ))
    else:
        rows.append(("Current", "no data"))
    rows.append(("Saved at", state.get("last_update", "?")))

    print(f"Weather daemon {'running' if running else 'stopped'}")
    for label, value in rows:
        print(f"  {label}: {value}")
    return 0
