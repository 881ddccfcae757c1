#!/usr/bin/env python3
"""
Power Source Daemon.
Polls battery telemetry, estimates time remaining and health, and publishes
the result to a shared state file for other processes to read.
"""

import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional

from gi.repository import Gio, GLib

from .config import PID_FILE, load_settings
from .engine import PowerSourceEngine
from .store import JsonFileStore
from .telemetry import Ina219Source, SnapshotFileSource, TelemetryError
from .timers import GLibScheduler

logger = logging.getLogger(__name__)

LOGIND_BUS_NAME = "org.freedesktop.login1"
LOGIND_PATH = "/org/freedesktop/login1"
LOGIND_MANAGER = "org.freedesktop.login1.Manager"


class PowerSourceDaemon:
    """Drives the engine from the GLib main loop."""

    def __init__(self, source, store, *, poll_interval, wake_resync_delay, scheduler=None):
        self.source = source
        self.poll_interval = poll_interval
        self.wake_resync_delay = wake_resync_delay
        self.scheduler = scheduler or GLibScheduler()
        self.engine = PowerSourceEngine(
            store,
            self.scheduler,
            hardware_estimates_supported=getattr(source, "provides_time_estimates", False),
        )
        self.loop = GLib.MainLoop()
        self._poll_source = None
        self._sleep_subscription = None
        self._bus = None

    def start(self):
        self.engine.prime(self._read())
        self._schedule_poll()
        self._watch_sleep()

    def run(self):
        self.start()
        self.loop.run()

    def quit(self):
        if self._bus is not None and self._sleep_subscription is not None:
            self._bus.signal_unsubscribe(self._sleep_subscription)
        self.loop.quit()

    def set_poll_interval(self, seconds):
        self.poll_interval = seconds
        self._schedule_poll()
        logger.info("Polling every %ss", seconds)

    def _schedule_poll(self):
        if self._poll_source is not None:
            GLib.source_remove(self._poll_source)
        self._poll_source = GLib.timeout_add_seconds(self.poll_interval, self.update)

    def _read(self):
        try:
            readings = self.source.read()
        except TelemetryError as e:
            logger.error("%s", e)
            return None
        self.engine.context.hardware_estimates_supported = getattr(
            self.source, "provides_time_estimates", False
        )
        return readings

    def update(self) -> bool:
        """Poll the telemetry source and run the pipeline."""
        readings = self._read()
        if readings is not None:
            self.engine.batteries_changed(readings)
        return True

    def _watch_sleep(self):
        try:
            self._bus = Gio.bus_get_sync(Gio.BusType.SYSTEM, None)
        except GLib.Error as e:
            logger.warning("No system bus, wake from sleep will not be tracked: %s", e.message)
            return
        self._sleep_subscription = self._bus.signal_subscribe(
            LOGIND_BUS_NAME,
            LOGIND_MANAGER,
            "PrepareForSleep",
            LOGIND_PATH,
            None,
            Gio.DBusSignalFlags.NONE,
            self._on_prepare_for_sleep,
        )

    def _on_prepare_for_sleep(self, connection, sender, path, interface, signal_name, parameters):
        (going_to_sleep,) = parameters.unpack()
        if going_to_sleep:
            return
        # Let the clock settle before timestamping the wake.
        self.scheduler.schedule(self.wake_resync_delay, self.engine.system_did_wake)


class PidFile:
    """Single-instance guard. A pid file naming a dead process is taken over."""

    def __init__(self, path):
        self.path = Path(path)

    def owner(self) -> Optional[int]:
        """Pid of the live process holding the file, if any."""
        try:
            pid = int(self.path.read_text().strip())
            os.kill(pid, 0)
        except (OSError, ValueError):
            return None
        return pid

    def acquire(self) -> bool:
        if self.owner() is not None:
            return False
        self.path.write_text(str(os.getpid()))
        return True

    def release(self):
        if self.owner() == os.getpid():
            self.path.unlink()


def main(argv=None):
    """Entry point for the power source daemon."""
    parser = argparse.ArgumentParser(prog="powersourced")
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument("--fake", metavar="PATH", help="read fake batteries from a JSON snapshot file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pid_file = PidFile(PID_FILE)
    if pid_file.owner() is not None:
        print("Power source daemon already running", file=sys.stderr)
        return 1

    settings = load_settings(args.config)
    try:
        if args.fake:
            source = SnapshotFileSource(args.fake)
        else:
            source = Ina219Source.open(
                settings["shunt_ohms"],
                settings["i2c_address"],
                settings["i2c_bus"],
                capacity_mah=settings["nominal_capacity_mah"],
            )
    except TelemetryError as e:
        print(f"Error initializing telemetry: {e}", file=sys.stderr)
        return 1

    daemon = PowerSourceDaemon(
        source,
        JsonFileStore(settings["state_file"]),
        poll_interval=settings["poll_interval"],
        wake_resync_delay=settings["wake_resync_delay"],
    )

    if not pid_file.acquire():
        print("Power source daemon already running", file=sys.stderr)
        return 1
    print(f"Power source daemon started (PID {os.getpid()})")
    print(f"Publishing to {settings['state_file']}")

    def _stop():
        daemon.quit()
        return GLib.SOURCE_REMOVE

    def _reload():
        daemon.set_poll_interval(load_settings(args.config)["poll_interval"])
        return GLib.SOURCE_CONTINUE

    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGHUP, _reload)
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, _stop)
    GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, _stop)
    try:
        daemon.run()
    finally:
        pid_file.release()
    return 0


if __name__ == "__main__":
    sys.exit(main())
