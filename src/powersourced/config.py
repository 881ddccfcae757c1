"""
Configuration for the power source daemon.
Module-level defaults, optionally overridden by a JSON settings file.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Data storage location
DATA_DIR = Path.home() / ".local" / "share" / "powersourced"
STATE_FILE = DATA_DIR / "power_sources.json"
SETTINGS_FILE = Path(
    os.environ.get(
        "POWERSOURCED_CONFIG",
        Path.home() / ".config" / "powersourced" / "settings.json",
    )
)
PID_FILE = "/tmp/powersourced.pid"

# Time remaining estimation
MAX_BATTERY_MINUTES = 600  # no battery we ship lasts 10+ hours
LOOSE_AMPERAGE_BOUNDS = (5.0, 15000.0)  # mA, used without instant amperage
INSTANT_LOWER_FACTOR = 0.5
INSTANT_UPPER_FACTOR = 2.0

# Battery health
SMART_BATT_RESERVE_MAH = 200.0
NEEDS_REPLACEMENT_RATIO = 0.80
RELEASE_REPLACEMENT_RATIO = 0.83
MAX_CYCLES_FOR_FAIR = 300
PERMANENT_FAILURE = "Permanent Battery Failure"

# Daemon timing
POLL_INTERVAL = 5  # seconds between telemetry polls
WAKE_RESYNC_DELAY = 1  # seconds to let the clock settle after resume

# INA219 hardware (3S Li-ion default)
NOMINAL_CAPACITY_MAH = 3400
SHUNT_OHMS = 0.1
I2C_ADDRESS = 0x41
I2C_BUS = 1
CHARGE_CURRENT_THRESHOLD = 10  # mA - above this = charging
CHARGE_VOLTAGE_SETTLED_TIME = 30  # seconds after a plug change before trusting readings
AVERAGE_WINDOW = 12  # samples, ~1 min at the default poll interval

# Linux charge control
CHARGE_BEHAVIOUR_PATH = "/sys/class/power_supply/BAT0/charge_behaviour"

DEFAULT_SETTINGS = {
    "poll_interval": POLL_INTERVAL,
    "wake_resync_delay": WAKE_RESYNC_DELAY,
    "state_file": str(STATE_FILE),
    "nominal_capacity_mah": NOMINAL_CAPACITY_MAH,
    "shunt_ohms": SHUNT_OHMS,
    "i2c_address": I2C_ADDRESS,
    "i2c_bus": I2C_BUS,
    "charge_behaviour_path": CHARGE_BEHAVIOUR_PATH,
}


def load_settings(path=None) -> dict:
    """Load daemon settings, filling anything missing from the defaults."""
    path = Path(path) if path is not None else SETTINGS_FILE
    settings = dict(DEFAULT_SETTINGS)
    if not path.exists():
        return settings
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Error loading settings from %s: %s. Using defaults.", path, e)
        return settings

    for key, value in data.items():
        if key in settings:
            settings[key] = value
        else:
            logger.warning("Ignoring unknown setting %r in %s", key, path)
    return settings
