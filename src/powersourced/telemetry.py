"""
Telemetry sources - produce BatteryReading lists for the engine.

Ina219Source reads a UPS HAT's INA219 shunt monitor and derives capacity
from the pack's voltage. SnapshotFileSource replays fake battery settings
from a JSON file so the engine can be exercised without hardware.
"""

import json
import logging
from collections import deque
from pathlib import Path

from .config import (
    AVERAGE_WINDOW,
    CHARGE_CURRENT_THRESHOLD,
    CHARGE_VOLTAGE_SETTLED_TIME,
    I2C_ADDRESS,
    I2C_BUS,
    NOMINAL_CAPACITY_MAH,
    SHUNT_OHMS,
)
from .models import BatteryReading

logger = logging.getLogger(__name__)

# 3S Li-ion discharge curve (voltage -> percent)
# More data points in the flat middle region for better accuracy
DISCHARGE_CURVE = [
    (12.60, 100),
    (12.50, 95),
    (12.40, 90),
    (12.30, 85),
    (12.20, 80),
    (12.00, 75),
    (11.90, 70),
    (11.80, 65),
    (11.70, 60),
    (11.60, 55),
    (11.50, 50),
    (11.40, 45),
    (11.30, 40),
    (11.20, 35),
    (11.10, 30),
    (11.00, 25),
    (10.80, 20),
    (10.60, 15),
    (10.40, 10),
    (10.20, 7),
    (10.00, 5),
    (9.80, 3),
    (9.60, 2),
    (9.40, 1),
    (9.00, 0),
]


class TelemetryError(Exception):
    """Battery telemetry could not be read."""


def voltage_to_percent(voltage: float) -> float:
    """Convert pack voltage to state of charge using the discharge curve."""
    if voltage >= DISCHARGE_CURVE[0][0]:
        return 100.0
    if voltage <= DISCHARGE_CURVE[-1][0]:
        return 0.0

    for (v_high, p_high), (v_low, p_low) in zip(DISCHARGE_CURVE, DISCHARGE_CURVE[1:]):
        if v_low <= voltage <= v_high:
            ratio = (voltage - v_low) / (v_high - v_low)
            return p_low + ratio * (p_high - p_low)
    return 0.0


class Ina219Source:
    """
    Single battery behind an INA219.

    The INA219 only sees the battery side of the UPS, so current above a
    small threshold is taken to mean both "on AC" and "charging". It has no
    design capacity, cycle counter or firmware estimate of its own.
    """

    provides_time_estimates = False

    def __init__(self, ina, capacity_mah=NOMINAL_CAPACITY_MAH, name="INA219 UPS"):
        self.ina = ina
        self.capacity_mah = capacity_mah
        self.name = name
        self._recent_current = deque(maxlen=AVERAGE_WINDOW)

    @classmethod
    def open(cls, shunt_ohms=SHUNT_OHMS, address=I2C_ADDRESS, busnum=I2C_BUS, **kwargs):
        """Configure the sensor on the I2C bus."""
        from ina219 import INA219

        try:
            ina = INA219(shunt_ohms, address=address, busnum=busnum)
            ina.configure()
        except Exception as e:
            raise TelemetryError(f"INA219 init error: {e}") from e
        return cls(ina, **kwargs)

    def read(self):
        try:
            voltage = self.ina.voltage()
            current = self.ina.current()
        except Exception as e:
            raise TelemetryError(f"INA219 read error: {e}") from e

        self._recent_current.append(current)
        avg_current = sum(self._recent_current) / len(self._recent_current)
        charging = current > CHARGE_CURRENT_THRESHOLD

        percent = voltage_to_percent(voltage)
        return [
            BatteryReading(
                is_present=True,
                external_connected=charging,
                is_charging=charging,
                current_capacity=round(self.capacity_mah * percent / 100.0),
                max_capacity=self.capacity_mah,
                avg_amperage=round(avg_current),
                instant_amperage=round(current),
                has_instant_amperage=True,
                name=self.name,
                invalid_wake_secs=CHARGE_VOLTAGE_SETTLED_TIME,
            )
        ]


class SnapshotFileSource:
    """
    Fake batteries described by a JSON file.

    The file holds a list of objects whose keys are BatteryReading fields,
    or an object with a "batteries" list and an optional
    "provides_time_estimates" flag. It is re-read on every poll.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.provides_time_estimates = False

    def read(self):
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise TelemetryError(f"Cannot read battery snapshot {self.path}: {e}") from e

        if isinstance(data, dict):
            self.provides_time_estimates = bool(data.get("provides_time_estimates", False))
            data = data.get("batteries", [])
        if not isinstance(data, list):
            raise TelemetryError(f"Battery snapshot {self.path} is not a list")
        return [BatteryReading.from_dict(item) for item in data]
