"""Battery readings, per-battery derived state and published snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

# Published key names
TRANSPORT_INTERNAL = "Internal"
AC_POWER = "AC Power"
BATTERY_POWER = "Battery Power"
UNNAMED = "Unnamed"

INDETERMINATE = -1


class Rating(str, Enum):
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"


class ReplacementState(Enum):
    """Hysteresis latch for the "needs replacement" health verdict."""

    NORMAL = "normal"
    NEEDS_REPLACEMENT_LATCHED = "needs_replacement_latched"


@dataclass
class BatteryReading:
    """
    One poll worth of raw telemetry for a single battery.

    Capacities are in mAh and currents in mA, positive while charging and
    negative while discharging.
    """

    is_present: bool = True
    external_connected: bool = False
    is_charging: bool = False
    current_capacity: int = 0
    max_capacity: int = 0
    design_capacity: Optional[int] = None
    cycle_count: int = 0
    avg_amperage: int = 0
    instant_amperage: int = 0
    has_instant_amperage: bool = False
    firmware_time_remaining: Optional[int] = None
    error_condition: Optional[str] = None
    failure: Optional[str] = None
    charge_status: Optional[str] = None
    name: Optional[str] = None
    invalid_wake_secs: int = 0
    store_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BatteryReading":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class BatteryDerived:
    """State the engine keeps for one battery index across poll cycles."""

    time_remaining: int = INDETERMINATE
    replacement_state: ReplacementState = ReplacementState.NORMAL
    last_published: Optional["PublishedSnapshot"] = field(default=None, repr=False)


@dataclass(frozen=True)
class PublishedSnapshot:
    """Immutable status record published for one battery."""

    is_present: bool
    power_source_state: str
    current_capacity: int
    max_capacity: int
    is_charging: bool
    time_to_empty: int
    time_to_full_charge: int
    name: str = UNNAMED
    transport_type: str = TRANSPORT_INTERNAL
    health: Optional[Rating] = None
    health_confidence: Optional[Rating] = None
    failure: Optional[str] = None
    charge_status: Optional[str] = None
    battery_provides_time_remaining: bool = False
    waiting_for_estimates: bool = False

    def as_dict(self) -> dict:
        """Key/value record as handed to the store."""
        record = {
            "Transport Type": self.transport_type,
            "Power Source State": self.power_source_state,
            "Is Present": self.is_present,
            "Current Capacity": self.current_capacity,
            "Max Capacity": self.max_capacity,
            "Is Charging": self.is_charging,
            "Time to Empty": self.time_to_empty,
            "Time to Full Charge": self.time_to_full_charge,
            "Name": self.name,
        }
        if self.health is not None:
            record["BatteryHealth"] = self.health.value
        if self.health_confidence is not None:
            record["HealthConfidence"] = self.health_confidence.value
        if self.failure is not None:
            record["Failure"] = self.failure
        if self.charge_status is not None:
            record["ChargeStatus"] = self.charge_status
        if self.battery_provides_time_remaining:
            record["Battery Provides Time Remaining"] = True
        if self.waiting_for_estimates:
            record["Waiting For Time Remaining Estimates"] = True
        return record
