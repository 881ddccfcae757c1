"""
Snapshot building and publication.

Raw readings plus derived state are packaged into one immutable record per
battery. Records are only written to the store when they differ from the
last one published for that battery.
"""

from __future__ import annotations

import logging
import math

from .context import EstimationContext
from .health import classify_health
from .models import (
    AC_POWER,
    BATTERY_POWER,
    INDETERMINATE,
    UNNAMED,
    BatteryDerived,
    BatteryReading,
    PublishedSnapshot,
)

logger = logging.getLogger(__name__)


def _lround(value: float) -> int:
    """Round half away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def capacity_percentages(reading: BatteryReading):
    """Return (current %, max %) for display."""
    if reading.max_capacity == 0:
        # Bad battery or bad reading
        return 0, 0

    charge = _lround(reading.current_capacity * 100.0 / reading.max_capacity)
    if charge == 100 and reading.is_charging:
        # The battery keeps charging for a while past 100% to relearn its
        # full capacity; stay at 99% until it is really done.
        charge = 99
    return charge, 100


def time_fields(reading: BatteryReading, minutes: int):
    """Return (is_charging, time_to_empty, time_to_full_charge)."""
    if not reading.is_present:
        return False, 0, 0
    if minutes == INDETERMINATE:
        # Still calculating
        return bool(reading.is_charging), INDETERMINATE, INDETERMINATE
    if reading.is_charging:
        return True, 0, minutes
    if reading.external_connected:
        # Plugged in but not charging: fully charged
        return False, 0, 0
    return False, minutes, 0


def build_snapshot(
    reading: BatteryReading, derived: BatteryDerived, context: EstimationContext
) -> PublishedSnapshot:
    current, maximum = capacity_percentages(reading)
    is_charging, to_empty, to_full = time_fields(reading, derived.time_remaining)
    health, confidence = classify_health(reading, derived)

    return PublishedSnapshot(
        is_present=bool(reading.is_present),
        power_source_state=AC_POWER if reading.external_connected else BATTERY_POWER,
        current_capacity=current,
        max_capacity=maximum,
        is_charging=is_charging,
        time_to_empty=to_empty,
        time_to_full_charge=to_full,
        name=reading.name or UNNAMED,
        health=health,
        health_confidence=confidence,
        failure=reading.failure,
        charge_status=reading.charge_status,
        battery_provides_time_remaining=context.use_hardware_time_estimate,
        waiting_for_estimates=context.ignoring_time_remaining_estimates,
    )


class SnapshotPublisher:
    def __init__(self, store):
        self.store = store

    def publish(self, key: str, derived: BatteryDerived, snapshot: PublishedSnapshot) -> bool:
        """Write the snapshot if it changed; returns whether the store was touched."""
        if derived.last_published == snapshot:
            return False
        self.store.set_value(key, snapshot.as_dict())
        derived.last_published = snapshot
        logger.debug("Published %s: %s", key, snapshot)
        return True
