"""
Time remaining estimation.

Produces minutes until empty (discharging) or until full (charging) for
each battery, or -1 when no trustworthy estimate is possible yet.
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

from .config import (
    INSTANT_LOWER_FACTOR,
    INSTANT_UPPER_FACTOR,
    LOOSE_AMPERAGE_BOUNDS,
    MAX_BATTERY_MINUTES,
)
from .context import EstimationContext
from .models import INDETERMINATE, BatteryDerived, BatteryReading

logger = logging.getLogger(__name__)


def amperage_bounds(reading: BatteryReading) -> Tuple[float, float]:
    """
    Range of sane average currents for this reading.

    The average has to sit within a factor of two of the instantaneous
    current; without an instantaneous reading we fall back to loose bounds
    that still keep us from dividing by zero.
    """
    if reading.has_instant_amperage:
        instant = abs(reading.instant_amperage)
        return instant * INSTANT_LOWER_FACTOR, instant * INSTANT_UPPER_FACTOR
    return LOOSE_AMPERAGE_BOUNDS


def should_trust_battery_time_estimate(reading: BatteryReading, supported: bool) -> bool:
    """Only batteries on supporting hardware that report their own estimate are trusted."""
    return bool(supported) and reading.firmware_time_remaining is not None


def estimate_time_remaining(reading: BatteryReading, context: EstimationContext) -> int:
    avg = reading.avg_amperage
    lower, upper = amperage_bounds(reading)

    # Zero current means fully charged or just plugged in. An average far
    # from the instant current means it has not settled since a wake, and
    # inside the suppression window nothing can be trusted.
    if (
        avg == 0
        or abs(avg) < lower
        or abs(avg) > upper
        or context.ignoring_time_remaining_estimates
    ):
        return INDETERMINATE

    if context.use_hardware_time_estimate:
        if reading.firmware_time_remaining is None:
            return INDETERMINATE
        minutes = int(reading.firmware_time_remaining)
    elif reading.is_charging:
        minutes = int(60 * (reading.max_capacity - reading.current_capacity) / avg)
    else:
        minutes = int(-60 * reading.current_capacity / avg)

    # Negative means the average current still disagrees with the charge state.
    if minutes < 0:
        return INDETERMINATE
    return min(minutes, MAX_BATTERY_MINUTES)


def populate_time_remaining(
    readings: Sequence[BatteryReading],
    derived: Sequence[BatteryDerived],
    context: EstimationContext,
) -> None:
    for index, (reading, state) in enumerate(zip(readings, derived)):
        state.time_remaining = estimate_time_remaining(reading, context)
        logger.debug("Battery %d: time remaining %d min", index, state.time_remaining)
