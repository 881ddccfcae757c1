"""
Battery health and confidence.

    ratio = (MaxCap + reserve) / DesignCap
        ratio <= 80% and CycleCount < 300  -> Fair (needs replacement)
        otherwise                           -> Good
    permanent failure                       -> Poor

A battery marked as needing replacement stays Fair until its ratio climbs
above 83%, so capacity measurement noise around 80% does not make the
verdict flap.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .config import (
    MAX_CYCLES_FOR_FAIR,
    NEEDS_REPLACEMENT_RATIO,
    PERMANENT_FAILURE,
    RELEASE_REPLACEMENT_RATIO,
    SMART_BATT_RESERVE_MAH,
)
from .models import BatteryDerived, BatteryReading, Rating, ReplacementState

logger = logging.getLogger(__name__)

HealthConfidence = Tuple[Optional[Rating], Optional[Rating]]


def has_permanent_failure(reading: BatteryReading) -> bool:
    return reading.error_condition is not None and reading.failure == PERMANENT_FAILURE


def capacity_ratio(reading: BatteryReading) -> float:
    return (reading.max_capacity + SMART_BATT_RESERVE_MAH) / reading.design_capacity


def classify_health(reading: BatteryReading, derived: BatteryDerived) -> HealthConfidence:
    """Return (health, confidence); both None when indeterminate."""
    if not reading.is_present:
        return None, None

    if has_permanent_failure(reading):
        return Rating.POOR, Rating.GOOD

    if not reading.design_capacity:
        return None, None

    ratio = capacity_ratio(reading)
    young = reading.cycle_count < MAX_CYCLES_FOR_FAIR

    if derived.replacement_state is ReplacementState.NEEDS_REPLACEMENT_LATCHED:
        if ratio <= RELEASE_REPLACEMENT_RATIO and young:
            health = Rating.FAIR
        else:
            derived.replacement_state = ReplacementState.NORMAL
            logger.info("Battery no longer needs replacement (ratio %.2f)", ratio)
            health = Rating.GOOD
    elif ratio <= NEEDS_REPLACEMENT_RATIO and young:
        derived.replacement_state = ReplacementState.NEEDS_REPLACEMENT_LATCHED
        logger.info("Battery needs replacement (ratio %.2f)", ratio)
        health = Rating.FAIR
    else:
        health = Rating.GOOD

    return health, Rating.GOOD
